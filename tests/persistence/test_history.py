"""Tests for completed-run history records."""

import pytest

from farmroute.errors import DataFormatError
from farmroute.persistence.history import RunRecord, build_run_record
from farmroute.state.models import TrackingSession


class TestBuildRunRecord:
    """Test snapshotting a finished session."""

    def test_record_fields(self, acid_route):
        """Test timing, items and added items are captured."""
        session = TrackingSession.begin(acid_route, 1_000)
        session.collected_items["a1"] = True
        session.notes = "quick run"
        session.inventory.pre_route = {"Acid": 10}
        session.inventory.post_route = {"Acid": 16}

        run = build_run_record(acid_route, session, end_time=61_000, run_id="run-1")

        assert run.id == "run-1"
        assert run.route_name == "Acid Run"
        assert run.duration == 60_000
        assert run.collected_count == 1
        assert run.notes == "quick run"
        assert run.inventory["addedItems"] == {"Acid": 6}
        assert run.inventory["preRoute"] == {"Acid": 10}

    def test_generated_id(self, acid_route):
        """Test a unique id is generated when none is given."""
        session = TrackingSession.begin(acid_route, 0)

        first = build_run_record(acid_route, session, 1)
        second = build_run_record(acid_route, session, 1)

        assert first.id != second.id

    def test_round_trip(self, acid_route):
        """Test the stored run shape decodes back."""
        run = build_run_record(acid_route, TrackingSession.begin(acid_route, 5), 9, run_id="x")

        data = run.to_dict()

        assert data["routeId"] == "route-r"
        assert RunRecord.from_dict(data) == run

    def test_invalid_record(self):
        """Test a run without timing is rejected."""
        with pytest.raises(DataFormatError):
            RunRecord.from_dict({"id": "x", "routeId": "r"})
