"""Tests for the name → instances index."""

from farmroute.catalog.models import ItemType
from farmroute.inventory.index import NameIndex

from conftest import make_item


class TestNameIndex:
    """Test grouping of harvestables by display name."""

    def test_groups_only_harvestables(self):
        """Test non-harvestable items are ignored."""
        index = NameIndex([
            make_item("a1", "Acid"),
            make_item("b1", "Bobblehead", ItemType.BOBBLEHEAD),
            make_item("a2", "Acid"),
            make_item("l1", "Lead"),
        ])

        assert index.names() == ["Acid", "Lead"]
        assert index.identities("Acid") == ["a1", "a2"]
        assert "Bobblehead" not in index
        assert len(index) == 2

    def test_unknown_name_has_no_instances(self):
        """Test lookups for absent names."""
        index = NameIndex([make_item("a1", "Acid")])

        assert index.instances("Lead") == []
        assert index.identities("Lead") == []

    def test_for_route_spans_stops(self, acid_route, auto_route):
        """Test the route-wide index."""
        assert NameIndex.for_route(acid_route).identities("Acid") == ["a1", "a2"]
        assert NameIndex.for_route(auto_route).names() == ["Lead", "Acid"]

    def test_for_stop_is_scoped(self, auto_route):
        """Test the stop index contains only that stop's items."""
        index = NameIndex.for_stop(auto_route.stops[1])

        assert index.names() == ["Acid"]

    def test_aggregate_sums_present_instances(self):
        """Test identity values sum back to names."""
        index = NameIndex([make_item("a1", "Acid"), make_item("a2", "Acid"), make_item("l1", "Lead")])

        totals = index.aggregate({"a1": 2.5, "a2": 2.5})

        assert totals == {"Acid": 5.0}

    def test_aggregate_of_nothing(self):
        """Test None and empty inputs aggregate to nothing."""
        index = NameIndex([make_item("a1", "Acid")])

        assert index.aggregate(None) == {}
        assert index.aggregate({}) == {}

    def test_groups_copy(self):
        """Test groups() does not expose internal lists."""
        index = NameIndex([make_item("a1", "Acid")])

        index.groups()["Acid"].clear()

        assert index.identities("Acid") == ["a1"]
