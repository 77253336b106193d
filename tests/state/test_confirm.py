"""Tests for the confirmation gate and application context."""

import pytest

from farmroute.errors import NoActiveSession, UnknownRoute, UserCancelled
from farmroute.state.confirm import (
    COMPLETE_ROUTE,
    MERGE_IMPORT,
    ConfirmationGate,
    auto_confirm,
)
from farmroute.state.context import TrackerContext
from farmroute.state.models import TrackingSession

from conftest import ScriptedConfirmer


class TestConfirmationGate:
    """Test the asynchronous yes/no gate."""

    @pytest.mark.asyncio
    async def test_default_gate_confirms(self):
        """Test the default confirmer always answers yes."""
        gate = ConfirmationGate()

        assert await gate.ask(COMPLETE_ROUTE) is True
        assert await auto_confirm(COMPLETE_ROUTE) is True

    @pytest.mark.asyncio
    async def test_require_raises_on_decline(self):
        """Test require() turns a decline into UserCancelled."""
        gate = ConfirmationGate(ScriptedConfirmer(False))

        with pytest.raises(UserCancelled) as exc_info:
            await gate.require(COMPLETE_ROUTE)

        assert exc_info.value.prompt == "Complete Route"
        assert exc_info.value.recoverable

    @pytest.mark.asyncio
    async def test_confirmer_receives_request(self):
        """Test the presentation layer sees the prompt text."""
        confirmer = ScriptedConfirmer(True)
        gate = ConfirmationGate(confirmer)

        await gate.ask(MERGE_IMPORT)

        assert confirmer.requests == [MERGE_IMPORT]
        assert MERGE_IMPORT.confirm_text == "Merge"
        assert MERGE_IMPORT.cancel_text == "Replace"


class TestTrackerContext:
    """Test the session singleton owner."""

    def test_create_and_destroy_session(self, acid_route):
        """Test explicit create/destroy of the single session."""
        context = TrackerContext(routes={acid_route.id: acid_route})
        session = TrackingSession.begin(acid_route, 1)

        context.create_session(session)
        assert context.has_session
        assert context.active_route() is acid_route

        assert context.destroy_session() is session
        assert not context.has_session
        assert context.destroy_session() is None

    def test_require_session_when_idle(self):
        """Test NoActiveSession without a session."""
        with pytest.raises(NoActiveSession):
            TrackerContext().require_session()

    def test_unknown_route(self):
        """Test route lookups for missing ids."""
        with pytest.raises(UnknownRoute) as exc_info:
            TrackerContext().route("missing")

        assert exc_info.value.route_id == "missing"

    def test_put_and_remove_route(self, acid_route):
        """Test catalog updates."""
        context = TrackerContext()

        context.put_route(acid_route)
        assert context.route("route-r") is acid_route
        assert context.remove_route("route-r") is acid_route
        assert context.remove_route("route-r") is None
