"""Pytest configuration and shared fixtures."""

import pytest
from typing import Any

from farmroute.catalog.models import Item, ItemDisplayName, ItemIdentity, ItemType, Route, Stop
from farmroute.errors import StorageError
from farmroute.persistence.base import StorageBackend
from farmroute.persistence.flat_store import FlatFileBackend
from farmroute.persistence.gateway import PersistenceGateway
from farmroute.persistence.sqlite_store import SqliteBackend
from farmroute.state.confirm import ConfirmationGate
from farmroute.state.context import TrackerContext
from farmroute.state.machine import TrackingStateMachine


def make_item(item_id: str, name: str, item_type: ItemType = ItemType.HARVESTABLE) -> Item:
    return Item(id=ItemIdentity(item_id), name=ItemDisplayName(name), type=item_type)


class FixedClock:
    """Deterministic epoch-ms clock."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ScriptedConfirmer:
    """Answers confirmation prompts from a queue, defaulting to yes."""

    def __init__(self, *answers: bool):
        self.answers = list(answers)
        self.requests: list[Any] = []

    async def __call__(self, request) -> bool:
        self.requests.append(request)
        if self.answers:
            return self.answers.pop(0)
        return True


@pytest.fixture
def acid_route() -> Route:
    """Stop A collects data and holds two Acid instances; stop B does not collect."""
    return Route(
        id="route-r",
        name="Acid Run",
        stops=(
            Stop(
                id="stop-a",
                name="Acid Field",
                items=(make_item("a1", "Acid"), make_item("a2", "Acid")),
                collect_data=True,
            ),
            Stop(
                id="stop-b",
                name="Vault Door",
                items=(make_item("b1", "Bobblehead", ItemType.BOBBLEHEAD),),
                collect_data=False,
            ),
        ),
    )


@pytest.fixture
def plain_route() -> Route:
    """Three stops without any inventory collection."""
    return Route(
        id="route-plain",
        name="Collectibles",
        stops=tuple(
            Stop(
                id=f"stop-{i}",
                name=f"Stop {i}",
                items=(make_item(f"m{i}", "Magazine", ItemType.MAGAZINE),),
            )
            for i in range(3)
        ),
    )


@pytest.fixture
def auto_route() -> Route:
    """Automatic route checks, with collecting stops on both ends."""
    return Route(
        id="route-auto",
        name="Lead and Acid",
        auto_inventory_checks=True,
        stops=(
            Stop(
                id="stop-1",
                name="Lead Mine",
                items=(make_item("l1", "Lead"), make_item("l2", "Lead")),
                collect_data=True,
            ),
            Stop(
                id="stop-2",
                name="Acid Pool",
                items=(make_item("x1", "Acid"),),
                collect_data=True,
            ),
        ),
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def primary(tmp_path) -> SqliteBackend:
    return SqliteBackend(str(tmp_path / "farmroute.db"))


@pytest.fixture
def fallback(tmp_path) -> FlatFileBackend:
    return FlatFileBackend(str(tmp_path / "fallback.json"))


@pytest.fixture
def warnings() -> list:
    return []


@pytest.fixture
def gateway(primary, fallback, warnings) -> PersistenceGateway:
    return PersistenceGateway(primary, fallback, on_warning=warnings.append)


@pytest.fixture
def confirmer() -> ScriptedConfirmer:
    return ScriptedConfirmer()


@pytest.fixture
def context(acid_route, plain_route, auto_route) -> TrackerContext:
    return TrackerContext(routes={
        route.id: route for route in (acid_route, plain_route, auto_route)
    })


@pytest.fixture
def machine(context, gateway, confirmer, clock) -> TrackingStateMachine:
    return TrackingStateMachine(
        context,
        gateway,
        confirm=ConfirmationGate(confirmer),
        clock=clock,
    )


class BrokenBackend(StorageBackend):
    """Backend whose every call fails."""

    name = "broken"

    def __init__(self):
        super().__init__()
        self.calls: list[str] = []

    def _fail(self, operation: str):
        self.calls.append(operation)
        raise StorageError(f"{operation} unavailable", backend=self.name, operation=operation)

    async def check(self) -> bool:
        self.calls.append("check")
        return False

    async def load_routes(self):
        self._fail("load_routes")

    async def save_route(self, route):
        self._fail("save_route")

    async def delete_route(self, route_id):
        self._fail("delete_route")

    async def load_current_route_id(self):
        self._fail("load_current_route_id")

    async def save_current_route_id(self, route_id):
        self._fail("save_current_route_id")

    async def load_sessions(self):
        self._fail("load_sessions")

    async def save_session(self, session):
        self._fail("save_session")

    async def clear_session(self):
        self._fail("clear_session")

    async def load_runs(self, route_id=None):
        self._fail("load_runs")

    async def save_run(self, run):
        self._fail("save_run")
