"""Tests for the SQLite primary backend."""

import sqlite3

import pytest

from farmroute.errors import StorageError
from farmroute.persistence.sqlite_store import SqliteBackend


def route_record(route_id: str, name: str = "Route") -> dict:
    return {"id": route_id, "name": name, "description": "", "stops": [], "completedRuns": 0}


class TestSqliteBackend:
    """Test SqliteBackend collections."""

    @pytest.mark.asyncio
    async def test_check_creates_schema(self, primary):
        """Test check() initializes tables on first use."""
        assert await primary.check() is True

        with sqlite3.connect(primary.db_path) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"routes", "current_route", "active_session", "run_history"} <= tables

    @pytest.mark.asyncio
    async def test_routes_upsert_and_delete(self, primary):
        """Test route writes replace by id and keep insertion order."""
        await primary.save_route(route_record("r1", "First"))
        await primary.save_route(route_record("r2", "Second"))
        await primary.save_route(route_record("r1", "Renamed"))

        routes = await primary.load_routes()
        assert [r["id"] for r in routes] == ["r1", "r2"]
        assert routes[0]["name"] == "Renamed"

        await primary.delete_route("r1")
        assert [r["id"] for r in await primary.load_routes()] == ["r2"]

    @pytest.mark.asyncio
    async def test_current_route_pointer(self, primary):
        """Test saving and clearing the pointer."""
        assert await primary.load_current_route_id() is None

        await primary.save_current_route_id("r1")
        assert await primary.load_current_route_id() == "r1"

        await primary.save_current_route_id(None)
        assert await primary.load_current_route_id() is None

    @pytest.mark.asyncio
    async def test_single_session_slot(self, primary):
        """Test saving a session replaces any previous one."""
        await primary.save_session({"routeId": "r1", "startTime": 1})
        await primary.save_session({"routeId": "r2", "startTime": 2})

        sessions = await primary.load_sessions()
        assert sessions == [{"routeId": "r2", "startTime": 2}]

        await primary.clear_session()
        assert await primary.load_sessions() == []

    @pytest.mark.asyncio
    async def test_fractional_values_round_trip(self, primary):
        """Test split inventory values are stored exactly."""
        session = {
            "routeId": "r1",
            "startTime": 5,
            "inventoryData": {"stops": {"s": {"preStop": {"c1": 10 / 3}}}},
        }
        await primary.save_session(session)

        loaded = (await primary.load_sessions())[0]
        assert loaded["inventoryData"]["stops"]["s"]["preStop"]["c1"] == 10 / 3

    @pytest.mark.asyncio
    async def test_runs_filtered_and_ordered(self, primary):
        """Test run history filtering by route."""
        await primary.save_run({"id": "b", "routeId": "r1", "startTime": 20, "endTime": 30})
        await primary.save_run({"id": "a", "routeId": "r1", "startTime": 10, "endTime": 15})
        await primary.save_run({"id": "c", "routeId": "r2", "startTime": 5, "endTime": 6})

        assert [r["id"] for r in await primary.load_runs("r1")] == ["a", "b"]
        assert [r["id"] for r in await primary.load_runs()] == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_unusable_path_raises_storage_error(self, tmp_path):
        """Test failures surface as StorageError and check() reports False."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        backend = SqliteBackend(str(blocker / "farmroute.db"))

        assert await backend.check() is False
        with pytest.raises(StorageError) as exc_info:
            await backend.load_routes()

        assert exc_info.value.backend == "sqlite"
        assert exc_info.value.operation == "load_routes"
