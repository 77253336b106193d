"""Flat key-value fallback backend stored as one JSON text file."""

import fcntl
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

import orjson

from ..errors import StorageError
from .base import StorageBackend

ROUTES_KEY = "farmingRoutes"
CURRENT_ROUTE_KEY = "currentRouteId"
SESSION_KEY = "activeTracking"
HISTORY_KEY = "routeHistory"


class FlatFileBackend(StorageBackend):
    """
    Key → text store persisted to a single file.

    Each value is JSON text under a fixed key, except the current-route
    pointer which is stored as the bare id.
    """

    name = "flat_file"

    def __init__(self, path: str = "farmroute-fallback.json"):
        super().__init__()
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._locked():
            entries = self._read_all()
            entries[key] = value
            self._write_all(entries)

    def remove_item(self, key: str) -> None:
        with self._locked():
            entries = self._read_all()
            if key in entries:
                del entries[key]
                self._write_all(entries)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        raw = self.path.read_bytes()
        if not raw.strip():
            return {}
        try:
            entries = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise StorageError(
                f"Fallback file is corrupt: {e}",
                backend=self.name,
                operation="read",
                key=str(self.path)
            )
        if not isinstance(entries, dict):
            raise StorageError(
                "Fallback file does not hold a key-value object",
                backend=self.name,
                operation="read",
                key=str(self.path)
            )
        return entries

    def _write_all(self, entries: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "wb") as f:
            f.write(orjson.dumps(entries, option=orjson.OPT_INDENT_2))
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self.path)

    def _locked(self):
        return _FileLock(self.lock_path)

    def _get_json(self, key: str) -> Any:
        text = self.get_item(key)
        if text is None:
            return None
        try:
            return orjson.loads(text)
        except orjson.JSONDecodeError as e:
            raise StorageError(
                f"Fallback entry {key} is corrupt: {e}",
                backend=self.name,
                operation="read",
                key=key
            )

    def _set_json(self, key: str, value: Any) -> None:
        self.set_item(key, orjson.dumps(value).decode())

    def _update_list(self, key: str, update: Callable[[list], list]) -> None:
        """Read-modify-write a JSON list entry under one lock."""
        with self._locked():
            entries = self._read_all()
            current = _decode_list(entries.get(key), key, self.name)
            entries[key] = orjson.dumps(update(current)).decode()
            self._write_all(entries)

    async def check(self) -> bool:
        try:
            await self._run("check", self._read_all)
            return True
        except StorageError as e:
            self.logger.warning("Fallback store check failed", error=str(e))
            return False

    async def load_routes(self) -> list[dict[str, Any]]:
        return await self._run("load_routes", self._load_routes_sync)

    def _load_routes_sync(self) -> list[dict[str, Any]]:
        return _decode_list(self.get_item(ROUTES_KEY), ROUTES_KEY, self.name)

    async def save_route(self, route: dict[str, Any]) -> None:
        await self._run("save_route", self._update_list, ROUTES_KEY, _upsert_by_id(route))

    async def delete_route(self, route_id: str) -> None:
        await self._run(
            "delete_route", self._update_list, ROUTES_KEY,
            lambda routes: [r for r in routes if r.get("id") != route_id]
        )

    async def load_current_route_id(self) -> Optional[str]:
        return await self._run("load_current_route_id", self.get_item, CURRENT_ROUTE_KEY)

    async def save_current_route_id(self, route_id: Optional[str]) -> None:
        if route_id:
            await self._run("save_current_route_id", self.set_item, CURRENT_ROUTE_KEY, route_id)
        else:
            await self._run("save_current_route_id", self.remove_item, CURRENT_ROUTE_KEY)

    async def load_sessions(self) -> list[dict[str, Any]]:
        return await self._run("load_sessions", self._load_sessions_sync)

    def _load_sessions_sync(self) -> list[dict[str, Any]]:
        session = self._get_json(SESSION_KEY)
        if isinstance(session, list):
            return [s for s in session if isinstance(s, dict)]
        return [session] if isinstance(session, dict) else []

    async def save_session(self, session: dict[str, Any]) -> None:
        await self._run("save_session", self._set_json, SESSION_KEY, session)

    async def clear_session(self) -> None:
        await self._run("clear_session", self.remove_item, SESSION_KEY)

    async def load_runs(self, route_id: Optional[str] = None) -> list[dict[str, Any]]:
        return await self._run("load_runs", self._load_runs_sync, route_id)

    def _load_runs_sync(self, route_id: Optional[str]) -> list[dict[str, Any]]:
        runs = _decode_list(self.get_item(HISTORY_KEY), HISTORY_KEY, self.name)
        if route_id:
            runs = [run for run in runs if run.get("routeId") == route_id]
        return sorted(runs, key=lambda run: run.get("startTime", 0))

    async def save_run(self, run: dict[str, Any]) -> None:
        await self._run("save_run", self._update_list, HISTORY_KEY, _upsert_by_id(run))


def _decode_list(text: Optional[str], key: str, backend: str) -> list[dict[str, Any]]:
    if text is None:
        return []
    try:
        value = orjson.loads(text)
    except orjson.JSONDecodeError as e:
        raise StorageError(
            f"Fallback entry {key} is corrupt: {e}",
            backend=backend,
            operation="read",
            key=key
        )
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]


def _upsert_by_id(record: dict[str, Any]) -> Callable[[list], list]:
    def update(records: list) -> list:
        for index, existing in enumerate(records):
            if existing.get("id") == record["id"]:
                records[index] = record
                return records
        records.append(record)
        return records
    return update


class _FileLock:
    """Exclusive advisory lock on a sidecar file."""

    def __init__(self, path: Path):
        self.path = path
        self._handle = None

    def __enter__(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = open(self.path, "a")
        fcntl.flock(self._handle.fileno(), fcntl.LOCK_EX)
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None
        return False
