"""SQLite primary backend with one table per logical collection."""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import orjson

from .base import StorageBackend

CURRENT_KEY = "current"


class SqliteBackend(StorageBackend):
    """SQLite-based structured store."""

    name = "sqlite"

    def __init__(self, db_path: str = "farmroute.db"):
        super().__init__()
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._initialized = False

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS routes (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS current_route (
                    id TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS active_session (
                    id TEXT PRIMARY KEY,
                    route_id TEXT NOT NULL,
                    start_time INTEGER NOT NULL,
                    data TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS run_history (
                    id TEXT PRIMARY KEY,
                    route_id TEXT NOT NULL,
                    start_time INTEGER NOT NULL,
                    end_time INTEGER NOT NULL,
                    data TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_routes_name ON routes(name)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_run_history_route_id ON run_history(route_id)
            """)

            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", error=str(e), db_path=str(self.db_path))
            raise
        finally:
            if conn:
                conn.close()

    @contextmanager
    def _session(self):
        """Serialized connection with the schema in place."""
        with self._lock:
            if not self._initialized:
                self._init_database()
                self._initialized = True
            with self._get_connection() as conn:
                yield conn

    async def check(self) -> bool:
        try:
            await self._run("check", self._check_sync)
            return True
        except Exception as e:
            self.logger.warning("Primary store check failed", error=str(e))
            return False

    def _check_sync(self) -> None:
        with self._session() as conn:
            conn.execute("SELECT COUNT(*) FROM routes").fetchone()

    async def load_routes(self) -> list[dict[str, Any]]:
        return await self._run("load_routes", self._load_routes_sync)

    def _load_routes_sync(self) -> list[dict[str, Any]]:
        with self._session() as conn:
            rows = conn.execute("SELECT data FROM routes ORDER BY rowid").fetchall()
            return [orjson.loads(row["data"]) for row in rows]

    async def save_route(self, route: dict[str, Any]) -> None:
        await self._run("save_route", self._save_route_sync, route)

    def _save_route_sync(self, route: dict[str, Any]) -> None:
        with self._session() as conn:
            now = datetime.now(timezone.utc).isoformat()
            conn.execute("""
                INSERT INTO routes (id, name, data, updated_at) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    data = excluded.data,
                    updated_at = excluded.updated_at
            """, (route["id"], route.get("name", ""), _dumps(route), now))
            conn.commit()

    async def delete_route(self, route_id: str) -> None:
        await self._run("delete_route", self._delete_route_sync, route_id)

    def _delete_route_sync(self, route_id: str) -> None:
        with self._session() as conn:
            conn.execute("DELETE FROM routes WHERE id = ?", (route_id,))
            conn.commit()

    async def load_current_route_id(self) -> Optional[str]:
        return await self._run("load_current_route_id", self._load_current_sync)

    def _load_current_sync(self) -> Optional[str]:
        with self._session() as conn:
            row = conn.execute(
                "SELECT value FROM current_route WHERE id = ?", (CURRENT_KEY,)
            ).fetchone()
            return row["value"] if row else None

    async def save_current_route_id(self, route_id: Optional[str]) -> None:
        await self._run("save_current_route_id", self._save_current_sync, route_id)

    def _save_current_sync(self, route_id: Optional[str]) -> None:
        with self._session() as conn:
            if route_id:
                conn.execute(
                    "INSERT OR REPLACE INTO current_route (id, value) VALUES (?, ?)",
                    (CURRENT_KEY, route_id)
                )
            else:
                conn.execute("DELETE FROM current_route WHERE id = ?", (CURRENT_KEY,))
            conn.commit()

    async def load_sessions(self) -> list[dict[str, Any]]:
        return await self._run("load_sessions", self._load_sessions_sync)

    def _load_sessions_sync(self) -> list[dict[str, Any]]:
        with self._session() as conn:
            rows = conn.execute(
                "SELECT data FROM active_session ORDER BY start_time"
            ).fetchall()
            return [orjson.loads(row["data"]) for row in rows]

    async def save_session(self, session: dict[str, Any]) -> None:
        await self._run("save_session", self._save_session_sync, session)

    def _save_session_sync(self, session: dict[str, Any]) -> None:
        with self._session() as conn:
            # One slot: replacing the row also drops any stray records
            conn.execute("DELETE FROM active_session")
            conn.execute("""
                INSERT INTO active_session (id, route_id, start_time, data)
                VALUES (?, ?, ?, ?)
            """, (CURRENT_KEY, session["routeId"], int(session.get("startTime") or 0), _dumps(session)))
            conn.commit()

    async def clear_session(self) -> None:
        await self._run("clear_session", self._clear_session_sync)

    def _clear_session_sync(self) -> None:
        with self._session() as conn:
            conn.execute("DELETE FROM active_session")
            conn.commit()

    async def load_runs(self, route_id: Optional[str] = None) -> list[dict[str, Any]]:
        return await self._run("load_runs", self._load_runs_sync, route_id)

    def _load_runs_sync(self, route_id: Optional[str]) -> list[dict[str, Any]]:
        with self._session() as conn:
            if route_id:
                rows = conn.execute("""
                    SELECT data FROM run_history WHERE route_id = ? ORDER BY start_time
                """, (route_id,)).fetchall()
            else:
                rows = conn.execute(
                    "SELECT data FROM run_history ORDER BY start_time"
                ).fetchall()
            return [orjson.loads(row["data"]) for row in rows]

    async def save_run(self, run: dict[str, Any]) -> None:
        await self._run("save_run", self._save_run_sync, run)

    def _save_run_sync(self, run: dict[str, Any]) -> None:
        with self._session() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO run_history (id, route_id, start_time, end_time, data)
                VALUES (?, ?, ?, ?, ?)
            """, (run["id"], run["routeId"], run["startTime"], run["endTime"], _dumps(run)))
            conn.commit()


def _dumps(value: Any) -> str:
    return orjson.dumps(value).decode()
