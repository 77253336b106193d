"""
Resilient persistence gateway.

Implements the storage policies once for every caller:

- Writes go to the primary first and are mirrored to the fallback; when the
  primary fails the fallback alone takes the write. If both fail, a
  StorageWarning is raised to the user and in-memory state stays usable.
- Reads use the primary and fall back when it fails or returns nothing.
- Clearing the session always targets both backends.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional, TypeVar

from ..catalog.models import Route
from ..errors import DataFormatError, StorageError, StorageWarning
from ..logging.config import get_storage_logger
from ..state.models import TrackingSession
from .base import StorageBackend
from .history import RunRecord

logger = get_storage_logger(__name__)

T = TypeVar("T")
WarningCallback = Callable[[StorageWarning], None]


@dataclass
class RestoredState:
    """What startup recovered from storage."""
    routes: list[Route] = field(default_factory=list)
    current_route_id: Optional[str] = None
    session: Optional[TrackingSession] = None
    degraded: bool = False


class PersistenceGateway:
    """Primary-then-fallback adapter over two storage backends."""

    def __init__(
        self,
        primary: StorageBackend,
        fallback: StorageBackend,
        on_warning: Optional[WarningCallback] = None,
        mirror_to_fallback: bool = True
    ):
        self.primary = primary
        self.fallback = fallback
        self.on_warning = on_warning
        self.mirror_to_fallback = mirror_to_fallback
        self.primary_reliable = True
        self.logger = logger

    async def check(self) -> bool:
        """Probe the primary backend and remember the outcome."""
        self.primary_reliable = await self.primary.check()
        if not self.primary_reliable:
            self.logger.warning(
                "Primary store unavailable, using fallback",
                primary=self.primary.name,
                fallback=self.fallback.name
            )
        return self.primary_reliable

    def _primary_succeeded(self, operation: str) -> None:
        if not self.primary_reliable:
            self.logger.info("Primary store recovered", operation=operation, primary=self.primary.name)
        self.primary_reliable = True

    async def _write(
        self,
        operation: str,
        call: Callable[[StorageBackend], Awaitable[None]]
    ) -> bool:
        """Apply a write with primary-then-fallback semantics."""
        try:
            await call(self.primary)
        except StorageError as primary_error:
            self.primary_reliable = False
            self.logger.warning(
                "Primary write failed, writing fallback",
                operation=operation,
                error=str(primary_error)
            )
            try:
                await call(self.fallback)
                return True
            except StorageError as fallback_error:
                self.logger.error(
                    "Fallback write failed, change kept in memory only",
                    operation=operation,
                    error=str(fallback_error)
                )
                self._warn(operation, [primary_error, fallback_error])
                return False

        self._primary_succeeded(operation)
        if self.mirror_to_fallback:
            try:
                await call(self.fallback)
            except StorageError as mirror_error:
                self.logger.warning(
                    "Fallback mirror write failed",
                    operation=operation,
                    error=str(mirror_error)
                )
        return True

    async def _read(
        self,
        operation: str,
        call: Callable[[StorageBackend], Awaitable[T]],
        empty: T
    ) -> T:
        """Read from the primary, falling back when it fails or is empty."""
        try:
            value = await call(self.primary)
            self._primary_succeeded(operation)
            if value:
                return value
        except StorageError as e:
            self.primary_reliable = False
            self.logger.warning(
                "Primary read failed, reading fallback",
                operation=operation,
                error=str(e)
            )

        try:
            value = await call(self.fallback)
        except StorageError as e:
            self.logger.error("Fallback read failed", operation=operation, error=str(e))
            return empty
        return value or empty

    def _warn(self, operation: str, errors: list[Exception]) -> None:
        warning = StorageWarning(
            operation=operation,
            message="Changes could not be saved and will be lost when the tracker closes.",
            errors=tuple(str(e) for e in errors)
        )
        if self.on_warning:
            self.on_warning(warning)

    async def load_routes(self) -> list[Route]:
        records = await self._read("load_routes", lambda b: b.load_routes(), [])
        routes = []
        for record in records:
            try:
                routes.append(Route.from_dict(record))
            except DataFormatError as e:
                self.logger.warning("Skipping malformed stored route", error=str(e))
        return routes

    async def save_route(self, route: Route) -> bool:
        data = route.to_dict()
        return await self._write("save_route", lambda b: b.save_route(data))

    async def delete_route(self, route_id: str) -> bool:
        return await self._write("delete_route", lambda b: b.delete_route(route_id))

    async def load_current_route_id(self) -> Optional[str]:
        return await self._read("load_current_route_id", lambda b: b.load_current_route_id(), None)

    async def save_current_route_id(self, route_id: Optional[str]) -> bool:
        return await self._write(
            "save_current_route_id", lambda b: b.save_current_route_id(route_id)
        )

    async def load_sessions(self) -> list[TrackingSession]:
        records = await self._read("load_sessions", lambda b: b.load_sessions(), [])
        sessions = []
        for record in records:
            try:
                sessions.append(TrackingSession.from_dict(record))
            except DataFormatError as e:
                self.logger.warning("Skipping malformed stored session", error=str(e))
        return sessions

    async def save_session(self, session: TrackingSession) -> bool:
        data = session.to_dict()
        return await self._write("save_session", lambda b: b.save_session(data))

    async def clear_session(self) -> bool:
        """Remove the active session from both backends, whatever fails."""
        errors: list[Exception] = []
        for backend in (self.primary, self.fallback):
            try:
                await backend.clear_session()
                if backend is self.primary:
                    self._primary_succeeded("clear_session")
            except StorageError as e:
                errors.append(e)
                if backend is self.primary:
                    self.primary_reliable = False
                self.logger.warning(
                    "Session clear failed on backend",
                    backend=backend.name,
                    error=str(e)
                )
        if len(errors) == 2:
            self._warn("clear_session", errors)
            return False
        return True

    async def save_run(self, run: RunRecord) -> bool:
        data = run.to_dict()
        return await self._write("save_run", lambda b: b.save_run(data))

    async def load_runs(self, route_id: Optional[str] = None) -> list[RunRecord]:
        records = await self._read("load_runs", lambda b: b.load_runs(route_id), [])
        runs = []
        for record in records:
            try:
                runs.append(RunRecord.from_dict(record))
            except DataFormatError as e:
                self.logger.warning("Skipping malformed run record", error=str(e))
        return runs

    async def restore(self) -> RestoredState:
        """
        Recover routes, the session singleton and the current route.

        When several session records exist the latest-started one is kept and
        rewritten as the only record. A session whose route no longer exists
        is discarded from both backends.
        """
        routes = await self.load_routes()
        routes_by_id = {route.id: route for route in routes}

        session: Optional[TrackingSession] = None
        sessions = await self.load_sessions()
        if sessions:
            session = max(sessions, key=lambda s: s.start_time)
            if len(sessions) > 1:
                self.logger.warning(
                    "Collapsing duplicate session records",
                    count=len(sessions),
                    kept_route_id=session.route_id
                )
                await self.clear_session()
                await self.save_session(session)
            if session.route_id not in routes_by_id:
                self.logger.warning(
                    "Discarding session for unknown route",
                    route_id=session.route_id
                )
                await self.clear_session()
                session = None
            else:
                try:
                    session.check_against(routes_by_id[session.route_id])
                except DataFormatError as e:
                    self.logger.warning(
                        "Discarding session that does not fit its route",
                        route_id=session.route_id,
                        field=e.field,
                        error=str(e)
                    )
                    await self.clear_session()
                    session = None

        current_route_id: Optional[str] = None
        if session is not None:
            current_route_id = session.route_id
        elif len(routes) == 1:
            current_route_id = routes[0].id
        else:
            remembered = await self.load_current_route_id()
            if remembered in routes_by_id:
                current_route_id = remembered

        self.logger.info(
            "Restored tracker state",
            route_count=len(routes),
            current_route_id=current_route_id,
            has_session=session is not None,
            primary_reliable=self.primary_reliable
        )
        return RestoredState(
            routes=routes,
            current_route_id=current_route_id,
            session=session,
            degraded=not self.primary_reliable
        )
