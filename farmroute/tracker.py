"""
Application facade for the farming route tracker.

Wires configuration, both storage backends, the persistence gateway, the
application context and the tracking state machine. Presentation layers talk
to FarmRouteTracker only and re-render from the state each call returns.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Optional

from .catalog.models import Route
from .catalog.naming import normalize_route
from .config.defaults import TrackerConfig, get_default_config
from .config.loader import ConfigLoader
from .errors import CatalogLocked, SessionConflict, StorageWarning, UnknownRoute
from .inventory.index import NameIndex
from .inventory.reconciliation import InventoryReconciler
from .logging.config import configure_from_params, get_logger
from .persistence.base import StorageBackend
from .persistence.flat_store import FlatFileBackend
from .persistence.gateway import PersistenceGateway, RestoredState
from .persistence.history import RunRecord
from .persistence.sqlite_store import SqliteBackend
from .state.confirm import DELETE_ROUTE, MERGE_IMPORT, ConfirmationGate, Confirmer
from .state.context import TrackerContext
from .state.machine import TrackingStateMachine
from .state.models import InventoryScope, TrackerState, TrackingSession
from .state.views import TrackerView, build_view
from .transfer.snapshot import (
    ImportMode,
    build_export,
    parse_import,
    plan_import,
    read_document,
    write_document,
)
from .utils.time import now_ms

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Outcome of an applied import."""
    mode: ImportMode
    saved: tuple[str, ...]
    removed: tuple[str, ...]
    current_route_id: Optional[str]
    session_adopted: bool


class FarmRouteTracker:
    """
    Single entry point for catalog management, tracking and data transfer.

    Call open() once before anything else to restore persisted state.
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        confirmer: Optional[Confirmer] = None,
        primary: Optional[StorageBackend] = None,
        fallback: Optional[StorageBackend] = None,
        clock: Callable[[], int] = now_ms
    ) -> None:
        self.config = config or get_default_config()
        self.logger = logger
        self.clock = clock
        self.warnings: list[StorageWarning] = []

        storage = self.config.storage
        self.gateway = PersistenceGateway(
            primary=primary or SqliteBackend(storage.db_path),
            fallback=fallback or FlatFileBackend(storage.fallback_path),
            on_warning=self._on_storage_warning,
            mirror_to_fallback=storage.mirror_to_fallback,
        )
        self.context = TrackerContext()
        self.confirm = ConfirmationGate(confirmer)
        self.machine = TrackingStateMachine(
            self.context,
            self.gateway,
            confirm=self.confirm,
            clock=clock,
            record_history=self.config.tracking.record_history,
        )

    @classmethod
    def from_config_dir(
        cls,
        config_dir: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None,
        confirmer: Optional[Confirmer] = None
    ) -> "FarmRouteTracker":
        """Load tracker.yaml, configure logging and build a tracker."""
        loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
        config = loader.load(overrides)
        configure_from_params(config.logging)
        return cls(config=config, confirmer=confirmer)

    def _on_storage_warning(self, warning: StorageWarning) -> None:
        self.warnings.append(warning)
        self.logger.error(
            "Storage warning raised",
            operation=warning.operation,
            message=warning.message
        )

    async def open(self) -> RestoredState:
        """Probe storage and restore routes, session and current route."""
        await self.gateway.check()
        restored = await self.gateway.restore()
        self.context.routes = {route.id: route for route in restored.routes}
        self.context.current_route_id = restored.current_route_id
        if restored.session is not None:
            self.context.create_session(restored.session)
        return restored

    @property
    def state(self) -> TrackerState:
        return self.machine.state

    @property
    def session(self) -> Optional[TrackingSession]:
        return self.context.session

    @property
    def routes(self) -> list[Route]:
        return list(self.context.routes.values())

    @property
    def current_route_id(self) -> Optional[str]:
        return self.context.current_route_id

    @property
    def current_route(self) -> Optional[Route]:
        route_id = self.context.current_route_id
        return self.context.routes.get(route_id) if route_id else None

    @property
    def storage_reliable(self) -> bool:
        return self.gateway.primary_reliable

    # Catalog

    def _ensure_catalog_unlocked(self, route_id: Optional[str] = None) -> None:
        if self.context.has_session:
            raise CatalogLocked(
                "Routes cannot be changed while a route is being tracked",
                route_id=route_id,
                context={"active_route_id": self.context.session.route_id}
            )

    async def save_route(self, route: Route) -> Route:
        """
        Create or replace a route.

        Raises:
            CatalogLocked: If a session is active
            MissingItemName: If an item that needs a name has none
        """
        self._ensure_catalog_unlocked(route.id)
        normalized = normalize_route(route)
        self.context.put_route(normalized)
        self.logger.info("Route saved", route_id=normalized.id, stop_count=len(normalized.stops))
        await self.gateway.save_route(normalized)
        return normalized

    async def delete_route(self, route_id: str) -> bool:
        """
        Delete a route after confirmation.

        Returns:
            False if the user declined
        """
        self._ensure_catalog_unlocked(route_id)
        self.context.route(route_id)
        if not await self.confirm.ask(DELETE_ROUTE):
            self.logger.info("Route deletion declined", route_id=route_id)
            return False

        self.context.remove_route(route_id)
        pointer_cleared = self.context.current_route_id == route_id
        if pointer_cleared:
            self.context.current_route_id = None
        self.logger.info("Route deleted", route_id=route_id)

        await self.gateway.delete_route(route_id)
        if pointer_cleared:
            await self.gateway.save_current_route_id(None)
        return True

    async def select_route(self, route_id: str) -> Route:
        """
        Point the tracker at a route without starting it.

        Raises:
            UnknownRoute: If the route does not exist
            SessionConflict: If a different route is being tracked
        """
        route = self.context.route(route_id)
        session = self.context.session
        if session is not None and session.route_id != route_id:
            raise SessionConflict(
                f"Route {session.route_id} is already being tracked",
                active_route_id=session.route_id,
                requested_route_id=route_id
            )
        self.context.current_route_id = route_id
        await self.gateway.save_current_route_id(route_id)
        return route

    # Tracking

    async def start(self, route_id: Optional[str] = None) -> TrackerState:
        """Start tracking the given route, or the current route when omitted."""
        target = route_id or self.context.current_route_id
        if target is None:
            raise UnknownRoute("No route selected to start")
        return await self.machine.start(target)

    async def toggle_collected(self, item_id: str) -> TrackerState:
        return await self.machine.toggle_collected(item_id)

    async def update_notes(self, notes: str) -> TrackerState:
        return await self.machine.update_notes(notes)

    async def next(self) -> TrackerState:
        return await self.machine.next()

    async def previous(self) -> TrackerState:
        return await self.machine.previous()

    async def submit_inventory(self, values: Mapping[str, Any]) -> TrackerState:
        return await self.machine.submit_inventory(values)

    async def skip_inventory(self) -> TrackerState:
        return await self.machine.skip_inventory()

    async def complete(self) -> TrackerState:
        return await self.machine.complete()

    async def cancel(self) -> TrackerState:
        return await self.machine.cancel()

    def view(self, now: Optional[int] = None) -> TrackerView:
        """Progress view for the presentation layer."""
        session = self.context.session
        route = self.context.routes.get(session.route_id) if session else self.current_route
        return build_view(self.machine.state, route, session, now if now is not None else self.clock())

    def inventory_snapshot(self, scope: InventoryScope) -> NameIndex:
        """Harvestable items of the active route in scope, grouped by name."""
        session = self.context.require_session()
        reconciler = InventoryReconciler(self.context.active_route(), session.inventory)
        return reconciler.snapshot(scope)

    async def run_history(self, route_id: Optional[str] = None) -> list[RunRecord]:
        return await self.gateway.load_runs(route_id)

    # Transfer

    def export_document(self, include_session: bool = True) -> dict[str, Any]:
        return build_export(
            self.context.routes.values(),
            self.context.current_route_id,
            session=self.context.session,
            version=self.config.tracking.export_version,
            include_session=include_session,
        )

    def export_to_file(self, path: str, include_session: bool = True) -> Path:
        return write_document(self.export_document(include_session), path)

    async def import_document(
        self,
        document: Any,
        mode: Optional[ImportMode] = None
    ) -> ImportResult:
        """
        Apply an import document.

        When mode is omitted and routes already exist, the user is asked
        whether to merge or replace.

        Raises:
            CatalogLocked: If a session is active
            DataFormatError: If the document is malformed
            MissingItemName: If an imported item that needs a name has none
        """
        self._ensure_catalog_unlocked()
        payload = parse_import(document)
        payload = replace(payload, routes=tuple(normalize_route(route) for route in payload.routes))
        imported = {route.id: route for route in payload.routes}
        if payload.session is not None and payload.session.route_id in imported:
            payload.session.check_against(imported[payload.session.route_id])

        if mode is None:
            if self.context.routes:
                mode = ImportMode.MERGE if await self.confirm.ask(MERGE_IMPORT) else ImportMode.REPLACE
            else:
                mode = ImportMode.REPLACE

        plan = plan_import(self.context.routes, payload, mode)
        if payload.session is not None and payload.session.route_id in plan.routes:
            payload.session.check_against(plan.routes[payload.session.route_id])

        self.context.routes = dict(plan.routes)

        if payload.current_route_id in plan.routes:
            self.context.current_route_id = payload.current_route_id
        elif self.context.current_route_id not in plan.routes:
            self.context.current_route_id = None

        session_adopted = False
        if payload.session is not None and payload.session.route_id in plan.routes:
            self.context.create_session(payload.session)
            self.context.current_route_id = payload.session.route_id
            session_adopted = True

        self.logger.info(
            "Import applied",
            mode=mode.value,
            saved=len(plan.saved),
            removed=len(plan.removed),
            session_adopted=session_adopted,
            version=payload.version
        )

        for route_id in plan.saved:
            await self.gateway.save_route(plan.routes[route_id])
        for route_id in plan.removed:
            await self.gateway.delete_route(route_id)
        await self.gateway.save_current_route_id(self.context.current_route_id)
        if session_adopted:
            await self.gateway.save_session(payload.session)

        return ImportResult(
            mode=mode,
            saved=plan.saved,
            removed=plan.removed,
            current_route_id=self.context.current_route_id,
            session_adopted=session_adopted,
        )

    async def import_file(self, path: str, mode: Optional[ImportMode] = None) -> ImportResult:
        return await self.import_document(read_document(path), mode)
