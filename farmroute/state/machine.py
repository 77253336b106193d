"""
Tracking session state machine.

States are Idle, AtStop(i) and AwaitingInventory(scope, direction). An
inventory checkpoint suspends navigation; submitting or skipping it resumes
the suspended move. Every transition is applied in memory first and then
mirrored through the persistence gateway, whose failures never roll the
in-memory state back.
"""

from collections.abc import Callable, Mapping
from typing import Any, Optional

from ..catalog.models import ItemIdentity, Route
from ..errors import InvalidTransition, SessionConflict, UnknownItem, UserCancelled
from ..inventory.reconciliation import InventoryReconciler
from ..logging.config import get_state_logger, log_inventory_commit, log_state_transition
from ..persistence.gateway import PersistenceGateway
from ..persistence.history import build_run_record
from ..utils.time import now_ms
from .confirm import CANCEL_ROUTE, COMPLETE_ROUTE, ConfirmationGate
from .context import TrackerContext
from .models import (
    InventoryScope,
    PendingDirection,
    PendingInventory,
    ScopeKind,
    SessionPhase,
    TrackerState,
    TrackingSession,
)

state_logger = get_state_logger(__name__)


class TrackingStateMachine:
    """Orchestrates session lifecycle, stop navigation and checkpoints."""

    def __init__(
        self,
        context: TrackerContext,
        gateway: PersistenceGateway,
        confirm: Optional[ConfirmationGate] = None,
        clock: Callable[[], int] = now_ms,
        record_history: bool = True
    ):
        self.context = context
        self.gateway = gateway
        self.confirm = confirm or ConfirmationGate()
        self.clock = clock
        self.record_history = record_history
        self.logger = state_logger

    @property
    def state(self) -> TrackerState:
        """Current state, derived from the session record."""
        session = self.context.session
        if session is None:
            return TrackerState.idle()
        if session.pending is not None:
            return TrackerState(
                SessionPhase.AWAITING_INVENTORY,
                stop_index=session.current_stop_index,
                pending=session.pending
            )
        return TrackerState(SessionPhase.AT_STOP, stop_index=session.current_stop_index)

    async def start(self, route_id: str) -> TrackerState:
        """
        Begin tracking a route.

        Starting the route that is already being tracked resumes it unchanged.

        Raises:
            UnknownRoute: If the route is not in the catalog
            SessionConflict: If a different route is being tracked
        """
        route = self.context.route(route_id)
        active = self.context.session
        if active is not None:
            if active.route_id != route.id:
                raise SessionConflict(
                    f"Route {active.route_id} is already being tracked",
                    active_route_id=active.route_id,
                    requested_route_id=route.id
                )
            self.logger.info("Session already active, resuming", route_id=route.id)
            return self.state

        from_state = self.state
        session = TrackingSession.begin(route, self.clock())
        self.context.create_session(session)
        self.context.current_route_id = route.id

        if route.auto_inventory_checks and route.has_harvestables:
            self._await_inventory(session, route, InventoryScope.pre_route())
        elif route.stops and route.stops[0].requests_inventory:
            self._await_inventory(session, route, InventoryScope.pre_stop(route.stops[0].id))

        self._log_transition(from_state, "start", {
            "item_count": len(session.collected_items),
            "stop_count": len(route.stops),
        })
        await self.gateway.save_session(session)
        await self.gateway.save_current_route_id(route.id)
        return self.state

    async def toggle_collected(self, item_id: str) -> TrackerState:
        """
        Flip the collected flag of one item.

        Raises:
            NoActiveSession: If idle
            UnknownItem: If the id was not in the route when tracking started
        """
        session = self.context.require_session()
        key = ItemIdentity(item_id)
        if key not in session.collected_items:
            raise UnknownItem(
                f"Item {item_id} is not part of this run",
                item_id=item_id,
                context={"route_id": session.route_id}
            )
        session.collected_items[key] = not session.collected_items[key]
        self.logger.debug(
            "Toggled item",
            route_id=session.route_id,
            item_id=item_id,
            collected=session.collected_items[key]
        )
        await self.gateway.save_session(session)
        return self.state

    async def update_notes(self, notes: str) -> TrackerState:
        session = self.context.require_session()
        session.notes = notes
        await self.gateway.save_session(session)
        return self.state

    async def next(self) -> TrackerState:
        """Move forward, collecting the exit checkpoint of the current stop first."""
        session = self._require_at_stop("next")
        from_state = self.state
        self._advance(session, self.context.active_route())
        return await self._commit_transition(session, from_state, "next")

    async def previous(self) -> TrackerState:
        """Move back, collecting the entry checkpoint of the current stop first."""
        session = self._require_at_stop("previous")
        from_state = self.state
        self._retreat(session, self.context.active_route())
        return await self._commit_transition(session, from_state, "previous")

    async def submit_inventory(self, values: Mapping[str, Any]) -> TrackerState:
        """
        Record the awaited checkpoint and resume the suspended move.

        Raises:
            InvalidTransition: If no checkpoint is awaited
            InvalidInventoryValue: If a count is not numeric
        """
        return await self._resolve_inventory(values, "submit_inventory")

    async def skip_inventory(self) -> TrackerState:
        """Decline the awaited checkpoint; an empty record is stored."""
        return await self._resolve_inventory({}, "skip_inventory")

    async def complete(self) -> TrackerState:
        """
        Finish the run.

        With automatic checks enabled, the post-route checkpoint is collected
        first; completion resumes once it is submitted or skipped.
        """
        session = self.context.require_session()
        route = self.context.active_route()
        from_state = self.state

        if (route.auto_inventory_checks
                and session.inventory.post_route is None
                and route.has_harvestables):
            if from_state.scope != InventoryScope.post_route():
                self._await_inventory(
                    session, route, InventoryScope.post_route(), PendingDirection.COMPLETING
                )
                return await self._commit_transition(session, from_state, "complete")
            return from_state

        try:
            await self.confirm.require(COMPLETE_ROUTE)
        except UserCancelled:
            self.logger.info("Route completion declined", route_id=route.id)
            return self.state

        updated_route = route.with_completed_run()
        self.context.put_route(updated_route)
        run = build_run_record(updated_route, session, self.clock()) if self.record_history else None
        self.context.destroy_session()
        self.context.current_route_id = None

        self._log_transition(from_state, "complete", {
            "completed_runs": updated_route.completed_runs,
            "collected": session.collected_count,
            "total": len(session.collected_items),
        }, route_id=route.id)

        await self.gateway.save_route(updated_route)
        if run is not None:
            await self.gateway.save_run(run)
        await self.gateway.clear_session()
        await self.gateway.save_current_route_id(None)
        return self.state

    async def cancel(self) -> TrackerState:
        """Abandon the run without touching the route."""
        from_state = self.state
        try:
            await self.confirm.require(CANCEL_ROUTE)
        except UserCancelled:
            self.logger.info("Route cancellation declined")
            return self.state

        session = self.context.destroy_session()
        self.context.current_route_id = None
        self._log_transition(
            from_state, "cancel", route_id=session.route_id if session else None
        )

        await self.gateway.clear_session()
        await self.gateway.save_current_route_id(None)
        return self.state

    def _require_at_stop(self, operation: str) -> TrackingSession:
        session = self.context.require_session()
        if session.pending is not None:
            raise InvalidTransition(
                f"Cannot {operation} while an inventory check is pending",
                current_state=self.state.describe(),
                attempted=operation
            )
        return session

    def _await_inventory(
        self,
        session: TrackingSession,
        route: Route,
        scope: InventoryScope,
        direction: PendingDirection = PendingDirection.NONE
    ) -> None:
        reconciler = InventoryReconciler(route, session.inventory)
        session.pending = PendingInventory(
            scope=scope,
            direction=direction,
            suggested=reconciler.suggested_values(scope)
        )

    def _advance(self, session: TrackingSession, route: Route) -> None:
        if not route.stops:
            return
        index = session.current_stop_index
        stop = route.stops[index]

        if stop.requests_inventory and not session.inventory.has_post_stop(stop.id):
            self._await_inventory(
                session, route, InventoryScope.post_stop(stop.id), PendingDirection.FORWARD
            )
            return

        if index >= len(route.stops) - 1:
            return

        session.current_stop_index = index + 1
        entered = route.stops[index + 1]
        if entered.requests_inventory and not session.inventory.has_pre_stop(entered.id):
            self._await_inventory(session, route, InventoryScope.pre_stop(entered.id))

    def _retreat(self, session: TrackingSession, route: Route) -> None:
        if not route.stops:
            return
        index = session.current_stop_index
        stop = route.stops[index]

        if stop.requests_inventory and not session.inventory.has_pre_stop(stop.id):
            self._await_inventory(
                session, route, InventoryScope.pre_stop(stop.id), PendingDirection.BACKWARD
            )
            return

        if index == 0:
            return

        session.current_stop_index = index - 1
        entered = route.stops[index - 1]
        if entered.requests_inventory:
            # Seeded from the best prior value rather than a blank prompt
            self._await_inventory(session, route, InventoryScope.post_stop(entered.id))

    async def _resolve_inventory(self, values: Mapping[str, Any], trigger: str) -> TrackerState:
        session = self.context.require_session()
        pending = session.pending
        if pending is None:
            raise InvalidTransition(
                "No inventory check is pending",
                current_state=self.state.describe(),
                attempted=trigger
            )

        route = self.context.active_route()
        from_state = self.state
        reconciler = InventoryReconciler(route, session.inventory)
        result = reconciler.commit(pending.scope, values)

        context: dict[str, Any] = {}
        if pending.scope.kind == ScopeKind.POST_STOP:
            context["added_amount"] = dict(result.added_amount)
            context["route_inventory"] = dict(session.inventory.route_inventory)
        log_inventory_commit(
            self.logger,
            route_id=route.id,
            scope=pending.scope.label,
            values=dict(values),
            context=context or None
        )

        session.pending = None
        if pending.direction == PendingDirection.FORWARD:
            self._advance(session, route)
        elif pending.direction == PendingDirection.BACKWARD:
            self._retreat(session, route)
        elif pending.direction == PendingDirection.COMPLETING:
            await self._commit_transition(session, from_state, trigger)
            return await self.complete()

        return await self._commit_transition(session, from_state, trigger)

    async def _commit_transition(
        self,
        session: TrackingSession,
        from_state: TrackerState,
        trigger: str
    ) -> TrackerState:
        self._log_transition(from_state, trigger)
        await self.gateway.save_session(session)
        return self.state

    def _log_transition(
        self,
        from_state: TrackerState,
        trigger: str,
        context: Optional[dict[str, Any]] = None,
        route_id: Optional[str] = None
    ) -> None:
        to_state = self.state
        if route_id is None and self.context.session is not None:
            route_id = self.context.session.route_id
        log_state_transition(
            self.logger,
            route_id=route_id,
            from_state=from_state.describe(),
            to_state=to_state.describe(),
            trigger=trigger,
            context=context
        )
