"""Read-only progress view handed to the presentation layer."""

import math
from dataclasses import dataclass, field
from typing import Optional

from ..catalog.models import Route
from ..inventory.reconciliation import InventoryLine, InventoryReconciler
from ..utils.time import elapsed_ms, format_elapsed
from .models import InventoryScope, SessionPhase, TrackerState, TrackingSession


@dataclass(frozen=True)
class TrackerView:
    """Everything needed to render tracking progress."""

    phase: SessionPhase
    route_id: Optional[str] = None
    route_name: Optional[str] = None
    stop_index: Optional[int] = None
    stop_count: int = 0
    current_stop_name: Optional[str] = None
    pending_scope: Optional[InventoryScope] = None
    suggested_values: dict[str, float] = field(default_factory=dict)
    collected: int = 0
    total: int = 0
    percent: int = 0
    current_stop_complete: bool = False
    elapsed: str = "00:00:00"
    notes: str = ""
    route_lines: list[InventoryLine] = field(default_factory=list)
    stop_lines: dict[str, list[InventoryLine]] = field(default_factory=dict)

    @property
    def is_tracking(self) -> bool:
        return self.phase != SessionPhase.IDLE


def progress_percent(collected: int, total: int) -> int:
    """Whole-number percentage, rounding halves up."""
    if total <= 0:
        return 0
    return int(math.floor(collected * 100 / total + 0.5))


def build_view(
    state: TrackerState,
    route: Optional[Route],
    session: Optional[TrackingSession],
    now: Optional[int] = None
) -> TrackerView:
    """Project the current state, route and session into a TrackerView."""
    if session is None or route is None:
        return TrackerView(
            phase=state.phase,
            route_id=route.id if route else None,
            route_name=route.name if route else None,
            stop_count=len(route.stops) if route else 0,
        )

    index = session.current_stop_index
    stop = route.stops[index] if 0 <= index < len(route.stops) else None
    total = len(session.collected_items)
    collected = session.collected_count

    stop_complete = False
    if stop is not None and stop.items:
        stop_complete = all(session.collected_items.get(item.id, False) for item in stop.items)

    reconciler = InventoryReconciler(route, session.inventory)
    stop_lines = {
        s.id: reconciler.stop_lines(s.id)
        for s in route.stops
        if s.requests_inventory
    }

    return TrackerView(
        phase=state.phase,
        route_id=route.id,
        route_name=route.name,
        stop_index=index,
        stop_count=len(route.stops),
        current_stop_name=stop.name if stop else None,
        pending_scope=state.scope,
        suggested_values=dict(state.pending.suggested) if state.pending else {},
        collected=collected,
        total=total,
        percent=progress_percent(collected, total),
        current_stop_complete=stop_complete,
        elapsed=format_elapsed(elapsed_ms(session.start_time, now)),
        notes=session.notes,
        route_lines=reconciler.route_lines() if route.has_harvestables else [],
        stop_lines=stop_lines,
    )
