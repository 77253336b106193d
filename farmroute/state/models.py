"""
Tracking session data models.

This module defines the persisted session record, its inventory snapshot, and
the immutable state-machine values (phase, inventory scope, pending
direction) derived from it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..catalog.models import ItemDisplayName, ItemIdentity, Route
from ..errors import DataFormatError


class SessionPhase(str, Enum):
    """Top-level state machine phases."""
    IDLE = "idle"
    AT_STOP = "at_stop"
    AWAITING_INVENTORY = "awaiting_inventory"


class ScopeKind(str, Enum):
    """Where an inventory checkpoint is taken."""
    PRE_ROUTE = "pre_route"
    POST_ROUTE = "post_route"
    PRE_STOP = "pre_stop"
    POST_STOP = "post_stop"


class PendingDirection(str, Enum):
    """Navigation suspended while an inventory checkpoint is awaited."""
    NONE = "none"
    FORWARD = "forward"
    BACKWARD = "backward"
    COMPLETING = "completing"


@dataclass(frozen=True)
class InventoryScope:
    """Checkpoint target: the whole route, or one stop."""

    kind: ScopeKind
    stop_id: Optional[str] = None

    @classmethod
    def pre_route(cls) -> "InventoryScope":
        return cls(ScopeKind.PRE_ROUTE)

    @classmethod
    def post_route(cls) -> "InventoryScope":
        return cls(ScopeKind.POST_ROUTE)

    @classmethod
    def pre_stop(cls, stop_id: str) -> "InventoryScope":
        return cls(ScopeKind.PRE_STOP, stop_id)

    @classmethod
    def post_stop(cls, stop_id: str) -> "InventoryScope":
        return cls(ScopeKind.POST_STOP, stop_id)

    @property
    def is_route_level(self) -> bool:
        return self.kind in (ScopeKind.PRE_ROUTE, ScopeKind.POST_ROUTE)

    @property
    def label(self) -> str:
        if self.stop_id:
            return f"{self.kind.value}:{self.stop_id}"
        return self.kind.value


@dataclass(frozen=True)
class PendingInventory:
    """An inventory checkpoint the user must submit or skip."""

    scope: InventoryScope
    direction: PendingDirection = PendingDirection.NONE
    suggested: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope.kind.value,
            "stopId": self.scope.stop_id,
            "direction": self.direction.value,
            "suggested": dict(self.suggested),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PendingInventory":
        try:
            scope = InventoryScope(ScopeKind(data["scope"]), data.get("stopId"))
            direction = PendingDirection(data.get("direction", PendingDirection.NONE.value))
        except (KeyError, ValueError) as e:
            raise DataFormatError(
                f"Invalid pending inventory record: {e}",
                field="pendingInventory",
                expected="scope and direction"
            )
        return cls(scope=scope, direction=direction, suggested=dict(data.get("suggested") or {}))


@dataclass(frozen=True)
class TrackerState:
    """Observable state of the tracking state machine."""

    phase: SessionPhase
    stop_index: Optional[int] = None
    pending: Optional[PendingInventory] = None

    @classmethod
    def idle(cls) -> "TrackerState":
        return cls(SessionPhase.IDLE)

    @property
    def is_active(self) -> bool:
        return self.phase != SessionPhase.IDLE

    @property
    def scope(self) -> Optional[InventoryScope]:
        return self.pending.scope if self.pending else None

    @property
    def direction(self) -> Optional[PendingDirection]:
        return self.pending.direction if self.pending else None

    def describe(self) -> str:
        if self.phase == SessionPhase.IDLE:
            return "idle"
        if self.phase == SessionPhase.AT_STOP:
            return f"at_stop({self.stop_index})"
        return f"awaiting({self.pending.scope.label}, {self.pending.direction.value})"


@dataclass
class StopInventory:
    """Checkpoint records for one collecting stop."""

    pre_stop: Optional[dict[ItemIdentity, float]] = None        # identity-keyed
    post_stop: Optional[dict[ItemIdentity, float]] = None       # identity-keyed
    added_amount: Optional[dict[ItemDisplayName, float]] = None  # name-keyed
    credited: Optional[dict[ItemDisplayName, float]] = None      # name-keyed, ledger share so far

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.pre_stop is not None:
            result["preStop"] = dict(self.pre_stop)
        if self.post_stop is not None:
            result["postStop"] = dict(self.post_stop)
        if self.added_amount is not None:
            result["addedAmount"] = dict(self.added_amount)
        if self.credited is not None:
            result["creditedAmount"] = dict(self.credited)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StopInventory":
        return cls(
            pre_stop=_optional_counts(data, "preStop"),
            post_stop=_optional_counts(data, "postStop"),
            added_amount=_optional_counts(data, "addedAmount"),
            credited=_optional_counts(data, "creditedAmount"),
        )


@dataclass
class InventorySnapshot:
    """Route and stop inventory checkpoints plus the running ledger."""

    pre_route: Optional[dict[ItemDisplayName, float]] = None
    post_route: Optional[dict[ItemDisplayName, float]] = None
    route_inventory: dict[ItemDisplayName, float] = field(default_factory=dict)
    stops: dict[str, StopInventory] = field(default_factory=dict)

    def stop(self, stop_id: str) -> StopInventory:
        """Get or create the record for a stop."""
        if stop_id not in self.stops:
            self.stops[stop_id] = StopInventory()
        return self.stops[stop_id]

    def has_pre_stop(self, stop_id: str) -> bool:
        record = self.stops.get(stop_id)
        return record is not None and record.pre_stop is not None

    def has_post_stop(self, stop_id: str) -> bool:
        record = self.stops.get(stop_id)
        return record is not None and record.post_stop is not None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"routeInventory": dict(self.route_inventory)}
        if self.pre_route is not None:
            result["preRoute"] = dict(self.pre_route)
        if self.post_route is not None:
            result["postRoute"] = dict(self.post_route)
        if self.stops:
            result["stops"] = {stop_id: record.to_dict() for stop_id, record in self.stops.items()}
        return result

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "InventorySnapshot":
        data = data or {}
        stops = data.get("stops") or {}
        return cls(
            pre_route=_optional_counts(data, "preRoute"),
            post_route=_optional_counts(data, "postRoute"),
            route_inventory=_optional_counts(data, "routeInventory") or {},
            stops={stop_id: StopInventory.from_dict(record or {}) for stop_id, record in stops.items()},
        )


@dataclass
class TrackingSession:
    """The single in-progress run of a route."""

    route_id: str
    start_time: int                                     # epoch ms
    current_stop_index: int = 0
    collected_items: dict[ItemIdentity, bool] = field(default_factory=dict)
    notes: str = ""
    inventory: InventorySnapshot = field(default_factory=InventorySnapshot)
    pending: Optional[PendingInventory] = None

    @classmethod
    def begin(cls, route: Route, start_time: int) -> "TrackingSession":
        """Create a session seeded with every item id present in the route now."""
        return cls(
            route_id=route.id,
            start_time=start_time,
            collected_items={item_id: False for item_id in route.item_ids()},
        )

    @property
    def collected_count(self) -> int:
        return sum(1 for collected in self.collected_items.values() if collected)

    def check_against(self, route: Route) -> None:
        """
        Verify that a decoded session addresses only stops and items of its route.

        Raises:
            DataFormatError: If the stop index, pending scope, collected items
                or stop inventory records reference something the route lacks
        """
        context = {"route_id": route.id}
        if route.id != self.route_id:
            raise DataFormatError(
                f"Session belongs to route {self.route_id}, not {route.id}",
                field="activeSession.routeId",
                expected=route.id,
                context=context
            )

        last_index = max(len(route.stops) - 1, 0)
        if not 0 <= self.current_stop_index <= last_index:
            raise DataFormatError(
                f"Session stop index {self.current_stop_index} is outside route {route.id}",
                field="activeSession.currentStopIndex",
                expected=f"0..{last_index}",
                context=context
            )

        stop_ids = {stop.id for stop in route.stops}
        if self.pending is not None:
            scope = self.pending.scope
            if scope.is_route_level:
                if scope.stop_id is not None:
                    raise DataFormatError(
                        "Route-level pending inventory must not name a stop",
                        field="activeSession.pendingInventory.stopId",
                        expected="null",
                        context=context
                    )
            elif scope.stop_id not in stop_ids:
                raise DataFormatError(
                    f"Pending inventory names unknown stop {scope.stop_id!r}",
                    field="activeSession.pendingInventory.stopId",
                    expected="stop id of the route",
                    context=context
                )

        unknown_items = set(self.collected_items) - set(route.item_ids())
        if unknown_items:
            raise DataFormatError(
                f"Session tracks items missing from route {route.id}",
                field="activeSession.collectedItems",
                expected="item ids of the route",
                context={**context, "item_ids": sorted(unknown_items)}
            )

        unknown_stops = set(self.inventory.stops) - stop_ids
        if unknown_stops:
            raise DataFormatError(
                f"Session inventory names stops missing from route {route.id}",
                field="activeSession.inventoryData.stops",
                expected="stop ids of the route",
                context={**context, "stop_ids": sorted(unknown_stops)}
            )

    def to_dict(self) -> dict[str, Any]:
        result = {
            "routeId": self.route_id,
            "startTime": self.start_time,
            "currentStopIndex": self.current_stop_index,
            "collectedItems": dict(self.collected_items),
            "notes": self.notes,
            "inventoryData": self.inventory.to_dict(),
        }
        if self.pending is not None:
            result["pendingInventory"] = self.pending.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackingSession":
        if not isinstance(data, dict) or not isinstance(data.get("routeId"), str):
            raise DataFormatError(
                "Session record is missing routeId",
                field="activeSession.routeId",
                expected="string"
            )
        pending = data.get("pendingInventory")
        collected = data.get("collectedItems") or {}
        if not isinstance(collected, dict):
            raise DataFormatError(
                "Session collectedItems must be an object",
                field="activeSession.collectedItems",
                expected="object"
            )
        if pending is not None and not isinstance(pending, dict):
            raise DataFormatError(
                "Session pendingInventory must be an object",
                field="activeSession.pendingInventory",
                expected="object"
            )
        return cls(
            route_id=data["routeId"],
            start_time=_whole_number(data, "startTime"),
            current_stop_index=_whole_number(data, "currentStopIndex"),
            collected_items={
                ItemIdentity(item_id): bool(flag)
                for item_id, flag in collected.items()
            },
            notes=str(data.get("notes") or ""),
            inventory=InventorySnapshot.from_dict(data.get("inventoryData")),
            pending=PendingInventory.from_dict(pending) if pending else None,
        )


def _optional_counts(data: dict[str, Any], key: str) -> Optional[dict[str, float]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise DataFormatError(
            f"Inventory record '{key}' must be an object",
            field=key,
            expected="object"
        )
    return dict(value)


def _whole_number(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or (isinstance(value, float) and not value.is_integer())
        or value < 0
    ):
        raise DataFormatError(
            f"Session {key} must be a non-negative whole number",
            field=f"activeSession.{key}",
            expected="non-negative integer"
        )
    return int(value)
