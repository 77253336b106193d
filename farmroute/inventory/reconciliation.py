"""
Inventory reconciliation engine.

Users report counts per resource name; stop checkpoints are stored per item
identity. A name-level total V entered for k same-named instances in a stop
is split equally (V / k each, unrounded) because a combined count cannot be
attributed to a specific spawn point. Route checkpoints are stored by name.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import structlog

from ..catalog.models import ItemDisplayName, ItemIdentity, Route
from ..errors import InvalidInventoryValue, UnknownStop
from ..state.models import InventoryScope, InventorySnapshot, ScopeKind
from .index import NameIndex

logger = structlog.get_logger(__name__)


class RouteMode(str, Enum):
    PRE = "pre"
    POST = "post"


class StopMode(str, Enum):
    PRE_STOP = "preStop"
    POST_STOP = "postStop"


@dataclass(frozen=True)
class StopCommit:
    """Result of a stop-level checkpoint."""
    stop_id: str
    mode: StopMode
    per_instance: dict[ItemIdentity, float]
    added_amount: dict[ItemDisplayName, float] = field(default_factory=dict)


@dataclass(frozen=True)
class InventoryLine:
    """Per-name reconciliation row for display."""
    name: str
    pre: Optional[float]
    post: Optional[float]
    diff: float
    gained: float = 0.0


def clamp_count(name: str, value: Any) -> int:
    """
    Clamp a user-entered count to a non-negative integer.

    Raises:
        InvalidInventoryValue: If the value is not numeric
    """
    if isinstance(value, bool):
        raise InvalidInventoryValue(f"Count for {name} must be a number", name=name, value=value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInventoryValue(f"Count for {name} must be a number", name=name, value=value)
    if math.isnan(number):
        raise InvalidInventoryValue(f"Count for {name} must be a number", name=name, value=value)
    if number <= 0:
        return 0
    if math.isinf(number):
        raise InvalidInventoryValue(f"Count for {name} is out of range", name=name, value=value)
    return int(number)


def normalize_counts(values: Optional[Mapping[str, Any]]) -> dict[ItemDisplayName, int]:
    """Clamp every entry of a name-keyed form submission."""
    if not values:
        return {}
    return {ItemDisplayName(str(name)): clamp_count(str(name), value) for name, value in values.items()}


def calculate_added_items(
    pre_route: Optional[Mapping[str, float]],
    post_route: Optional[Mapping[str, float]]
) -> dict[str, float]:
    """Positive post − pre differences by name."""
    pre_route = pre_route or {}
    post_route = post_route or {}
    added = {}
    for name in dict.fromkeys([*pre_route, *post_route]):
        difference = post_route.get(name, 0) - pre_route.get(name, 0)
        if difference > 0:
            added[name] = difference
    return added


def tidy(value: float) -> float:
    """Collapse split-and-resum float noise for display."""
    rounded = round(value, 9)
    if rounded == int(rounded):
        return int(rounded)
    return rounded


class InventoryReconciler:
    """Reconciles name-level counts against one session's snapshot."""

    def __init__(self, route: Route, inventory: InventorySnapshot):
        self.route = route
        self.inventory = inventory
        self.logger = logger

    def snapshot(self, scope: InventoryScope) -> NameIndex:
        """Harvestable items in scope grouped by name."""
        if scope.is_route_level:
            return NameIndex.for_route(self.route)
        return NameIndex.for_stop(self._stop(scope.stop_id))

    def commit(self, scope: InventoryScope, values: Mapping[str, Any]) -> Any:
        """Clamp and record values for any scope."""
        counts = normalize_counts(values)
        if scope.kind == ScopeKind.PRE_ROUTE:
            return self.record_route_level(RouteMode.PRE, counts)
        if scope.kind == ScopeKind.POST_ROUTE:
            return self.record_route_level(RouteMode.POST, counts)
        if scope.kind == ScopeKind.PRE_STOP:
            return self.record_stop_level(StopMode.PRE_STOP, scope.stop_id, counts)
        return self.record_stop_level(StopMode.POST_STOP, scope.stop_id, counts)

    def record_route_level(
        self,
        mode: RouteMode,
        values_by_name: Mapping[str, float]
    ) -> dict[ItemDisplayName, float]:
        """Store route checkpoint verbatim; a pre checkpoint also seeds the ledger."""
        values = {ItemDisplayName(name): value for name, value in values_by_name.items()}
        if mode == RouteMode.PRE:
            self.inventory.pre_route = dict(values)
            self.inventory.route_inventory = dict(values)
        else:
            self.inventory.post_route = dict(values)
        return values

    def record_stop_level(
        self,
        mode: StopMode,
        stop_id: str,
        values_by_name: Mapping[str, float]
    ) -> StopCommit:
        """
        Split name totals equally across same-named instances in the stop.

        For a post-stop checkpoint, also compute the amount added at the stop
        and accumulate it into the route ledger.
        """
        index = NameIndex.for_stop(self._stop(stop_id))
        record = self.inventory.stop(stop_id)

        per_instance: dict[ItemIdentity, float] = {}
        for name, total in values_by_name.items():
            identities = index.identities(name)
            if not identities:
                self.logger.warning(
                    "Ignoring count for name not harvestable at stop",
                    stop_id=stop_id,
                    name=name
                )
                continue
            share = total / len(identities)
            for identity in identities:
                per_instance[identity] = share

        if mode == StopMode.PRE_STOP:
            record.pre_stop = per_instance
            return StopCommit(stop_id=stop_id, mode=mode, per_instance=per_instance)

        if record.credited is None:
            record.credited = {
                name: max(0, amount) for name, amount in (record.added_amount or {}).items()
            }
        pre_totals = index.aggregate(record.pre_stop)
        post_totals = index.aggregate(per_instance)

        added: dict[ItemDisplayName, float] = {}
        for name, post_total in post_totals.items():
            added[name] = post_total - pre_totals.get(name, 0)

        record.post_stop = per_instance
        record.added_amount = added

        # Ledger only grows; a stop is credited up to its highest gain so far.
        credited = dict(record.credited)
        for name, amount in added.items():
            gain = max(0, amount) - credited.get(name, 0)
            if gain > 0:
                self.inventory.route_inventory[name] = self.inventory.route_inventory.get(name, 0) + gain
                credited[name] = max(0, amount)
        record.credited = credited

        return StopCommit(stop_id=stop_id, mode=mode, per_instance=per_instance, added_amount=added)

    def stop_totals(self, stop_id: str, mode: StopMode) -> dict[ItemDisplayName, float]:
        """Name-level totals of a recorded stop checkpoint."""
        record = self.inventory.stops.get(stop_id)
        if record is None:
            return {}
        index = NameIndex.for_stop(self._stop(stop_id))
        source = record.pre_stop if mode == StopMode.PRE_STOP else record.post_stop
        return {name: tidy(total) for name, total in index.aggregate(source).items()}

    def suggested_values(self, scope: InventoryScope) -> dict[str, float]:
        """
        Best available prior value for every name in scope.

        Falls back through the recorded value for the scope itself, the stop's
        pre-stop checkpoint (post-stop scopes only), the pre-route checkpoint,
        and finally zero.
        """
        index = self.snapshot(scope)
        pre_route = self.inventory.pre_route or {}
        chain: list[Mapping[str, float]] = []

        if scope.kind == ScopeKind.PRE_ROUTE:
            chain = [self.inventory.pre_route or {}]
        elif scope.kind == ScopeKind.POST_ROUTE:
            chain = [self.inventory.post_route or {}, pre_route]
        elif scope.kind == ScopeKind.PRE_STOP:
            chain = [self.stop_totals(scope.stop_id, StopMode.PRE_STOP), pre_route]
        else:
            chain = [
                self.stop_totals(scope.stop_id, StopMode.POST_STOP),
                self.stop_totals(scope.stop_id, StopMode.PRE_STOP),
                pre_route,
            ]

        suggested = {}
        for name in index.names():
            value = 0
            for source in chain:
                if name in source:
                    value = source[name]
                    break
            suggested[name] = tidy(value)
        return suggested

    def route_lines(self) -> list[InventoryLine]:
        """Per-name pre/post/diff rows for the route checkpoints."""
        pre = self.inventory.pre_route
        post = self.inventory.post_route
        names = dict.fromkeys([
            *NameIndex.for_route(self.route).names(),
            *(pre or {}),
            *(post or {}),
        ])
        lines = []
        for name in names:
            pre_value = pre.get(name) if pre is not None else None
            post_value = post.get(name) if post is not None else None
            lines.append(InventoryLine(
                name=name,
                pre=pre_value,
                post=post_value,
                diff=tidy((post_value or 0) - (pre_value or 0)),
                gained=tidy(self.inventory.route_inventory.get(name, 0)),
            ))
        return lines

    def stop_lines(self, stop_id: str) -> list[InventoryLine]:
        """Per-name pre/post/diff rows for one stop."""
        record = self.inventory.stops.get(stop_id)
        index = NameIndex.for_stop(self._stop(stop_id))
        pre = self.stop_totals(stop_id, StopMode.PRE_STOP) if record and record.pre_stop is not None else None
        post = self.stop_totals(stop_id, StopMode.POST_STOP) if record and record.post_stop is not None else None
        added = (record.added_amount if record else None) or {}
        lines = []
        for name in index.names():
            pre_value = pre.get(name) if pre is not None else None
            post_value = post.get(name) if post is not None else None
            lines.append(InventoryLine(
                name=name,
                pre=pre_value,
                post=post_value,
                diff=tidy((post_value or 0) - (pre_value or 0)),
                gained=tidy(added.get(name, 0)),
            ))
        return lines

    def _stop(self, stop_id: Optional[str]):
        stop = self.route.find_stop(stop_id) if stop_id else None
        if stop is None:
            raise UnknownStop(
                f"Stop {stop_id} is not part of route {self.route.id}",
                stop_id=stop_id,
                context={"route_id": self.route.id}
            )
        return stop
