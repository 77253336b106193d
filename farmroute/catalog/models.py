"""
Route catalog data models.

Item identity and item display name are distinct key domains: ids are unique
per route, names are not. Stop-level inventory is addressed by ItemIdentity,
route-level inventory by ItemDisplayName.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, NewType, Optional

from ..errors import DataFormatError

ItemIdentity = NewType("ItemIdentity", str)
ItemDisplayName = NewType("ItemDisplayName", str)


class ItemType(str, Enum):
    """Item categories available when authoring a stop."""
    BOBBLEHEAD = "Bobblehead"
    MAGAZINE = "Magazine"
    EVENT = "Event"
    CONSUMABLE = "Consumable"
    HARVESTABLE = "Harvestable"
    TASK = "Task"


@dataclass(frozen=True)
class Item:
    """A collectible definition within a stop."""

    id: ItemIdentity
    name: ItemDisplayName
    type: ItemType
    quantity: int = 1
    description: str = ""

    @property
    def is_harvestable(self) -> bool:
        return self.type == ItemType.HARVESTABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "quantity": self.quantity,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Item":
        item_id = _require_str(data, "id", "item")
        raw_type = data.get("type")
        try:
            item_type = ItemType(raw_type)
        except ValueError:
            raise DataFormatError(
                f"Unknown item type: {raw_type!r}",
                field="item.type",
                expected="one of " + ", ".join(t.value for t in ItemType),
                context={"item_id": item_id}
            )

        quantity = data.get("quantity", 1)
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
            raise DataFormatError(
                f"Item {item_id} has a non-numeric quantity",
                field="item.quantity",
                expected="number"
            )

        return cls(
            id=ItemIdentity(item_id),
            name=ItemDisplayName(str(data.get("name") or "")),
            type=item_type,
            quantity=int(quantity),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class Stop:
    """A location within a route with its own ordered items."""

    id: str
    name: str
    description: str = ""
    items: tuple[Item, ...] = ()
    collect_data: bool = False              # Inventory checkpoints at entry/exit

    @property
    def harvestables(self) -> tuple[Item, ...]:
        return tuple(item for item in self.items if item.is_harvestable)

    @property
    def requests_inventory(self) -> bool:
        """True when this stop has checkpoints and something to count."""
        return self.collect_data and bool(self.harvestables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "items": [item.to_dict() for item in self.items],
            "collectData": self.collect_data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Stop":
        stop_id = _require_str(data, "id", "stop")
        items = data.get("items", [])
        if not isinstance(items, list):
            raise DataFormatError(
                f"Stop {stop_id} items must be a list",
                field="stop.items",
                expected="array"
            )
        return cls(
            id=stop_id,
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            items=tuple(Item.from_dict(item) for item in items),
            collect_data=_optional_bool(data, "collectData", "stop"),
        )


@dataclass(frozen=True)
class Route:
    """A reusable ordered collection of stops."""

    id: str
    name: str
    description: str = ""
    stops: tuple[Stop, ...] = ()
    completed_runs: int = 0
    auto_inventory_checks: bool = False     # Checkpoints before first and after last stop

    def all_items(self) -> list[Item]:
        """Every item in route order."""
        return [item for stop in self.stops for item in stop.items]

    def item_ids(self) -> list[ItemIdentity]:
        return [item.id for item in self.all_items()]

    def harvestables(self) -> list[Item]:
        return [item for item in self.all_items() if item.is_harvestable]

    @property
    def has_harvestables(self) -> bool:
        return any(item.is_harvestable for item in self.all_items())

    def find_stop(self, stop_id: str) -> Optional[Stop]:
        for stop in self.stops:
            if stop.id == stop_id:
                return stop
        return None

    def stop_index(self, stop_id: str) -> Optional[int]:
        for index, stop in enumerate(self.stops):
            if stop.id == stop_id:
                return index
        return None

    def with_completed_run(self) -> "Route":
        """Create new route with the run counter incremented."""
        return replace(self, completed_runs=self.completed_runs + 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "stops": [stop.to_dict() for stop in self.stops],
            "completedRuns": self.completed_runs,
            "autoInventoryChecks": self.auto_inventory_checks,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Route":
        if not isinstance(data, dict):
            raise DataFormatError(
                "Route entry must be an object",
                field="route",
                expected="object"
            )
        route_id = _require_str(data, "id", "route")
        stops = data.get("stops", [])
        if not isinstance(stops, list):
            raise DataFormatError(
                f"Route {route_id} stops must be a list",
                field="route.stops",
                expected="array"
            )
        return cls(
            id=route_id,
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            stops=tuple(Stop.from_dict(stop) for stop in stops),
            completed_runs=_run_count(data, route_id),
            auto_inventory_checks=_optional_bool(data, "autoInventoryChecks", "route"),
        )


def _require_str(data: dict[str, Any], key: str, kind: str) -> str:
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, str) or not value:
        raise DataFormatError(
            f"{kind.capitalize()} is missing a string '{key}'",
            field=f"{kind}.{key}",
            expected="non-empty string"
        )
    return value


def _optional_bool(data: dict[str, Any], key: str, kind: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DataFormatError(
            f"{kind.capitalize()} flag '{key}' must be true or false",
            field=f"{kind}.{key}",
            expected="boolean"
        )
    return value


def _run_count(data: dict[str, Any], route_id: str) -> int:
    value = data.get("completedRuns")
    if value is None:
        return 0
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or (isinstance(value, float) and not value.is_integer())
        or value < 0
    ):
        raise DataFormatError(
            f"Route {route_id} completedRuns must be a non-negative whole number",
            field="route.completedRuns",
            expected="non-negative integer",
            context={"route_id": route_id}
        )
    return int(value)
