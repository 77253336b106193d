"""Completed-run history records."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from ..catalog.models import Route
from ..errors import DataFormatError
from ..inventory.reconciliation import calculate_added_items
from ..state.models import TrackingSession


@dataclass(frozen=True)
class RunRecord:
    """A finished run of a route."""
    id: str
    route_id: str
    route_name: str
    start_time: int
    end_time: int
    duration: int
    collected_items: dict[str, bool] = field(default_factory=dict)
    notes: str = ""
    inventory: dict[str, Any] = field(default_factory=dict)

    @property
    def collected_count(self) -> int:
        return sum(1 for collected in self.collected_items.values() if collected)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "routeId": self.route_id,
            "routeName": self.route_name,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "collectedItems": dict(self.collected_items),
            "notes": self.notes,
            "inventoryData": dict(self.inventory),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunRecord":
        try:
            return cls(
                id=data["id"],
                route_id=data["routeId"],
                route_name=data.get("routeName", ""),
                start_time=int(data["startTime"]),
                end_time=int(data["endTime"]),
                duration=int(data.get("duration", int(data["endTime"]) - int(data["startTime"]))),
                collected_items=dict(data.get("collectedItems") or {}),
                notes=str(data.get("notes") or ""),
                inventory=dict(data.get("inventoryData") or {}),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DataFormatError(
                f"Invalid run record: {e}",
                field="routeHistory",
                expected="id, routeId, startTime, endTime"
            )


def build_run_record(
    route: Route,
    session: TrackingSession,
    end_time: int,
    run_id: Optional[str] = None
) -> RunRecord:
    """Snapshot a session at completion."""
    snapshot = session.inventory.to_dict()
    snapshot["addedItems"] = calculate_added_items(
        session.inventory.pre_route,
        session.inventory.post_route
    )
    return RunRecord(
        id=run_id or str(uuid.uuid4()),
        route_id=route.id,
        route_name=route.name,
        start_time=session.start_time,
        end_time=end_time,
        duration=max(0, end_time - session.start_time),
        collected_items=dict(session.collected_items),
        notes=session.notes,
        inventory=snapshot,
    )
