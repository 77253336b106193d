"""
Snapshot documents for moving routes and tracking data between installs.

A document has the shape::

    {
        "routes": [...],
        "currentRouteId": "route-1" | null,
        "activeSession": {...},      # omitted by routes-only exports
        "version": "1.0.0",
        "exportDate": "2026-01-01T00:00:00+00:00"
    }

Imports are fully parsed before anything is applied, so a malformed document
never leaves the catalog half-updated.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import orjson

from ..catalog.models import Route
from ..errors import DataFormatError
from ..state.models import TrackingSession
from ..utils.time import iso_now

EXPORT_VERSION = "1.0.0"


class ImportMode(str, Enum):
    """How imported routes combine with the existing catalog."""
    MERGE = "merge"        # Existing ids updated, new ids added
    REPLACE = "replace"    # Catalog becomes exactly the imported routes


@dataclass(frozen=True)
class ImportPayload:
    """A validated import document."""
    routes: tuple[Route, ...]
    current_route_id: Optional[str] = None
    session: Optional[TrackingSession] = None
    version: Optional[str] = None


@dataclass(frozen=True)
class ImportPlan:
    """Catalog changes an import will apply."""
    routes: dict[str, Route] = field(default_factory=dict)
    saved: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()


def build_export(
    routes: Iterable[Route],
    current_route_id: Optional[str],
    session: Optional[TrackingSession] = None,
    version: str = EXPORT_VERSION,
    include_session: bool = True
) -> dict[str, Any]:
    """
    Build an export document.

    Args:
        routes: Routes to export, in catalog order
        current_route_id: Route the tracker currently points at
        session: Active session, if any
        version: Document format version
        include_session: False for a routes-only export

    Returns:
        JSON-ready document
    """
    document: dict[str, Any] = {
        "routes": [route.to_dict() for route in routes],
        "currentRouteId": current_route_id,
    }
    if include_session and session is not None:
        document["activeSession"] = session.to_dict()
    document["version"] = version
    document["exportDate"] = iso_now()
    return document


def parse_import(document: Any) -> ImportPayload:
    """
    Validate an import document.

    Raises:
        DataFormatError: If the routes array is missing or any entry is malformed
    """
    if not isinstance(document, Mapping):
        raise DataFormatError(
            "Invalid data format: document must be an object",
            field="document",
            expected="object"
        )
    raw_routes = document.get("routes")
    if not isinstance(raw_routes, list):
        raise DataFormatError(
            "Invalid data format: routes array not found",
            field="routes",
            expected="array"
        )

    routes = tuple(Route.from_dict(entry) for entry in raw_routes)

    current_route_id = document.get("currentRouteId")
    if current_route_id is not None and not isinstance(current_route_id, str):
        raise DataFormatError(
            "currentRouteId must be a string or null",
            field="currentRouteId",
            expected="string"
        )

    raw_session = document.get("activeSession")
    session = TrackingSession.from_dict(raw_session) if raw_session else None

    version = document.get("version")
    return ImportPayload(
        routes=routes,
        current_route_id=current_route_id or None,
        session=session,
        version=str(version) if version is not None else None,
    )


def plan_import(
    existing: Mapping[str, Route],
    payload: ImportPayload,
    mode: ImportMode
) -> ImportPlan:
    """Compute the resulting catalog without touching the existing one."""
    if mode == ImportMode.MERGE:
        routes = dict(existing)
        removed: tuple[str, ...] = ()
    else:
        routes = {}
        imported_ids = {route.id for route in payload.routes}
        removed = tuple(route_id for route_id in existing if route_id not in imported_ids)

    for route in payload.routes:
        routes[route.id] = route

    return ImportPlan(
        routes=routes,
        saved=tuple(route.id for route in payload.routes),
        removed=removed,
    )


def write_document(document: Mapping[str, Any], path: str) -> Path:
    """Write a document as indented JSON."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(orjson.dumps(document, option=orjson.OPT_INDENT_2))
    return target


def read_document(path: str) -> Any:
    """
    Read a JSON document from disk.

    Raises:
        DataFormatError: If the file is not valid JSON
    """
    try:
        return orjson.loads(Path(path).read_bytes())
    except orjson.JSONDecodeError as e:
        raise DataFormatError(
            f"Invalid JSON: {e}",
            field="document",
            expected="JSON"
        )
