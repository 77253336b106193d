"""
Inventory reconciliation between name-aggregated counts and per-item records.
"""

from .index import NameIndex
from .reconciliation import (
    InventoryLine,
    InventoryReconciler,
    RouteMode,
    StopCommit,
    StopMode,
    calculate_added_items,
    clamp_count,
    normalize_counts,
)

__all__ = [
    "NameIndex",
    "InventoryLine",
    "InventoryReconciler",
    "RouteMode",
    "StopCommit",
    "StopMode",
    "calculate_added_items",
    "clamp_count",
    "normalize_counts",
]
