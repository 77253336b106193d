"""
Export and import of tracker snapshot documents.
"""

from .snapshot import (
    EXPORT_VERSION,
    ImportMode,
    ImportPayload,
    ImportPlan,
    build_export,
    parse_import,
    plan_import,
    read_document,
    write_document,
)

__all__ = [
    "EXPORT_VERSION",
    "ImportMode",
    "ImportPayload",
    "ImportPlan",
    "build_export",
    "parse_import",
    "plan_import",
    "read_document",
    "write_document",
]
