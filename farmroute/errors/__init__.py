"""
Error classification for the tracking core.

Validation errors block a transition before anything is mutated, storage
errors are recovered locally by the persistence gateway, and cancellations
end a transition as a silent no-op.
"""

from .validation import (
    ValidationError,
    SessionConflict,
    MissingItemName,
    NoActiveSession,
    InvalidTransition,
    UnknownItem,
    UnknownRoute,
    UnknownStop,
    InvalidInventoryValue,
    CatalogLocked,
    ConfigurationError,
    DataFormatError,
)
from .storage import (
    StorageError,
    StorageWarning,
)
from .recovery import (
    UserCancelled,
)

__all__ = [
    # Validation Errors
    "ValidationError",
    "SessionConflict",
    "MissingItemName",
    "NoActiveSession",
    "InvalidTransition",
    "UnknownItem",
    "UnknownRoute",
    "UnknownStop",
    "InvalidInventoryValue",
    "CatalogLocked",
    "ConfigurationError",
    "DataFormatError",
    # Storage Failures
    "StorageError",
    "StorageWarning",
    # Recovery Categories
    "UserCancelled",
]
