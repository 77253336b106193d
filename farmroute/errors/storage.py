"""
Storage failure classifications.

Backends raise StorageError; the persistence gateway recovers from it by
switching backend. StorageWarning is the notification handed to the user
when no backend accepted a write.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


class StorageError(Exception):
    """A backend was unavailable or a read/write failed."""

    def __init__(self, message: str, backend: Optional[str] = None,
                 operation: Optional[str] = None, key: Optional[str] = None,
                 context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.backend = backend
        self.operation = operation
        self.key = key
        self.context = context or {}
        self.recoverable = True


@dataclass(frozen=True)
class StorageWarning:
    """User-visible notice that data is only held in memory."""
    operation: str
    message: str
    errors: tuple[str, ...] = field(default_factory=tuple)
