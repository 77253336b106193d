"""
Validation error classifications.

These exceptions are raised before a transition mutates anything, so the
caller can surface them and the session stays exactly as it was.
"""

from typing import Any, Optional


class ValidationError(Exception):
    """Base class for rejected operations. Nothing is mutated when raised."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class SessionConflict(ValidationError):
    """A session for a different route is already active."""

    def __init__(self, message: str, active_route_id: Optional[str] = None,
                 requested_route_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.active_route_id = active_route_id
        self.requested_route_id = requested_route_id


class MissingItemName(ValidationError):
    """An item type that needs a custom name was given a blank one."""

    def __init__(self, message: str, item_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.item_type = item_type


class NoActiveSession(ValidationError):
    """A session operation was invoked while idle."""


class InvalidTransition(ValidationError):
    """The operation is not valid from the current state."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted = attempted


class UnknownItem(ValidationError):
    """Item id is not part of the session snapshot."""

    def __init__(self, message: str, item_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.item_id = item_id


class UnknownRoute(ValidationError):
    """Route id is not in the catalog."""

    def __init__(self, message: str, route_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.route_id = route_id


class UnknownStop(ValidationError):
    """Stop id is not part of the route."""

    def __init__(self, message: str, stop_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.stop_id = stop_id


class InvalidInventoryValue(ValidationError):
    """A reported inventory count could not be read as a number."""

    def __init__(self, message: str, name: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.name = name
        self.value = value


class CatalogLocked(ValidationError):
    """Route authoring was attempted while a session is running."""

    def __init__(self, message: str, route_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.route_id = route_id


class ConfigurationError(ValidationError):
    """Configuration values failed validation."""

    def __init__(self, message: str, issues: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.issues = issues or []


class DataFormatError(ValidationError):
    """A document or stored record does not have the expected shape."""

    def __init__(self, message: str, field: Optional[str] = None,
                 expected: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.expected = expected
