"""
Tracker configuration: defaults, YAML overrides and validation.
"""

from .defaults import (
    LoggingParams,
    StorageParams,
    TrackerConfig,
    TrackingParams,
    get_default_config,
)
from .loader import ConfigLoader
from .validation import ConfigIssue, ConfigValidator

__all__ = [
    "LoggingParams",
    "StorageParams",
    "TrackerConfig",
    "TrackingParams",
    "get_default_config",
    "ConfigLoader",
    "ConfigIssue",
    "ConfigValidator",
]
