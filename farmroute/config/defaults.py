"""Default configuration parameters for the route tracker."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StorageParams:
    """Storage backend locations."""
    db_path: str = "farmroute.db"                       # Primary SQLite store
    fallback_path: str = "farmroute-fallback.json"      # Flat key-value fallback
    mirror_to_fallback: bool = True                     # Copy primary writes to the fallback


@dataclass(frozen=True)
class LoggingParams:
    """Structured logging output."""
    level: str = "INFO"
    format_json: bool = False
    include_timestamp: bool = True


@dataclass(frozen=True)
class TrackingParams:
    """Session tracking behaviour."""
    record_history: bool = True         # Persist a run record on completion
    export_version: str = "1.0.0"


@dataclass(frozen=True)
class TrackerConfig:
    """Complete tracker configuration."""
    storage: StorageParams
    logging: LoggingParams
    tracking: TrackingParams


def get_default_config() -> TrackerConfig:
    """Get the default configuration instance."""
    return TrackerConfig(
        storage=StorageParams(),
        logging=LoggingParams(),
        tracking=TrackingParams(),
    )
