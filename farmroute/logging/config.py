"""
Centralized logging configuration for the route tracker.

This module provides standardized logging configuration using structlog
for all components, so session transitions, inventory commits and storage
fallbacks share one structured format.
"""
import logging
import sys
from typing import IO, Any, Optional

import structlog
from structlog.types import FilteringBoundLogger, Processor

from ..config.defaults import LoggingParams
from ..errors import ConfigurationError


def resolve_level(level: str) -> int:
    """
    Map a level name to its logging constant.

    Raises:
        ConfigurationError: If the name is not a standard level
    """
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ConfigurationError(
            f"Unknown log level: {level!r}",
            context={"level": level}
        )
    return value


def build_processors(
    format_json: bool,
    include_timestamp: bool,
    include_caller: bool,
    extra_processors: Optional[list[Processor]] = None,
    colors: bool = False
) -> list[Processor]:
    """Processor chain ending in a JSON or console renderer."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    processors.extend(extra_processors or [])

    # Renderer must stay last
    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))
    return processors


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list[Processor]] = None,
    stream: Optional[IO[str]] = None
) -> None:
    """
    Configure structlog for the entire application.

    Safe to call again: the stdlib root handler is replaced each time, so a
    tracker built from tracker.yaml can override an earlier setup.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors, run before rendering
        stream: Output stream, stdout by default

    Raises:
        ConfigurationError: If the level name is unknown
    """
    log_level = resolve_level(level)
    output = stream or sys.stdout

    logging.basicConfig(
        level=log_level,
        stream=output,
        format="%(message)s",
        force=True
    )

    structlog.configure(
        processors=build_processors(
            format_json,
            include_timestamp,
            include_caller,
            extra_processors,
            colors=output.isatty(),
        ),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_from_params(params: LoggingParams, stream: Optional[IO[str]] = None) -> None:
    """Apply the logging section of a loaded TrackerConfig."""
    configure_logging(
        level=params.level,
        format_json=params.format_json,
        include_timestamp=params.include_timestamp,
        stream=stream,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for tracking-session state transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for the session state machine
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="state_machine",
        audit_trail=True
    )


def get_storage_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for persistence backends and the gateway.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for persistence
    """
    logger = get_logger(name)

    return logger.bind(subsystem="persistence")


def log_state_transition(
    logger: FilteringBoundLogger,
    route_id: Optional[str],
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a session state transition with standardized format.

    Args:
        logger: Structlog logger instance
        route_id: ID of the route whose session is transitioning
        from_state: Current state
        to_state: Target state
        trigger: Operation that caused the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        route_id=route_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")


def log_inventory_commit(
    logger: FilteringBoundLogger,
    route_id: Optional[str],
    scope: str,
    values: dict[str, Any],
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an inventory checkpoint commit.

    Args:
        logger: Structlog logger instance
        route_id: ID of the route whose session recorded the checkpoint
        scope: Checkpoint label (e.g. "post_stop:stop-a")
        values: Name-keyed counts as entered
        context: Additional context data (split, added amounts)
    """
    bound_logger = logger.bind(
        route_id=route_id,
        scope=scope,
        values=values,
        skipped=not values,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Inventory checkpoint recorded")
