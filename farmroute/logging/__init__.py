"""
Logging configuration and utilities for the route tracker.
"""
from .config import configure_from_params, configure_logging, get_logger

__all__ = ["configure_from_params", "configure_logging", "get_logger"]
