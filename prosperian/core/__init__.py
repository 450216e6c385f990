"""
Core package for configuration, logging, and shared utilities.
"""

from prosperian.core.config import Settings, settings
from prosperian.core.logging import configure_structlog, get_structlog_logger

__all__ = [
    "Settings",
    "settings",
    "configure_structlog",
    "get_structlog_logger",
]
