"""Utility helpers for PressAudit."""

from .logger import DEFAULT_LOG_FORMAT, ContextFormatter, configure_logging, get_logger
from .formatters import (
    JSONFormatter,
    ProgressIndicator,
    RichFormatter,
    create_progress,
    display_rich,
    format_json,
)

__all__ = [
    "ContextFormatter",
    "configure_logging",
    "get_logger",
    "DEFAULT_LOG_FORMAT",
    "JSONFormatter",
    "ProgressIndicator",
    "RichFormatter",
    "create_progress",
    "display_rich",
    "format_json",
]
