"""Logging setup shared by the CLI and library callers.

Pipeline modules log with ``extra={...}`` (audit id, domain, error code).
:class:`ContextFormatter` renders those fields after the message so they
survive in plain-text logs.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Union

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
QUIET_LOGGERS = ("httpx", "httpcore")

# Attributes every LogRecord has; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

_configured = False


class ContextFormatter(logging.Formatter):
    """Formatter that appends ``key=value`` pairs passed through ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context_fields(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context)
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def _context_fields(record: logging.LogRecord) -> List[tuple]:
    return sorted(
        (key, value)
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    )


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    numeric_level = logging.getLevelName(level.upper())
    if isinstance(numeric_level, str):
        raise ValueError(f"Unknown log level: {level}")
    return int(numeric_level)


def _quiet(names: Iterable[str], level: int) -> None:
    for name in names:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def configure_logging(
    *,
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_LOG_FORMAT,
    force: bool = False,
) -> None:
    """Install stderr (and optionally file) handlers on the root logger.

    Args:
        level: Level name such as ``"DEBUG"`` or a numeric level.
        log_file: Extra file that receives the same records as stderr.
        log_format: Format string handed to :class:`ContextFormatter`.
        force: Reconfigure even if logging was already set up.
    """

    global _configured
    if _configured and not force:
        return

    resolved = _resolve_level(level)
    formatter = ContextFormatter(log_format)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=resolved, handlers=handlers, force=True)
    # httpx logs every request at INFO.
    _quiet(QUIET_LOGGERS, resolved)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    if not _configured:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["ContextFormatter", "DEFAULT_LOG_FORMAT", "configure_logging", "get_logger"]
