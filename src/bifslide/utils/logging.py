"""Structured logging configuration using structlog.

Every event emitted while a slide is being opened carries the slide path
and the recognizer currently running, so one detection run can be
followed through the directory walk. Output is JSON for production or a
colored console for dev.
"""

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, cast

import structlog
from structlog.types import Processor

from bifslide.config import settings

# Context variables for correlation fields
_slide_path: ContextVar[str | None] = ContextVar("slide_path", default=None)
_vendor: ContextVar[str | None] = ContextVar("vendor", default=None)

# tifffile reports malformed tags on its own stdlib logger
TIFFFILE_LOGGER = "tifffile"


def set_correlation_context(
    slide_path: str | Path | None = None,
    vendor: str | None = None,
) -> None:
    """Set correlation fields for the current context.

    Args:
        slide_path: Path of the slide being opened.
        vendor: Name of the recognizer currently running.
    """
    if slide_path is not None:
        _slide_path.set(str(slide_path))
    if vendor is not None:
        _vendor.set(vendor)


def clear_correlation_context() -> None:
    """Clear all correlation context variables."""
    _slide_path.set(None)
    _vendor.set(None)


@contextmanager
def correlation_context(
    slide_path: str | Path | None = None,
    vendor: str | None = None,
) -> Iterator[None]:
    """Bind correlation fields for the duration of a block.

    The previous values are restored on exit, so a detection run nested
    inside another (can_open calling detect_vendor, a recognizer probing
    a sibling file) does not wipe the outer run's fields.
    """
    path_token = _slide_path.set(str(slide_path)) if slide_path is not None else None
    vendor_token = _vendor.set(vendor) if vendor is not None else None
    try:
        yield
    finally:
        if vendor_token is not None:
            _vendor.reset(vendor_token)
        if path_token is not None:
            _slide_path.reset(path_token)


def _add_correlation_fields(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor to add correlation fields to log events."""
    _ = logger, method_name  # Required by structlog processor signature
    slide_path = _slide_path.get()
    vendor = _vendor.get()

    if slide_path is not None:
        event_dict.setdefault("slide_path", slide_path)
    if vendor is not None:
        event_dict.setdefault("vendor", vendor)

    return event_dict


def _stringify_paths(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render Path values as plain strings so JSON output stays serializable."""
    _ = logger, method_name
    for key, value in event_dict.items():
        if isinstance(value, Path):
            event_dict[key] = str(value)
    return event_dict


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Configure structlog with the specified settings.

    tifffile's own logger follows `level` when debugging and is held at
    WARNING otherwise; it is chatty about vendor-private tags.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to settings.LOG_LEVEL.
        log_format: Output format ("console" or "json").
                    Defaults to settings.LOG_FORMAT.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_correlation_fields,
        _stringify_paths,
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_level = getattr(logging, level)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=root_level,
        force=True,
    )
    logging.getLogger(TIFFFILE_LOGGER).setLevel(
        root_level if root_level <= logging.DEBUG else logging.WARNING
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name. If None, uses the calling module's name.

    Returns:
        A bound structlog logger instance.
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
