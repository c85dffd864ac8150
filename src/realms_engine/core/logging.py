"""Structured logging for the build rules engine.

Engine modules obtain a structlog logger at import time and log with
key/value context. Degraded paths (unresolved references, rejected pool
mutations, discarded rules overrides) log at warning level.

Cost values are floats summed from catalog data, so the processor chain
trims binary noise (``0.30000000000000004``) before rendering.

Example:
    >>> from realms_engine.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Build aggregated", build="Flame Lash", total_tp=6)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from pathlib import Path

    from structlog.types import EventDict, WrappedLogger

    from realms_engine.core.config import Settings


_FLOAT_DIGITS = 9
_STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def app_context(app_name: str) -> Processor:
    """Processor tagging every entry with ``app_name``."""

    def add_app_context(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("app", app_name)
        return event_dict

    return add_app_context


def trim_float_noise(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Round float values to nine decimals, the engine's comparison precision."""
    for key, value in event_dict.items():
        if isinstance(value, float):
            event_dict[key] = round(value, _FLOAT_DIGITS)
    return event_dict


def build_processors(*, json_format: bool, app_name: str) -> list[Processor]:
    """Processor chain ending in a JSON or console renderer."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        app_context(app_name),
        trim_float_noise,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return processors


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | Path | None = None,
    app_name: str = "realms_engine",
) -> None:
    """Configure engine-wide logging.

    The engine is a library, so output goes to stderr and leaves stdout to
    the host application.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output logs as sorted-key JSON lines.
        log_file: Optional path to a log file for persistent logging.
        app_name: Value of the ``app`` key on every entry.

    Example:
        >>> configure_logging(level="DEBUG", app_name="creator")
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=build_processors(json_format=json_format, app_name=app_name),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(logging.Formatter(_STDLIB_FORMAT))
    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)


def configure_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from engine settings (the cached ones by default)."""
    from realms_engine.core.config import get_settings

    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.json_logs,
        log_file=settings.log_file,
        app_name=settings.app_name,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically ``get_logger(__name__)`` at module import."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in all subsequent log entries.

    Useful to tag every line of one build edit with the build name.

    Example:
        >>> bind_context(build="Flame Lash", kind="technique")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "app_context",
    "trim_float_noise",
    "build_processors",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
