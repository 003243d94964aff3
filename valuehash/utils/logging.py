"""Structured logging setup for valuehash.

Uses structlog for JSON-structured logging. The library itself only
emits debug events (encoder compilation, pool growth) and warnings for
configuration problems. Until an application configures structlog,
structlog's defaults print every level to stdout; call
``configure_logging`` (or configure structlog directly) at startup to
choose the level and renderer.
"""

import logging

import structlog

from valuehash.config.settings import get_settings
from valuehash.exceptions import ConfigurationError


def configure_logging(json_output: bool = True, level: str | None = None) -> None:
    """Configure structlog for applications embedding valuehash.

    Args:
        json_output: If True (default), render logs as JSON.
                     If False, use console-friendly output for development.
        level: Minimum level name to emit (DEBUG, INFO, WARNING, ...).
               Defaults to VALUEHASH_LOG_LEVEL via get_settings().
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    if level is None:
        level = get_settings().log_level
    min_level = logging.getLevelName(level.upper())
    if not isinstance(min_level, int):
        raise ConfigurationError(f"Unknown log level: {level!r}")

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str, hasher_id: str | None = None) -> structlog.BoundLogger:
    """Get a logger bound with the emitting component.

    The binding is lazy: the returned proxy picks up whatever
    configuration is in effect when it first logs, so it is safe to
    create at import time.

    Args:
        component: Name of the valuehash component (compiler, pool, ...).
        hasher_id: Optional identifier of the Hasher instance.

    Returns:
        A structlog logger with component and hasher_id bound.
    """
    if hasher_id:
        return structlog.get_logger(component=component, hasher_id=hasher_id)
    return structlog.get_logger(component=component)
