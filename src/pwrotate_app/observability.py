"""Logging configuration and observability helpers.

Configures structlog for the command line application and provides the
``log_bind`` and ``observe_around`` context managers used to attach run
context to log events and to time the main operations.
"""

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from pwrotate_core.exceptions import ConfigurationError


def configure_logging(log_level: str = "INFO", *, dev_mode: bool = False) -> None:
    """Configure structlog for the process.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        dev_mode: Render human friendly console output instead of JSON lines.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {log_level}", "logging")

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if dev_mode:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend(
            [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


@contextmanager
def log_bind(**kwargs: Any) -> Iterator[None]:
    """Bind context variables to every log event emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


@contextmanager
def observe_around(logger: Any, operation: str, **kwargs: Any) -> Iterator[None]:
    """Log the start, completion or failure of an operation with its duration.

    Events are named ``{operation}_STARTED``, ``{operation}_COMPLETED`` and
    ``{operation}_FAILED``. Exceptions are logged and re-raised.
    """
    logger.debug(f"{operation}_STARTED", **kwargs)
    start = time.monotonic()
    try:
        yield
    except Exception as e:
        duration_ms = round((time.monotonic() - start) * 1000, 1)
        logger.warning(
            f"{operation}_FAILED", duration_ms=duration_ms, error=str(e), **kwargs
        )
        raise
    duration_ms = round((time.monotonic() - start) * 1000, 1)
    logger.info(f"{operation}_COMPLETED", duration_ms=duration_ms, **kwargs)
