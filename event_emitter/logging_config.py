"""Structured logging configuration for event-emitter.

Dispatchers log registry changes and dispatch activity as named structlog
events with key/value context. Applications that already configure
structlog need nothing from here; :func:`configure_logging` is for those
that want the package's output rendered on a stream of their choice.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog

PACKAGE_LOGGER = "event_emitter"

_TRUTHY = ("1", "true", "True", "yes")


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route dispatcher logs to a stream.

    Only the ``event_emitter`` logger is touched; the root logger and the
    application's own handlers are left alone.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines instead of console output
        stream: Output stream (defaults to stderr)
    """
    stream = stream if stream is not None else sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(getattr(logging, level.upper()))
    package_logger.propagate = False

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        colors = hasattr(stream, "isatty") and stream.isatty()
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, named after the package by default."""
    return structlog.get_logger(name or PACKAGE_LOGGER)


def configure_from_env() -> None:
    """Configure logging from ``EVENT_EMITTER_LOG_*`` environment variables.

    ``EVENT_EMITTER_LOG_LEVEL`` picks the level (default INFO) and
    ``EVENT_EMITTER_LOG_JSON`` switches to the JSON renderer.
    """
    configure_logging(
        level=os.environ.get("EVENT_EMITTER_LOG_LEVEL", "INFO"),
        json_output=os.environ.get("EVENT_EMITTER_LOG_JSON", "0") in _TRUTHY,
    )
