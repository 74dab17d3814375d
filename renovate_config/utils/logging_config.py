"""
Logging configuration using structlog.

Logs go to stderr so that CLI results printed on stdout stay machine
readable. CI runs keep the JSON renderer; the end-to-end suite switches to the
console renderer, whose output pytest shows next to a failing snapshot.
"""

import sys
from typing import TextIO

import structlog


def configure_logging(log_level: str = "INFO", json_format: bool = True, stream: TextIO | None = None) -> None:
    """Configure structured logging.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL),
            case-insensitive
        json_format: Render one JSON object per event; otherwise use the
            human-readable console renderer
        stream: Destination, defaults to stderr
    """
    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer formats exceptions itself.
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(stream or sys.stderr),
        cache_logger_on_first_use=True,
    )
