"""
Structured logging for klog using structlog.

Lookups and the CLI log key-value events (path, offset, position), and each
lookup binds its segment and offset with segment_context so that a
multi-segment query can be followed segment by segment:
- JSON formatting for machine consumption
- Console formatting for interactive use
"""

import logging
import sys
from typing import Any, ContextManager

import structlog
from structlog.types import EventDict, Processor


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log entries."""
    event_dict["app"] = "klog"
    return event_dict


def configure_logging(
    log_level: str = "WARNING",
    log_format: str = "console",
    log_output: str = "stderr",
) -> None:
    """
    Configure structured logging for the application.

    Log events go to stderr by default so that decoded records written to
    stdout stay clean.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_output: Output destination (stdout or stderr)

    Raises:
        ValueError: If the level or format is unknown
    """
    level = str(log_level).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {log_level!r}, expected one of {LOG_LEVELS}")
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format {log_format!r}, expected one of {LOG_FORMATS}")

    stream = sys.stdout if log_output == "stdout" else sys.stderr
    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=getattr(logging, level),
        force=True,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def segment_context(index_path: Any, offset: int) -> ContextManager[None]:
    """
    Bind the segment and offset of a lookup to every log event inside it.

    Bindings live in context variables, so each worker thread of a
    multi-segment query carries its own segment.

    Args:
        index_path: Index file being searched
        offset: Logical offset being looked up

    Returns:
        Context manager that unbinds on exit
    """
    return structlog.contextvars.bound_contextvars(index_path=str(index_path), offset=offset)
