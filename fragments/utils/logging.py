"""Structured logging setup for Fragments.

Uses structlog for JSON-structured logging with timestamps and log levels
in every entry. configure_logging() is called once, by the entry point.
"""

import logging
from typing import TextIO

import structlog


def configure_logging(
    json_output: bool = True,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for the Fragments service.

    Args:
        json_output: If True (default), render logs as JSON.
                     If False, use console-friendly output for development.
        level: Minimum level name to emit (DEBUG, INFO, WARNING, ERROR).
        stream: Where log lines go (default: stdout).
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

    level_num = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )
