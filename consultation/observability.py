"""Structured operator logging configured with structlog.

The simulator has two log streams:

* the domain event log (arrivals, assignments, completions), written through a
  ``LogSink`` such as ``FileLogSink``;
* operator diagnostics (warnings, sink failures, lifecycle), emitted here.

Usage:
    from consultation.observability import configure_logging, get_logger

    configure_logging(environment="development")
    log = get_logger("allocator")
    log.warning("claim_failed", client_id=3)
"""

import logging
import os
from typing import List, Optional

import structlog
from structlog.typing import Processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level(level_name: Optional[str] = None) -> int:
    name = (level_name or os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(environment: str = "development",
                      level: Optional[str] = None) -> None:
    """Configure structlog once at startup.

    Args:
        environment: 'production' renders JSON lines, anything else renders
            colored console output.
        level: Log level name; falls back to the LOG_LEVEL environment
            variable, then INFO.
    """
    shared_processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str) -> structlog.typing.FilteringBoundLogger:
    """Logger pre-bound with the component name.

    Binding stays lazy, so module-level loggers pick up whatever
    configuration is in place when they first log.
    """
    return structlog.get_logger(component=component)
