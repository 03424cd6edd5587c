"""Structlog configuration for the application.

Configures structlog with colored console output for development
and JSON output for production. Request-scoped values (request_id,
tenant_id) are bound through structlog contextvars and merged into
every event.
"""

import logging
import os
import sys

import structlog


def configure_logging(level: int = logging.INFO, json_logs: bool | None = None) -> None:
    """Configure structlog with appropriate processors.

    Args:
        level: Minimum log level to emit.
        json_logs: Force JSON (True) or console (False) output. When None,
            colored console output is used on a TTY or when FORCE_COLOR is
            set, JSON otherwise.
    """
    if json_logs is None:
        # FORCE_COLOR=1 enables colors even in non-TTY environments (like Docker)
        force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
        json_logs = not (force_color or sys.stdout.isatty())

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors: list[structlog.types.Processor] = [
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
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
