"""Structured logging configuration for Showroom.

Uses structlog for structured, JSON-capable logging with run correlation.
"""

import logging
import sys
from contextvars import ContextVar

import structlog

# Context variable for assembly run correlation
current_run_id: ContextVar[str | None] = ContextVar("current_run_id", default=None)


def add_run_id(_logger, _method_name, event_dict):
    """Structlog processor to inject run_id into all log events."""
    run_id = current_run_id.get()
    if run_id:
        event_dict["run_id"] = run_id
    return event_dict


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, output JSON logs (for production). If False, use colored console output.
    """
    # Shared processors for both structlog and stdlib
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_run_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdlib records (logging.getLogger(__name__)) go through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Suppress noisy third-party loggers
    noisy_loggers = [
        "httpx",
        "httpcore",
        "google_genai",
        "google_genai.models",
        "urllib3.connectionpool",
    ]
    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def set_run_context(run_id: str) -> None:
    """Set the current run ID for log correlation.

    Each asyncio task carries its own copy of the context, so concurrent
    runs never see each other's ID.

    Args:
        run_id: Run key to include in all subsequent log messages
    """
    current_run_id.set(run_id)


def clear_run_context() -> None:
    """Clear the current run context."""
    current_run_id.set(None)
