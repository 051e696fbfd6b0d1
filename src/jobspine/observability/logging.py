"""
Structured logging configuration.

Provides a single entry point for configuring structlog for the executor
process. Configuration is read from arguments or environment variables:

- JOBSPINE_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- JOBSPINE_LOG_FORMAT: json | console (default: console)

Invocation identity (task name, log id) is bound through
``structlog.contextvars`` so every record emitted while a task runs carries
it, including records from inside the handler.

Usage:
    from jobspine.observability.logging import configure_logging, get_logger

    configure_logging()
    log = get_logger(__name__)
    log.info("task.started", task_name="sync_orders", log_id=42)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Literal

import structlog
from structlog.types import Processor

# Track if logging has been configured
_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Should be called once at process startup. Subsequent calls are no-ops
    unless force=True.

    Args:
        level: Log level (overrides JOBSPINE_LOG_LEVEL env var)
        format: Output format (overrides JOBSPINE_LOG_FORMAT env var)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    log_level = (level or os.environ.get("JOBSPINE_LOG_LEVEL", "INFO")).upper()
    log_format = (format or os.environ.get("JOBSPINE_LOG_FORMAT", "console")).lower()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    # Loggers are not cached so structlog.testing.capture_logs keeps working
    # for module-level loggers after configuration.
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level, logging.INFO),
        force=True,
    )
    logging.getLogger("jobspine").setLevel(getattr(logging, log_level, logging.INFO))

    _configured = True


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


@contextmanager
def bind_task_context(task_name: str, log_id: int) -> Iterator[None]:
    """Bind the invocation identity to every log record in the block."""
    with structlog.contextvars.bound_contextvars(task_name=task_name, log_id=log_id):
        yield
