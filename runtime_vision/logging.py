"""
Structured logging configuration using structlog.

Standardized log format:
{
    "ts": "2026-10-17T04:30:00.123456Z",
    "level": "info",
    "service": "runtime-vision",
    "correlation_id": "uuid-v4",
    "event": "event.stored",
    "module": "runtime_vision.services.event_store",
    "function": "ingest",
    "line": 42,
    ...additional context...
}
"""
import logging
import sys
from typing import Any

import structlog

_SERVICE_NAME = "runtime-vision"


def add_service_name(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Add service name to all log entries."""
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def setup_logging(
    json_output: bool = True,
    service_name: str = "runtime-vision",
    level: str = "INFO",
):
    """
    Configure structured logging with standardized fields.

    Args:
        json_output: If True, output JSON logs. If False, use console format.
        service_name: Name of the service stamped on every entry.
        level: Minimum log level name (e.g. "INFO", "DEBUG").
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service_name

    shared_processors = [
        # Context vars carry correlation_id, http_method and http_path
        structlog.contextvars.merge_contextvars,
        add_service_name,
        structlog.processors.TimeStamper(fmt="iso", key="ts"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stderr keeps stdout free for the host process when embedded
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=log_level)

    # Silence uvicorn's default logging to avoid duplicate logs
    logging.getLogger("uvicorn.error").handlers = []
    logging.getLogger("uvicorn.access").handlers = []


def get_logger(*args: Any):
    """Get a configured structlog logger."""
    return structlog.get_logger(*args)
