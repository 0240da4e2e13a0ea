"""
structlog setup for applications using the adapters.

    from openstack_adapters.config import get_settings
    from openstack_adapters.logging import configure_logging_from_settings

    configure_logging_from_settings(get_settings())

Library modules only call get_logger(__name__); nothing is printed in a
particular format until the application configures logging.
"""

import logging
import sys
from contextvars import ContextVar
from enum import Enum

import structlog

from .config import Settings

# Sent as X-Correlation-ID by the transport and stamped on every log line
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)


class LogEventType(str, Enum):
    REQUEST_OUT = "request_out"
    RETRY = "retry"
    METADATA_BIND = "metadata_bind"
    MESSAGES_PARSE = "messages_parse"
    ERROR = "error"
    STARTUP = "startup"
    SHUTDOWN = "shutdown"


def _context_stamper(service_name: str) -> structlog.types.Processor:
    def stamp(logger, method_name, event_dict):
        event_dict["service"] = service_name
        cid = correlation_id_ctx.get()
        if cid:
            event_dict.setdefault("correlation_id", cid)
        if isinstance(event_dict.get("event_type"), LogEventType):
            event_dict["event_type"] = event_dict["event_type"].value
        return event_dict

    return stamp


def configure_logging(
    service_name: str, log_level: str = "INFO", json_format: bool = True
) -> None:
    """
    Route structlog output to stdout.

    Args:
        service_name: Name stamped on every line as ``service``
        log_level: Minimum level name; unknown names fall back to INFO
        json_format: JSON lines when True, a colored console otherwise
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=True, sort_keys=True)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _context_stamper(service_name),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_logging_from_settings(settings: Settings) -> None:
    configure_logging(
        service_name=settings.SERVICE_NAME,
        log_level=settings.LOG_LEVEL,
        json_format=settings.LOG_JSON_FORMAT,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
