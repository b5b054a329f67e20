"""
structlog setup shared by the API and the fetch script.

Every event carries the service name and, inside a request, the
correlation id. Pipeline runs add ``pipeline`` and ``run_id`` by binding
them on their own logger.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any, Optional

import structlog

from core.settings import Settings


# Loggers that are chatty at INFO (connection pool resets, every SQL query)
NOISY_LOGGERS = ("urllib3", "peewee")

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(cid: str) -> None:
    correlation_id_var.set(cid)


def _stamp(service_name: str) -> structlog.typing.Processor:
    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        cid = correlation_id_var.get()
        if cid:
            event_dict["correlation_id"] = cid
        return event_dict

    return processor


def setup_logging(
    config: Settings,
    log_level: Optional[str] = None,
    console: Optional[bool] = None,
) -> None:
    """
    Configure structlog from settings.

    Output is JSON unless ``log_format`` is "console" or
    ``development_mode`` is on. ``log_level`` and ``console`` override the
    settings (the fetch script passes its own flags).
    """
    level = getattr(logging, (log_level or config.log_level).upper())
    if console is None:
        console = config.log_format == "console" or config.development_mode

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _stamp(config.service_name),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if console:
        processors.append(
            structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
        )
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Logger for ``name``; events are snake_case with key/value context."""
    return structlog.get_logger(name)
