"""Structured logging for the CloudSift loggers.

Events from the sync and backend sinks and plain stdlib records from the
store and HTTP client modules share one structlog pipeline, so a run reads
as a single stream on stderr.  Each record is tagged with the component
that wrote it and with whatever run context the caller bound.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from cloudsift.config.settings import ObservabilitySettings

ROOT_LOGGER = "cloudsift"
HANDLER_NAME = "cloudsift"

# Longest prefix wins.
COMPONENTS: dict[str, str] = {
    "cloudsift.sync": "sync",
    "cloudsift.backend": "backend",
    "cloudsift.store": "store",
    "cloudsift.core.batcher": "batcher",
    "cloudsift.adapters.cloudsearch.client": "client",
    "httpx": "http",
}

_HTTP_LOGGERS = ("httpx", "httpcore")


def component_for(logger_name: str) -> str | None:
    matches = [p for p in COMPONENTS if logger_name == p or logger_name.startswith(p + ".")]
    return COMPONENTS[max(matches, key=len)] if matches else None


def add_component(_logger: Any, _method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Tag a record with its component unless one was bound explicitly."""
    component = component_for(event_dict.get("logger") or "")
    if component:
        event_dict.setdefault("component", component)
    return event_dict


def bind_run_context(**context: Any) -> None:
    """Attach fields such as ``site_id`` or ``index`` to every later record."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{k: v for k, v in context.items() if v is not None})


def setup_logging(settings: ObservabilitySettings | None = None, **context: Any) -> None:
    """Configure structured logging for CloudSift.

    Args:
        settings: Observability settings. Uses defaults if None.
        **context: Run context bound to every record (``None`` values are dropped).
    """
    log_level = settings.log_level.upper() if settings else "INFO"
    log_format = settings.log_format if settings else "json"
    level = getattr(logging, log_level, logging.INFO)

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_component,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    if log_format == "console":
        renderer: Any = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()

    # stderr keeps stdout free for command output
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors)
    )

    # HTTP client chatter only shows up when debugging
    http_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    levels = {ROOT_LOGGER: level, **dict.fromkeys(_HTTP_LOGGERS, http_level)}
    for name, logger_level in levels.items():
        logger = logging.getLogger(name)
        for existing in [h for h in logger.handlers if h.get_name() == HANDLER_NAME]:
            logger.removeHandler(existing)
        logger.addHandler(handler)
        logger.setLevel(logger_level)

    bind_run_context(**context)
