"""structlog configuration for the knowledge hub.

Every event carries ``service`` plus a level and an ISO timestamp, and is
rendered either as coloured console lines or as one JSON object per line.
The stdlib root logger is given the same renderer, so uvicorn access lines
and library warnings land in the same stream as application events.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

DEFAULT_SERVICE = "knowledge-hub"
DEFAULT_LOGGER_NAME = "knowledge_hub"

# Libraries that log every statement or request part at DEBUG/INFO.
_CHATTY_LOGGERS = ("aiosqlite", "multipart", "python_multipart", "fitz")


def service_tagger(service: str) -> structlog.types.Processor:
    """Build a processor that stamps *service* on events that lack one."""

    def _tag(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return _tag


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    service: str = DEFAULT_SERVICE,
) -> None:
    """(Re)configure structlog and the stdlib root logger.

    ``json_output`` selects the JSON renderer; otherwise events are
    rendered for a terminal.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        service_tagger(service),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *processors,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return a logger bound to *name* (the package name when omitted)."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name or DEFAULT_LOGGER_NAME)
