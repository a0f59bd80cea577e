"""
lexdesk.observability.logging

structlog setup shared by the API process and tests.

Responsibilities:
- JSON lines on stdout outside dev; a readable console renderer in dev.
- Mask credential-bearing keys before any renderer sees them.
- Hand out bound loggers (`get_logger`).
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

import structlog

EventDict = dict[str, Any]

# Keys that must never reach a log sink in clear text.
REDACTED_KEYS = frozenset(
    {"password", "new_password", "current_password", "token", "refresh_token", "authorization"}
)


def redact_secrets(_: Any, __: str, event_dict: EventDict) -> EventDict:
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _service_field(service_name: str) -> Callable[[Any, str, EventDict], EventDict]:
    def add_service(_: Any, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def configure_logging(*, service_name: str, level: str, json_logs: bool = True) -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    # `request_completed` replaces uvicorn's access line.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_field(service_name),
        redact_secrets,
    ]
    if json_logs:
        shared.append(structlog.processors.dict_tracebacks)

    structlog.configure(
        processors=[*shared, renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# `request_id`, `path` and `method` are bound in `observability.middleware`;
# `principal_id` is bound by `auth.pipeline` once the caller is resolved.
