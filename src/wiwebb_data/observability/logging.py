"""
wiwebb_data.observability.logging

Structured logging configuration for the data-access layer.

Responsibilities:
- Configure `structlog` for JSON logs (or a readable console format in development).
- Scrub credential-bearing fields before any renderer sees them.
- Provide a small wrapper for obtaining bound loggers.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog

LogFormat = Literal["json", "console"]

# Field names whose values must never reach a log sink.
SENSITIVE_FIELDS = frozenset(
    {"password", "password1", "password2", "new_password", "old_password", "token", "key", "authorization"}
)
REDACTED = "[redacted]"


def configure_logging(*, service_name: str, level: str, fmt: LogFormat = "json") -> None:
    """
    Called once by the composition root or the dev server; calling it again
    reconfigures in place.
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer: Any = (
        structlog.dev.ConsoleRenderer() if fmt == "console" else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            redact_sensitive,
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def redact_sensitive(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for name in SENSITIVE_FIELDS.intersection(event_dict):
        event_dict[name] = REDACTED
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Call sites log ids and statuses only; the redaction step is the backstop for a
# credential passed as a field by mistake.
