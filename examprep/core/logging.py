from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

SERVICE_NAME = "examprep-api"
REDACTED = "***"
# payment webhooks and the gateway handshake both carry credentials in bound fields
SENSITIVE_KEY_PARTS = ("token", "secret", "signature", "password")


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def redact_secrets(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key in list(event_dict):
        if key != "event" and _is_sensitive(key) and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def add_service_name(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def build_processors(*, app_env: str) -> list[Any]:
    renderer: Any = structlog.dev.ConsoleRenderer() if app_env == "dev" else structlog.processors.JSONRenderer()
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_service_name,
        redact_secrets,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        renderer,
    ]


def configure_logging(log_level: str = "INFO", *, app_env: str = "dev") -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(app_env=app_env),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
