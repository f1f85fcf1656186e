"""
Logging configuration for the rundown engine.

This module configures structlog for JSON logging across the application.
"""

import logging
import re
import sys
from typing import Any

import structlog

from .settings import settings

_SECRET_KEYS = (
    "token",
    "password",
    "secret",
    "api_key",
    "connection_string",
    "database_url",
)

# URLs with credentials, token/password query parameters
_SECRET_PATTERNS = (
    (re.compile(r"://[^:/@\s]+:[^@\s]+@"), "://***@"),
    (re.compile(r"token=[^&\s]+"), "token=***"),
    (re.compile(r"password=[^&\s]+"), "password=***"),
)


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        for pattern, replacement in _SECRET_PATTERNS:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact_value(item) for item in value]
    return value


def redact_secrets(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Redact sensitive information from log events."""
    for key in list(event_dict.keys()):
        if any(secret in key.lower() for secret in _SECRET_KEYS):
            event_dict[key] = "***REDACTED***"
        else:
            event_dict[key] = _redact_value(event_dict[key])
    return event_dict


def configure_logging(level: str | None = None) -> None:
    """Configure structlog for JSON logging."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_secrets,  # Redact secrets before rendering
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger with service context.

    The logger stays a lazy proxy until first use, so module-level loggers pick
    up the configuration applied later by ``configure_logging``.
    """
    return structlog.get_logger(name, service="rundown", env=settings.env)
