"""
Centralized structured logging for the account service.

This module sets up structlog with:
- Settings-based configuration (level, console vs JSON output)
- JSON formatting for production, pretty console for development
- Redaction of credential material (passwords, tokens, secrets)

setup_logging() is called once from create_app(); modules obtain loggers
with get_logger(__name__) at import time. Output goes through stdlib logging,
which is what Sentry's LoggingIntegration (wired in create_app()) hooks.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

from config import LoggingSettings

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "password",
    "password_hash",
    "old_password",
    "new_password",
    "token",
    "access_token",
    "authorization",
    "cookie",
    "secret",
    "key",
    "code_hash",
}

_SENSITIVE_SUBSTRINGS = ("password", "token", "secret", "key")
_STRUCTURAL_KEYS = {"level", "event", "timestamp", "logger"}


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("signin_success", account_id="123")
    """
    return structlog.get_logger(name)


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _STRUCTURAL_KEYS:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            sensitive in lowered for sensitive in _SENSITIVE_SUBSTRINGS
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog with appropriate processors for the environment.

    json:    one JSON object per line
    console: pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging to stdout at *log_level* and quiet noisy libraries."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logging(
    settings: Optional[LoggingSettings] = None, env: str = "development"
) -> None:
    """
    Initialize logging for the application.

    Should be called early in application startup (in create_app()).
    """
    if settings is None:
        settings = LoggingSettings()

    configure_stdlib_logging(settings.log_level)
    configure_structlog(settings.log_format)

    get_logger(__name__).info(
        "logging_initialized",
        env=env,
        log_level=settings.log_level,
        log_format=settings.log_format,
    )
