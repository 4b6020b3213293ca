"""
userhub - Logging Configuration

Structured logging on top of the standard library:
- JSON output for production, pretty console output for development
- Request correlation id merged from contextvars into every event
- Credential-like fields redacted before rendering

Usage:
    from userhub.logging_config import get_logger

    log = get_logger(__name__)
    log.info("account_registered", email=email)
"""

import logging
import sys

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor


# Fields never written to logs in clear text
REDACTED_FIELDS = {
    "password",
    "password_hash",
    "token",
    "access_token",
    "refresh_token",
    "activation_token",
    "password_reset_token",
    "authorization",
    "secret",
}

_RESERVED_KEYS = {"level", "event", "timestamp", "logger", "request_id"}


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _RESERVED_KEYS:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            sensitive in lowered for sensitive in ("password", "token", "secret")
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_logging(log_format: str = "console", log_level: str = "INFO") -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_format: "json" for machine-readable output, anything else for console
        log_level: Minimum level name (DEBUG, INFO, WARNING, ...)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
        force=True,
    )
    # Engine SQL echo is controlled by DATABASE_ECHO, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty(), pad_event_to=15)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)
    """
    return structlog.get_logger(name)
