"""
Structured logging configuration using structlog.

All logs are output as JSON. Fields that could carry OAuth credentials are
masked before rendering, whichever module logged them.
"""
import logging
import sys

import structlog

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({
    "access_token",
    "authorization",
    "client_secret",
    "code",
    "refresh_token",
})


def redact_credentials(logger, method_name, event_dict):
    """structlog processor masking SENSITIVE_KEYS."""
    for key in event_dict.keys() & SENSITIVE_KEYS:
        if event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(level: int = logging.INFO):
    """Configure structlog for JSON output at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_credentials,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(**context):
    """Logger with `context` bound, e.g. get_logger(component="kakao_client")."""
    return structlog.get_logger(**context)
