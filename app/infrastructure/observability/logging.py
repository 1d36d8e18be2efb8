"""
Structured logging for the Alpha Builder backend.

Every module logs through structlog with keyword fields; output is one JSON
object per line on stdout. Credentials and raw emails that reach a log call
by mistake are masked before rendering.
"""

import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory

# Field names that must never be rendered in clear text
REDACTED_FIELDS = frozenset(
    {"api_key", "api_secret", "secret", "token", "operator_key", "private_key", "email", "proof"}
)
REDACTED = "***"

NOISY_LOGGERS = ("httpx", "httpcore", "web3", "urllib3", "uvicorn.access")


def redact_sensitive_fields(logger, method_name, event_dict):
    for key in REDACTED_FIELDS.intersection(event_dict):
        if event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        log_level: stdlib level name; unknown names fall back to INFO
    """
    structlog.configure(
        processors=[
            # request_id / client_ip bound by RequestContextMiddleware
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_sensitive_fields,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_request(
    method: str, path: str, status_code: int, duration_ms: float, request_id: str | None = None
) -> None:
    """One line per HTTP request; 4xx and 5xx are logged as warnings."""
    fields = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": duration_ms,
    }
    if request_id:
        fields["request_id"] = request_id

    http_logger = get_logger("http")
    if status_code >= 400:
        http_logger.warning("HTTP request failed", **fields)
    else:
        http_logger.info("HTTP request completed", **fields)
