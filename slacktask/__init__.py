"""slacktask - Slack notifications for continuous-delivery pipeline tasks."""

import contextvars
import json
import logging
import sys
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, Optional


@dataclass(frozen=True)
class RequestContext:
    """Identifies the host request a log line belongs to."""

    request_id: str = "-"
    operation: str = "-"


current_request: contextvars.ContextVar[RequestContext] = contextvars.ContextVar(
    "current_request", default=RequestContext()
)

# Delivery details passed through ``extra=`` that JSON entries carry over
DELIVERY_FIELDS = ("target", "status_code")


@contextmanager
def request_scope(operation: str) -> Iterator[RequestContext]:
    """Tag every log record emitted inside the block with a fresh request id."""
    context = RequestContext(request_id=uuid.uuid4().hex[:8], operation=operation)
    token = current_request.set(context)
    try:
        yield context
    finally:
        current_request.reset(token)


class RequestContextFilter(logging.Filter):
    """Copies the current request id and operation onto log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = current_request.get()
        record.request_id = context.request_id
        record.operation = context.operation
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, keyed by request and operation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "operation": getattr(record, "operation", "-"),
            "request_id": getattr(record, "request_id", "-"),
            "message": record.getMessage(),
        }
        for name in DELIVERY_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: Optional[str] = None, log_format: str = "text") -> logging.Logger:
    """Configure the ``slacktask`` logger.

    Logs go to stderr; stdout is reserved for the response body printed by
    the command-line entry point. httpx request lines are only shown at
    DEBUG.

    Args:
        level: Log level name. Defaults to INFO.
        log_format: 'text' or 'json'.

    Returns:
        The configured ``slacktask`` logger.
    """
    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    if log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s [%(operation)s:%(request_id)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(RequestContextFilter())

    logger = logging.getLogger("slacktask")
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False

    logging.getLogger("httpx").setLevel(
        logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    )

    return logger


__version__ = "1.0.0"
__all__ = [
    "RequestContext",
    "RequestContextFilter",
    "JSONFormatter",
    "current_request",
    "request_scope",
    "setup_logging",
    "__version__",
]
