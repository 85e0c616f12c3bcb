import contextvars
import logging
import os
import socket
from contextlib import contextmanager
from typing import Any, Dict, Optional

from request_approval.core.config import settings

_log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("log_context", default={})

# Shown for records logged outside an HTTP request (startup, shutdown, tests)
NO_REQUEST_ID = "-"


class CombinedContextFilter(logging.Filter):
    """
    Stamps every record with the service identity (host, pid, app, version,
    environment) and the current log context, e.g. `request_id` or
    `product_request_id`. Records are never dropped.
    """

    def __init__(self, name: str = "") -> None:
        super().__init__(name)

        self.static_context = {
            "hostname": socket.gethostname(),
            "process_id": os.getpid(),
            "environment": settings.ENVIRONMENT,
            "app_name": settings.APP_NAME,
            "app_version": settings.APP_VERSION,
        }

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in {**self.static_context, **_log_context.get()}.items():
            setattr(record, key, value)
        return True


class RequestIdFilter(logging.Filter):
    """Guarantees a `request_id` attribute so console formats can rely on it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _log_context.get().get("request_id", NO_REQUEST_ID)
        return True


class NoiseReductionFilter(logging.Filter):
    """Drops records about health checks and other high-frequency, low-value paths."""

    def __init__(self, name: str = "", suppress_patterns: Optional[list[str]] = None) -> None:
        super().__init__(name)
        self.suppress_patterns = suppress_patterns or ["/health"]

    def filter(self, record: logging.LogRecord) -> bool:
        if any(pattern in str(getattr(record, "path", "")) for pattern in self.suppress_patterns):
            return False
        message = record.getMessage()
        return not any(pattern in message for pattern in self.suppress_patterns)


@contextmanager
def add_to_log_context(**kwargs: Any):
    """
    Add keys to the log context for the duration of the block.

    Example:
        with add_to_log_context(product_request_id="req-1", intent="approve"):
            logger.info("Dispatching intent")
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield
    finally:
        _log_context.reset(token)


def get_log_context() -> Dict[str, Any]:
    return _log_context.get()
