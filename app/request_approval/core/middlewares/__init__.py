from .request_logging import RequestLoggingMiddleware  # noqa: F401
