import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from request_approval.core.logging import add_to_log_context, get_logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Assigns every HTTP request an id, puts it in the log context for the
    whole request, and logs the request start and outcome with timing.

    The id and the processing time are echoed back as response headers.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        trust_request_id: bool = False,
        request_id_generator: Callable[[], str] = lambda: uuid.uuid4().hex,
        enable_request_logging: bool = True,
    ) -> None:
        super().__init__(app)

        self.trust_request_id = trust_request_id
        self.request_id_generator = request_id_generator
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        request_id = self._get_request_id(request)
        request.state.request_id = request_id

        request_context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }

        start_time = time.perf_counter()

        with add_to_log_context(**request_context):
            if self.enable_request_logging:
                logger.info(
                    "Incoming %s request to %s",
                    request.method,
                    request.url.path,
                    extra={"event_type": "request_start", "query_string": str(request.query_params) or None},
                )

            response = await call_next(request)

            process_time = time.perf_counter() - start_time
            duration_ms = process_time * 1000

            response.headers["X-Process-Time"] = f"{process_time:.6f}"
            response.headers[REQUEST_ID_HEADER] = request_id

            if self.enable_request_logging:
                logger.log(
                    self._get_log_level_for_status(response.status_code),
                    "%s request to %s completed with status %d in %.2fms",
                    request.method,
                    request.url.path,
                    response.status_code,
                    duration_ms,
                    extra={
                        "event_type": "request_complete",
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                    },
                )

            return response

    def _get_request_id(self, request: Request) -> str:
        if self.trust_request_id:
            incoming = request.headers.get(REQUEST_ID_HEADER)
            if incoming:
                return incoming
        return self.request_id_generator()

    @staticmethod
    def _get_log_level_for_status(status_code: int) -> int:
        if status_code >= 500:
            return logging.ERROR
        if status_code >= 400:
            return logging.WARNING
        return logging.INFO
