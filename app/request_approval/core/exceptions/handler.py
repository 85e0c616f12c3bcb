from fastapi_problem.cors import CorsConfiguration
from fastapi_problem.handler import new_exception_handler
from request_approval.core.config import settings
from request_approval.core.logging import get_logger

eh = new_exception_handler(
    logger=get_logger("request_approval.errors"),
    cors=CorsConfiguration(
        allow_origins=[str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    ),
    documentation_uri_template=f"{settings.SERVER_URL}/errors/{{type}}",
    strict_rfc9457=True,
)
