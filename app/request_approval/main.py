import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi_problem.handler import add_exception_handler
from request_approval.core.config import settings
from request_approval.core.dependencies import get_approval_session, get_gateway
from request_approval.core.exceptions import errors
from request_approval.core.exceptions.handler import eh
from request_approval.core.logging import get_logger, setup_exception_logging, setup_logging
from request_approval.core.middlewares import RequestLoggingMiddleware
from request_approval.domain.routers import health_router, markups_router, requests_router

if settings.ENVIRONMENT in ["staging", "production"]:
    setup_logging()
    setup_exception_logging()


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    """
    Application lifespan manager: loads the first batch of requests and
    the catalogue reference lists, and closes the gateway on shutdown.
    """
    try:
        logger.info("Application startup initiated", extra={"event_type": "app_startup_start"})

        session = get_approval_session()
        try:
            count = await session.refresh()
            logger.info(f"Loaded {count} product requests", extra={"event_type": "initial_load_complete"})
        except errors.ServiceError as se:
            # The table stays empty until the next refresh
            logger.warning(
                f"Initial load of product requests failed: {se.detail}",
                extra={"event_type": "initial_load_failed"},
            )
        try:
            await session.load_reference_lists()
        except errors.ServiceError as se:
            logger.warning(
                f"Reference lists are not available yet: {se.detail}",
                extra={"event_type": "reference_load_failed"},
            )

        logger.info(
            "Application startup completed successfully",
            extra={
                "event_type": "app_startup_complete",
                "environment": settings.ENVIRONMENT,
                "app_version": settings.APP_VERSION,
            },
        )

        yield

    except Exception as exc:
        logger.error(
            "Application startup failed",
            exc_info=True,
            extra={
                "event_type": "app_startup_failed",
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
            },
        )
        raise
    finally:
        try:
            logger.info("Application shutdown initiated", extra={"event_type": "app_shutdown_start"})

            await get_gateway().close()
            logger.info("Gateway closed", extra={"event_type": "gateway_closed"})

            logger.info("Application shutdown completed", extra={"event_type": "app_shutdown_complete"})

        except asyncio.CancelledError:
            logger.info(
                "Application shutdown cancelled - graceful shutdown",
                extra={"event_type": "app_shutdown_cancelled"},
            )
        except Exception as exc:
            logger.error(
                "Error during application shutdown",
                exc_info=True,
                extra={
                    "event_type": "app_shutdown_error",
                    "exception_type": type(exc).__name__,
                    "exception_message": str(exc),
                },
            )


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url=settings.OPENAPI_DOCS_URL,
    openapi_url=settings.OPENAPI_JSON_SCHEMA_URL,
    redoc_url=None,
)

add_exception_handler(app, eh)


# Middlewares
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(GZipMiddleware, compresslevel=5)
app.add_middleware(RequestLoggingMiddleware, trust_request_id=settings.ENVIRONMENT == "local")


# Routers (V1)
app.include_router(requests_router, prefix=f"{settings.API_V1_STR}/requests", tags=["Product Requests"])
app.include_router(markups_router, prefix=f"{settings.API_V1_STR}/markups", tags=["Markups"])
app.include_router(health_router, prefix="/health", include_in_schema=False)
