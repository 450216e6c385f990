# prosperian/main.py
from __future__ import annotations

import time
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from prosperian import __version__
from prosperian.clients.apify import ApifyClient
from prosperian.clients.pronto import ProntoClient
from prosperian.core.config import settings
from prosperian.core.exceptions import BaseAPIException, RateLimitError
from prosperian.core.logging import configure_structlog, get_structlog_logger
from prosperian.middleware.logging import LoggingMiddleware
from prosperian.middleware.request_id import RequestIdMiddleware
from prosperian.routes import (
    google_places_router,
    health_router,
    linkedin_sales_router,
    pronto_router,
    pronto_workflows_router,
    workflow_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared upstream clients on startup and close them on shutdown."""
    logger = get_structlog_logger(__name__)
    logger.info("application.starting", environment=settings.environment)

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            integrations=[
                AsyncioIntegration(),
                FastApiIntegration(),
                StarletteIntegration(),
            ],
            traces_sample_rate=1.0 if settings.is_development else 0.1,
            send_default_pii=False,
        )
        logger.info("sentry.initialized")

    if getattr(app.state, "pronto_client", None) is None:
        app.state.pronto_client = ProntoClient.from_settings()
        logger.info("pronto.client_created", base_url=settings.pronto_base_url)
    if not settings.pronto_api_key:
        logger.warning("pronto.api_key_missing")

    if getattr(app.state, "apify_client", None) is None and settings.apify_token:
        app.state.apify_client = ApifyClient.from_settings()
        logger.info("apify.client_created", actor_id=settings.apify_actor_id)

    logger.info("application.started")
    yield

    logger.info("application.shutting_down")
    await app.state.pronto_client.aclose()
    app.state.pronto_client = None
    if getattr(app.state, "apify_client", None) is not None:
        await app.state.apify_client.aclose()
        app.state.apify_client = None
    logger.info("application.shutdown_complete")


# Configure logging before creating app
configure_structlog()
logger = get_structlog_logger(__name__)

app = FastAPI(
    title="Prosperian API",
    version=__version__,
    description="Lead aggregation and enrichment over the Pronto API",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins(),
    allow_credentials=True,
    allow_methods=settings.methods(),
    allow_headers=settings.headers(),
    expose_headers=["X-Request-ID", "X-Response-Time"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(LoggingMiddleware)
# Added last so it runs first and the request id is bound before logging.
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(BaseAPIException)
async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions."""
    logger.warning(
        "api.exception",
        status_code=exc.status_code,
        code=exc.code,
        path=request.url.path,
        method=request.method,
    )
    headers = dict(exc.headers or {})
    if isinstance(exc, RateLimitError) and exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers or None,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    errors = [
        {
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg", "Validation error"),
            "type": error.get("type", "value_error"),
        }
        for error in exc.errors()
    ]
    logger.warning("validation.error", path=request.url.path, method=request.method, errors=errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "validation_error",
            "message": "Request validation failed",
            "details": {"errors": errors},
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    error_id = f"err_{int(time.time())}_{hash(str(exc)) % 10000:04d}"
    logger.error(
        "unhandled.exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    message = f"Internal server error: {exc}" if settings.is_development else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "internal_error",
            "message": message,
            "details": {"error_id": error_id},
        },
        headers={"X-Error-ID": error_id},
    )


app.include_router(health_router, prefix=settings.api_prefix)
app.include_router(pronto_router, prefix=settings.api_prefix)
app.include_router(workflow_router, prefix=settings.api_prefix)
app.include_router(pronto_workflows_router, prefix=settings.api_prefix)
app.include_router(linkedin_sales_router, prefix=settings.api_prefix)
app.include_router(google_places_router, prefix=settings.api_prefix)

if not settings.is_testing:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Prosperian API",
        "version": app.version,
        "environment": settings.environment,
        "docs": "/docs" if settings.is_development else None,
        "health": f"{settings.api_prefix}/health",
        "global_result": f"{settings.api_prefix}/prosperian/get/global/result",
        "workflow_global_results": f"{settings.api_prefix}/pronto/workflow/global-results",
        "pronto_workflows": f"{settings.api_prefix}/pronto-workflows",
        "linkedin_sales": f"{settings.api_prefix}/linkedin-sales",
        "google_places": f"{settings.api_prefix}/google-places",
    }


logger.info("application.configured", environment=settings.environment)
