# stepflow/main.py
from __future__ import annotations

import time
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from stepflow import __version__
from stepflow.core.config import settings
from stepflow.core.exceptions import APIError, BaseAPIException
from stepflow.core.logging import configure_structlog, get_structlog_logger, set_request_id
from stepflow.middleware.logging import LoggingMiddleware
from stepflow.middleware.request_id import RequestIdMiddleware
from stepflow.routes import flows, health
from stepflow.services.flow_store import get_flow_store
from stepflow.services.redis import close_redis_pool, init_redis_pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger = get_structlog_logger(__name__)

    logger.info("application.starting", environment=settings.environment)

    if settings.flow_store_backend == "redis":
        try:
            await init_redis_pool()
        except BaseAPIException as e:
            logger.error("redis.connection_failed", error=e.message)
            if settings.is_production:
                raise

    store = get_flow_store()
    logger.info("flow_store.ready", backend=store.backend)

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

    logger.info("application.started")
    yield

    logger.info("application.shutting_down")

    if settings.flow_store_backend == "redis":
        await close_redis_pool()

    logger.info("application.shutdown_complete")


# Configure logging before creating app
configure_structlog()
logger = get_structlog_logger(__name__)

app = FastAPI(
    title="StepFlow API",
    version=__version__,
    description="Multi-step consultation forms with click-source attribution",
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
    allow_headers=settings.allowed_headers.split(","),
    expose_headers=["X-Request-ID", "X-Response-Time"],
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.hosts())

# RequestIdMiddleware is added last so it runs first and LoggingMiddleware sees the id.
app.add_middleware(LoggingMiddleware)
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
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "loc": list(error.get("loc", [])),
            "msg": error.get("msg", "Validation error"),
            "type": error.get("type", "value_error"),
        })

    logger.warning(
        "validation.error",
        path=request.url.path,
        method=request.method,
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=APIError(
            message="Request validation failed",
            code="validation_error",
            details={"errors": errors},
        ).to_dict(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    error_id = f"err_{int(time.time())}_{hash(str(exc)) % 10000:04d}"
    set_request_id(error_id)

    logger.error(
        "unhandled.exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
        method=request.method,
    )

    message = f"Internal server error: {exc}" if settings.is_development else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=APIError(
            message=message,
            code="internal_error",
            details={"error_id": error_id},
        ).to_dict(),
        headers={"X-Error-ID": error_id},
    )


app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(flows.router, prefix=settings.api_prefix, tags=["flows"])

if not settings.is_testing:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "StepFlow API",
        "version": app.version,
        "environment": settings.environment,
        "docs": "/docs" if settings.is_development else None,
        "health": f"{settings.api_prefix}/health",
    }


logger.info("application.configured", environment=settings.environment)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("stepflow.main:app", host=settings.api_host, port=settings.api_port)
