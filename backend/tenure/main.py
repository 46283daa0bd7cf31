"""Tenure discover backend: FastAPI application entry point."""

import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before other tenure imports create loggers
# (cache_logger_on_first_use freezes the processor chain).
from tenure.core.logging import configure_structlog
from tenure.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tenure.api.routes import api_router
from tenure.content.onet import OnetContentProvider
from tenure.core.config import get_settings
from tenure.core.exceptions import ContentProviderError, PersistenceError, TenureError
from tenure.db import close_redis, init_redis
from tenure.db.versioned import VersionedPersistenceGateway
from tenure.middleware.correlation import get_correlation_id, setup_correlation_middleware
from tenure.services.coordinator import AssessmentCoordinator

logger = structlog.get_logger(__name__)

# Adapter errors that escape the coordinator map to gateway-style statuses
TENURE_ERROR_STATUS: dict[type[TenureError], tuple[int, str]] = {
    ContentProviderError: (502, "Assessment content is temporarily unavailable"),
    PersistenceError: (503, "Profile storage is temporarily unavailable"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect Redis, build and load the coordinator; close Redis on shutdown."""
    settings = get_settings()
    logger.info("discover_startup", app_name=settings.app_name, base_path=settings.app_base_path)

    redis = await init_redis()
    gateway = VersionedPersistenceGateway(redis, settings.storage_key_prefix)
    coordinator = AssessmentCoordinator(gateway, OnetContentProvider(), settings=settings)
    await coordinator.load()
    app.state.coordinator = coordinator
    logger.info("coordinator_ready", default_landing_tab=settings.default_landing_tab)

    yield

    app.state.coordinator = None
    await close_redis()
    logger.info("discover_shutdown")


def _error_response(status_code: int, detail, event: str, request: Request, **context) -> JSONResponse:
    """Log one error event keyed by a fresh debug_id and return the sanitized body."""
    debug_id = str(uuid.uuid4())
    log = logger.warning if status_code < 500 else logger.error
    log(
        event,
        status_code=status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        detail=detail,
        method=request.method,
        path=request.url.path,
        **context,
    )
    return JSONResponse(status_code=status_code, content={"detail": detail, "debug_id": debug_id})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(exc.status_code, exc.detail, "http_exception", request)


async def tenure_error_handler(request: Request, exc: TenureError) -> JSONResponse:
    """Adapter failure that reached a route instead of becoming a result value."""
    status_code, detail = TENURE_ERROR_STATUS.get(type(exc), (500, "Internal server error"))
    return _error_response(
        status_code, detail, "tenure_error", request, error=str(exc), error_type=type(exc).__name__
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled errors: traceback in the log, generic 500 to the client."""
    return _error_response(
        500,
        "Internal server error",
        "unhandled_exception",
        request,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )


def create_app() -> FastAPI:
    """Build the API app: CORS, request ids, error handlers and the /api routers."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Assessment lifecycle, theme and navigation state for Tenure Discover",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    setup_correlation_middleware(app)

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(TenureError, tenure_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tenure.main:app", host="0.0.0.0", port=8000, reload=_early_settings.debug)
