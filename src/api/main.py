"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from documents.presentation import router as documents_router
from iam.presentation import router as iam_router
from infrastructure.database.dependencies import close_database_connections
from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import get_database_settings, get_settings
from infrastructure.version import __version__
from shared_kernel.exceptions import CoreError
from shared_kernel.middleware.request_context import (
    REQUEST_ID_HEADER,
    RequestContextMiddleware,
)

logger = structlog.get_logger()


@asynccontextmanager
async def bizops_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Engine disposal on shutdown (the engine itself is created lazily)
    """
    configure_logging()
    probe = DefaultStartupProbe()
    probe.application_started(
        version=__version__,
        database=get_database_settings().connection_string,
    )

    yield

    await close_database_connections()
    probe.application_stopped()


app = FastAPI(
    title=get_settings().app_name,
    description="Multi-tenant business operations: orders, invoices and payments",
    version=__version__,
    lifespan=bizops_lifespan,
)

app.add_middleware(RequestContextMiddleware)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@app.exception_handler(CoreError)
async def core_error_handler(request: Request, exc: CoreError) -> JSONResponse:
    """Answer classified failures with their code and status."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        error_code=exc.code,
        status_code=exc.status_code,
        message=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer malformed request bodies in the common error shape."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    logger.warning("request_invalid", errors=len(errors), location=location)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "VALIDATION_ERROR",
            "message": f"{location}: {message}" if location else message,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer without leaking details."""
    request_id = _request_id(request)
    logger.exception(
        "request_crashed",
        request_id=request_id,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "INTERNAL_ERROR", "message": "Internal server error"},
        headers=headers,
    )


app.include_router(iam_router, prefix="/api")
app.include_router(documents_router, prefix="/api")


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}


@app.get("/api/health")
def api_health():
    """Health check under the API prefix."""
    return {"status": "ok", "version": __version__}
