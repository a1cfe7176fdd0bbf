"""Main FastAPI application for the GuardMoGo fraud-reporting service."""

import logging
import signal
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from guardmogo import __version__
from guardmogo.config import settings, ConfigurationError
from guardmogo.api.auth import router as auth_router
from guardmogo.api.numbers import router as numbers_router
from guardmogo.api.reports import router as reports_router
from guardmogo.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    MetricsMiddleware,
    RateLimitMiddleware,
    get_metrics
)
from guardmogo.observability import (
    setup_observability,
    instrument_fastapi_app,
    TracingContextMiddleware
)
from guardmogo.services.auth_service import AuthServiceError
from guardmogo.services.report_service import (
    AuthenticationRequiredError,
    DataAccessError,
    ReportNotFoundError,
    ReportSubmissionError,
)
from guardmogo.utils.auth_messages import AuthErrorKind
from guardmogo.utils.validation import ValidationError


logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

AUTH_ERROR_STATUS = {
    AuthErrorKind.DUPLICATE_ACCOUNT: 409,
    AuthErrorKind.NOT_FOUND: 404,
    AuthErrorKind.WRONG_PASSWORD: 401,
    AuthErrorKind.INVALID_CREDENTIALS: 401,
    AuthErrorKind.SESSION_EXPIRED: 401,
    AuthErrorKind.TOO_MANY_ATTEMPTS: 429,
    AuthErrorKind.ACCOUNT_DISABLED: 403,
    AuthErrorKind.EMAIL_NOT_CONFIRMED: 403,
    AuthErrorKind.NOT_ALLOWED: 403,
    AuthErrorKind.NETWORK: 503,
}


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str = __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting GuardMoGo API",
                port=settings.port,
                host=settings.host,
                store_backend=settings.store_backend)

    missing = settings.missing_backend_settings()
    if missing:
        # Keep serving so clients get a readable 503 instead of a dead socket
        logger.error("Backend configuration missing", missing=missing)
    else:
        logger.info("Configuration validated successfully")

    yield

    logger.info("Shutting down GuardMoGo API")


# Create FastAPI application
app = FastAPI(
    title="GuardMoGo API",
    description="Search, report and track Mobile Money numbers used for fraud in Ghana",
    version=__version__,
    lifespan=lifespan
)

if settings.otel_enabled:
    setup_observability(
        service_name="guardmogo-api",
        service_version=__version__,
        otlp_endpoint=settings.otlp_endpoint,
        enable_console_export=settings.otel_console_export
    )
    instrument_fastapi_app(app)

# Add middleware (order matters - last added is executed first)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    max_requests=settings.rate_limit_requests,
    window_seconds=settings.rate_limit_window_seconds
)
app.add_middleware(TracingContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(reports_router)
app.include_router(numbers_router)
app.include_router(auth_router)


def _error_body(request: Request, error_type: str, message: str, **extra) -> dict:
    body = {
        "error": error_type,
        "message": message,
        "correlation_id": request.headers.get("X-Request-ID", "unknown"),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
    body.update(extra)
    return body


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # Routers put the standard error body in ``detail``
    content = exc.detail if isinstance(exc.detail, dict) else _error_body(request, "HTTPError", str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Request refused, backend not configured", missing=exc.missing)
    return JSONResponse(
        status_code=503,
        content=_error_body(request, "BackendNotConfigured", str(exc), missing=exc.missing)
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_error_body(request, "ValidationError", "Please fix the errors and try again", fields=exc.errors)
    )


@app.exception_handler(AuthServiceError)
async def auth_error_handler(request: Request, exc: AuthServiceError) -> JSONResponse:
    logger.info("Authentication error", kind=exc.kind.value, detail=exc.detail)
    return JSONResponse(
        status_code=AUTH_ERROR_STATUS.get(exc.kind, 400),
        content=_error_body(request, exc.kind.value, exc.message)
    )


@app.exception_handler(AuthenticationRequiredError)
async def authentication_required_handler(request: Request, exc: AuthenticationRequiredError) -> JSONResponse:
    return JSONResponse(status_code=401, content=_error_body(request, "AuthenticationRequired", str(exc)))


@app.exception_handler(ReportNotFoundError)
async def report_not_found_handler(request: Request, exc: ReportNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=_error_body(request, "ReportNotFound", str(exc)))


@app.exception_handler(DataAccessError)
@app.exception_handler(ReportSubmissionError)
async def data_access_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Data access failed", error=str(exc.__cause__ or exc), error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content=_error_body(request, "DataAccessError", str(exc)))


@app.get("/healthz", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc)
    )


@app.get("/metrics")
async def metrics_endpoint():
    """Application metrics endpoint."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "metrics": get_metrics()
    }


def handle_shutdown(signum, frame):
    """Handle graceful shutdown signals."""
    logger.info("Received shutdown signal", signal=signum)
    sys.exit(0)


if __name__ == "__main__":
    import uvicorn

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    uvicorn.run(
        "guardmogo.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False
    )
