"""
Notification Inbox API.

FastAPI application serving per-user notification inboxes.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from inbox_api.config import settings, validate_security_settings
from inbox_api.database import dispose_db, init_db
from inbox_api.errors import NotificationAccessDenied, NotificationValidationError
from inbox_api.log import setup_logging
from inbox_api.middleware.rate_limit import limiter
from inbox_api.routers.notifications import router as notifications_router

# Import models to register them with Base.metadata
from inbox_api.models import Notification, User, UserNotification  # noqa: F401

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    """Application lifespan handler for startup/shutdown."""
    setup_logging()
    validate_security_settings()
    await init_db()
    logger.info("inbox_api_started", environment=settings.environment)
    yield
    await dispose_db()


app = FastAPI(
    title="Notification Inbox API",
    description="Per-user notification inbox with keyset pagination",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter state
app.state.limiter = limiter

# Rate limit exceeded handler
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["*"],
)

app.include_router(notifications_router)


# --- Middleware ---


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add a unique request ID to each request and to its log events."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("request_id")
    response.headers["X-Request-ID"] = request_id
    return response


# --- Exception Handlers ---


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": getattr(request.state, "request_id", None),
    }
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


def _error_field(loc: tuple[Any, ...]) -> str:
    """Dotted field name for a pydantic error location, minus its source."""
    parts = [str(part) for part in loc]
    if parts and parts[0] in {"body", "query", "path", "header"}:
        parts = parts[1:]
    return ".".join(parts) or "request"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request binding failures, keyed by field like normalizer errors."""
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        details.setdefault(_error_field(error.get("loc", ())), []).append(
            error.get("msg", "Invalid value")
        )

    if details:
        field, messages = next(iter(details.items()))
        message = f"{field}: {messages[0]}"
    else:
        message = "Validation error"

    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        message,
        details,
    )


@app.exception_handler(NotificationValidationError)
async def notification_validation_handler(
    request: Request, exc: NotificationValidationError
) -> JSONResponse:
    """Field-keyed validation failures from request normalization."""
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        f"{exc.field}: {exc.message}",
        exc.errors,
    )


@app.exception_handler(NotificationAccessDenied)
async def access_denied_handler(
    request: Request, exc: NotificationAccessDenied  # noqa: ARG001
) -> JSONResponse:
    return _error_response(
        request,
        status.HTTP_403_FORBIDDEN,
        "FORBIDDEN",
        "Notification access denied",
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent error format."""
    logger.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
    )


# --- Health Check ---


@app.get("/api/v1/health", tags=["System"])
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns 200 OK if the API is running.
    """
    return {"status": "healthy"}
