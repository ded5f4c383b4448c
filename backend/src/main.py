"""Letterbox Backend - Main FastAPI Application

Mailbox service: send, reply, forward, draft, trash and search email-like
messages organized into threads, with WebSocket push to recipients.

This module creates and configures the main FastAPI application, including:
- All API routers (auth, users, messages, push socket)
- Middleware (request ID correlation, CORS)
- Exception handlers (uniform {"error", "message"} envelope)
- Health and observability endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings

# Observability
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router

# Authentication & users
from auth.router import router as auth_router
from users.router import router as users_router

# Messaging & push
from messaging.errors import MessagingError
from messaging.router import router as messages_router
from notifications.registry import connection_registry
from notifications.router import router as notifications_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Startup: bind the push connection registry to the serving event loop
    - Shutdown: close every push connection
    """
    logger.info("Letterbox API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    connection_registry.start()

    yield

    await connection_registry.shutdown()
    logger.info("Letterbox API shutting down...")


_docs_enabled = settings.ENVIRONMENT != "production"

app = FastAPI(
    title="Letterbox API",
    description="Threaded mailbox with real-time delivery notifications",
    version="0.1.0",
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(MessagingError)
async def messaging_exception_handler(request: Request, exc: MessagingError) -> JSONResponse:
    """Map lifecycle and query failures to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"Messaging error on {request.method} {request.url.path}", exc_info=exc)
    else:
        logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "message": exc.message},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework and auth errors in the same envelope as everything else."""
    detail = exc.detail
    message = detail.get("message", str(detail)) if isinstance(detail, dict) else str(detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed requests are validation failures (400), with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected store or transport failure.

    The exception text is only exposed when DEBUG is enabled.
    """
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    message = str(exc) if settings.DEBUG else "An unexpected error occurred. Please try again later."
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": message},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Validation errors without the raw input/context objects, which may not be JSON-serializable."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (health, ready, metrics)
app.include_router(observability_router)

# Authentication & user directory
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")

# Messages
app.include_router(messages_router, prefix="/api/v1")

# Push socket
app.include_router(notifications_router)


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "Letterbox API",
        "version": "0.1.0",
        "status": "running",
        "docs": "/docs" if _docs_enabled else None,
        "push": "/ws",
    }


def create_app() -> FastAPI:
    """Application factory for tests and ASGI servers."""
    return app


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
