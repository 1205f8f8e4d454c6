"""
FastAPI application entry point for the panel backend.

This module initializes the FastAPI application with:
- Exception handlers mapping service errors to HTTP responses
- Startup/shutdown handling (form sessions, database engine)
- Logging configuration

Environment Variables:
    PANEL_DB_URL: Database URL (default: local PostgreSQL)
    PANEL_ENV: Environment (production/development, default: development)
    PANEL_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    PANEL_ASSOCIATIONS_LOOKUP_LIST_LIMIT: Candidate list cap (default: 1000)
"""

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from panel.src.config.settings import get_settings
from panel.src.db.database import dispose_engine
from panel.src.services.exceptions import (
    ConflictError,
    CreationDisabledError,
    DataSourceUnavailableError,
    FormValidationError,
    InvalidTargetTypeError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from panel.src.services.form_session_service import FormSessionService
from panel.src.utils.logging_config import init_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: Load settings
    - Shutdown: Drop open form sessions, dispose the database engine

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    # Startup
    logger = get_logger("api")
    settings = get_settings()
    logger.info(
        "Starting panel backend application",
        extra={"lookup_list_limit": settings.associations_lookup_list_limit},
    )

    yield

    # Shutdown
    logger.info("Shutting down panel backend application")
    FormSessionService.clear_sessions()
    dispose_engine()


# Initialize logging before creating app
init_logging()

# Create FastAPI application
app = FastAPI(
    title="Panel API",
    description="Backend API for the admin panel. "
                "Renders belongs-to association fields with bounded candidate lists "
                "and creates related records inline from new/edit forms.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# Exception handlers


def _error_response(request: Request, status_code: int, error: str, exc: ServiceError, **content) -> JSONResponse:
    logger = get_logger("api")
    logger.warning(
        error,
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": str(exc), **content},
    )


@app.exception_handler(FormValidationError)
async def form_validation_exception_handler(
    request: Request, exc: FormValidationError
) -> JSONResponse:
    """
    Handle form validation failures.

    Returns:
        422 with messages keyed by form field
    """
    return _error_response(
        request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation Error", exc, errors=exc.errors
    )


@app.exception_handler(ValidationError)
async def service_validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle invalid requests detected by services (400)."""
    return _error_response(
        request, status.HTTP_400_BAD_REQUEST, "Bad Request", exc, field=exc.field
    )


@app.exception_handler(InvalidTargetTypeError)
async def invalid_target_type_exception_handler(
    request: Request, exc: InvalidTargetTypeError
) -> JSONResponse:
    """Handle target types outside a relation's allowed set (400)."""
    return _error_response(
        request, status.HTTP_400_BAD_REQUEST, "Invalid Target Type", exc, allowed=exc.allowed
    )


@app.exception_handler(CreationDisabledError)
async def creation_disabled_exception_handler(
    request: Request, exc: CreationDisabledError
) -> JSONResponse:
    """Handle inline creation on fields that don't allow it (403)."""
    return _error_response(request, status.HTTP_403_FORBIDDEN, "Creation Disabled", exc)


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(
    request: Request, exc: NotFoundError
) -> JSONResponse:
    """Handle missing resources, fields, records and sessions (404)."""
    return _error_response(request, status.HTTP_404_NOT_FOUND, "Not Found", exc)


@app.exception_handler(ConflictError)
async def conflict_exception_handler(
    request: Request, exc: ConflictError
) -> JSONResponse:
    """Handle state conflicts (409)."""
    return _error_response(request, status.HTTP_409_CONFLICT, "Conflict", exc)


@app.exception_handler(DataSourceUnavailableError)
async def data_source_exception_handler(
    request: Request, exc: DataSourceUnavailableError
) -> JSONResponse:
    """
    Handle data store failures.

    Returns:
        503; the client may retry
    """
    logger = get_logger("db")
    logger.error(
        "Data source unavailable",
        extra={
            "path": request.url.path,
            "method": request.method,
            "operation": exc.operation,
            "target_type": exc.target_type,
        }
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "Service Unavailable",
            "message": "The data source is temporarily unavailable. Please try again later.",
        }
    )


@app.exception_handler(RequestValidationError)
@app.exception_handler(PydanticValidationError)
async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic request validation errors.

    Returns:
        JSON response with validation error details
    """
    logger = get_logger("api")
    errors = exc.errors()
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": str(errors),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in errors
            ],
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """
    Handle SQLAlchemy database errors.

    Args:
        request: HTTP request
        exc: SQLAlchemy exception

    Returns:
        JSON response with database error message
    """
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle all other unhandled exceptions.

    Args:
        request: HTTP request
        exc: Unhandled exception

    Returns:
        JSON response with generic error message
    """
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status and application information
    """
    return {
        "status": "healthy",
        "service": "panel-backend",
        "version": "1.0.0",
    }


# API routers
from panel.src.api import forms, resources

app.include_router(resources.router, prefix="/api")
app.include_router(forms.router, prefix="/api")


# Root endpoint


@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """
    Root endpoint with API information.

    Returns:
        API metadata and documentation links
    """
    return {
        "message": "Panel API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
    }
