"""Centralized error handling system with proper categorization.

This module provides:
1. Error categories and codes shared by every handler
2. Consistent error response formatting
3. Mapping of domain, auth and database failures to HTTP responses
4. One place that wires every handler onto the application
"""

import logging
from typing import Any
from uuid import UUID, uuid4

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DatabaseError, IntegrityError, OperationalError

from src.auth.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidTokenError,
    MissingTokenError,
    TokenExpiredError,
)
from src.database.errors import FOREIGN_KEY, UNIQUE, integrity_kind
from src.exceptions import BadRequestError, ResourceNotFoundError


logger = logging.getLogger(__name__)


# === Error Categories ===


class ErrorCategory:
    """Error category constants."""

    AUTHENTICATION = "AUTHENTICATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    DATABASE = "DATABASE_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class ErrorCode:
    """Specific error codes for better client handling."""

    # Authentication errors
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"  # noqa: S105
    TOKEN_EXPIRED = "TOKEN_EXPIRED"  # noqa: S105

    # Authorization errors
    ACCESS_DENIED = "ACCESS_DENIED"

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"
    RULE_VIOLATION = "RULE_VIOLATION"

    # Database errors
    DB_CONNECTION_FAILED = "DB_CONNECTION_FAILED"
    DB_CONSTRAINT_VIOLATION = "DB_CONSTRAINT_VIOLATION"
    DB_UNIQUE_VIOLATION = "DB_UNIQUE_VIOLATION"
    DB_FOREIGN_KEY_VIOLATION = "DB_FOREIGN_KEY_VIOLATION"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Internal errors
    INTERNAL = "INTERNAL_ERROR"


# === Error Response Formatting ===


def format_error_response(
    category: str,
    code: str,
    detail: str,
    status_code: int,
    suggestions: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Format a consistent error response."""
    content: dict[str, Any] = {
        "error": {
            "category": category,
            "code": code,
            "detail": detail,
        }
    }

    if suggestions:
        content["error"]["suggestions"] = suggestions

    if metadata:
        content["error"]["metadata"] = metadata

    return JSONResponse(status_code=status_code, content=content, headers=headers)


# === Exception Handlers ===


async def handle_not_found_errors(request: Request, exc: ResourceNotFoundError) -> JSONResponse:
    """Handle missing entities (404)."""
    logger.info(f"Not found on {request.method} {request.url.path}: {exc}")

    return format_error_response(
        category=ErrorCategory.RESOURCE_NOT_FOUND,
        code=ErrorCode.NOT_FOUND,
        detail=str(exc),
        status_code=status.HTTP_404_NOT_FOUND,
        suggestions=["The requested resource does not exist"],
    )


async def handle_bad_request_errors(request: Request, exc: BadRequestError) -> JSONResponse:
    """Handle domain rule violations (400)."""
    logger.info(f"Bad request on {request.method} {request.url.path}: {exc}")

    return format_error_response(
        category=ErrorCategory.BAD_REQUEST,
        code=ErrorCode.RULE_VIOLATION,
        detail=str(exc),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def handle_authentication_errors(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle authentication-related errors."""
    logger.warning(
        f"Authentication error on {request.method} {request.url.path}: {exc.detail}",
        extra={
            "client_host": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
        },
    )

    if isinstance(exc, InvalidTokenError):
        code = ErrorCode.INVALID_TOKEN
        suggestions = ["Check your authentication token", "Try logging in again"]
    elif isinstance(exc, TokenExpiredError):
        code = ErrorCode.TOKEN_EXPIRED
        suggestions = ["Please log in again to continue"]
    elif isinstance(exc, MissingTokenError):
        code = ErrorCode.AUTH_REQUIRED
        suggestions = ["Send a bearer token in the Authorization header"]
    else:
        code = ErrorCode.AUTH_REQUIRED
        suggestions = ["Please log in to access this resource"]

    return format_error_response(
        category=ErrorCategory.AUTHENTICATION,
        code=code,
        detail=str(exc.detail) or "Authentication required",
        status_code=status.HTTP_401_UNAUTHORIZED,
        suggestions=suggestions,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def handle_authorization_errors(request: Request, exc: AuthorizationError) -> JSONResponse:
    """Handle authorization errors (403)."""
    logger.warning(
        f"Authorization error on {request.method} {request.url.path}: {exc.detail}",
        extra={
            "client_host": request.client.host if request.client else "unknown",
            "user_id": getattr(request.state, "user_id", None),
        },
    )

    return format_error_response(
        category=ErrorCategory.AUTHORIZATION,
        code=ErrorCode.ACCESS_DENIED,
        detail=exc.detail,
        status_code=status.HTTP_403_FORBIDDEN,
        suggestions=["You don't have permission to access this resource"],
    )


async def handle_validation_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle request validation errors from FastAPI and Pydantic."""
    logger.info(f"Validation error on {request.method} {request.url.path}", extra={"error": str(exc)})

    if isinstance(exc, (RequestValidationError, PydanticValidationError)):
        errors = []
        for error in exc.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            errors.append({"field": field, "message": error["msg"], "type": error["type"]})

        return format_error_response(
            category=ErrorCategory.VALIDATION,
            code=ErrorCode.INVALID_INPUT,
            detail="Invalid input data",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            metadata={"errors": errors},
        )

    return format_error_response(
        category=ErrorCategory.VALIDATION,
        code=ErrorCode.INVALID_INPUT,
        detail=str(exc),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def handle_database_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle database-related errors."""
    logger.error(
        f"Database error on {request.method} {request.url.path}: {exc}", extra={"error_type": type(exc).__name__}
    )

    if isinstance(exc, IntegrityError):
        kind = integrity_kind(exc)
        if kind == UNIQUE:
            return format_error_response(
                category=ErrorCategory.DATABASE,
                code=ErrorCode.DB_UNIQUE_VIOLATION,
                detail="This resource already exists",
                status_code=status.HTTP_409_CONFLICT,
                suggestions=["Try using a different identifier"],
            )
        if kind == FOREIGN_KEY:
            return format_error_response(
                category=ErrorCategory.DATABASE,
                code=ErrorCode.DB_FOREIGN_KEY_VIOLATION,
                detail="Referenced resource does not exist",
                status_code=status.HTTP_400_BAD_REQUEST,
            )
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_CONSTRAINT_VIOLATION,
            detail="Required data is missing or invalid",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, OperationalError):
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_CONNECTION_FAILED,
            detail="Database connection error",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            suggestions=["Please try again later"],
        )

    # Generic database error
    return format_error_response(
        category=ErrorCategory.DATABASE,
        code=ErrorCode.INTERNAL,
        detail="A database error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def handle_rate_limit_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle rate limiting."""
    logger.warning(
        f"Rate limit exceeded on {request.method} {request.url.path}",
        extra={
            "client_host": request.client.host if request.client else "unknown",
            "user_id": getattr(request.state, "user_id", None),
        },
    )

    return format_error_response(
        category=ErrorCategory.RATE_LIMIT,
        code=ErrorCode.RATE_LIMIT_EXCEEDED,
        detail=f"Rate limit exceeded: {getattr(exc, 'detail', exc)}",
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        suggestions=["Please wait before making more requests"],
    )


# === Utility Functions ===


def log_error_context(request: Request, exc: Exception, error_id: UUID | None = None) -> None:
    """Log comprehensive error context for debugging."""
    context = {
        "error_id": str(error_id) if error_id else None,
        "method": request.method,
        "path": request.url.path,
        "query_params": dict(request.query_params),
        "client_host": request.client.host if request.client else "unknown",
        "user_id": getattr(request.state, "user_id", None),
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    # Add request headers (excluding sensitive ones)
    safe_headers = {
        k: v for k, v in request.headers.items() if k.lower() not in ["authorization", "cookie", "x-api-key"]
    }
    context["headers"] = safe_headers

    logger.error("Request failed", extra=context, exc_info=exc)


async def handle_unexpected_errors(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for anything the handlers above do not cover."""
    error_id = uuid4()
    log_error_context(request, exc, error_id)

    # Return generic error response without exposing internal details
    return format_error_response(
        category=ErrorCategory.INTERNAL,
        code=ErrorCode.INTERNAL,
        detail="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        metadata={"error_id": str(error_id)},
        suggestions=["Please try again later", "If the problem persists, contact support with the error ID"],
    )


# Starlette resolves handlers along the exception MRO, so subclasses
# (IntegrityError under DatabaseError) reach their specific entry.
EXCEPTION_HANDLERS = {
    ResourceNotFoundError: handle_not_found_errors,
    BadRequestError: handle_bad_request_errors,
    AuthenticationError: handle_authentication_errors,
    AuthorizationError: handle_authorization_errors,
    RequestValidationError: handle_validation_errors,
    PydanticValidationError: handle_validation_errors,
    IntegrityError: handle_database_errors,
    OperationalError: handle_database_errors,
    DatabaseError: handle_database_errors,
    RateLimitExceeded: handle_rate_limit_errors,
    Exception: handle_unexpected_errors,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)
