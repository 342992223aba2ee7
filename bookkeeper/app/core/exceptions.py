"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, List, Optional

from bookkeeper.app.core.observability import correlation_id_of

logger = logging.getLogger("bookkeeper.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppException):
    """Raised when a required ledger field is missing or a value is not allowed."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"fields": fields or []}
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class ConflictError(AppException):
    """Raised when an operation would break a link or a uniqueness rule."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT_001",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class AccountBusyError(AppException):
    """Raised when the recompute lock for an account cannot be acquired in time."""

    def __init__(self, book: str, account_id: str):
        super().__init__(
            message=f"Account '{account_id}' is being recomputed, retry shortly",
            error_code="ERR_LOCK_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"book": book, "account_id": account_id}
        )


class PartialRecomputeFailure(AppException):
    """
    Raised when persisting closing balances failed part-way through a replay.

    Entries up to ``last_good_entry_id`` hold correct balances; later entries
    may be stale until the account is recomputed again. Recompute is
    idempotent, so the caller can simply retry it.
    """

    def __init__(
        self,
        book: str,
        account_id: str,
        last_good_entry_id: Optional[int],
        failed_entry_id: int,
        reason: str = ""
    ):
        self.book = book
        self.account_id = account_id
        self.last_good_entry_id = last_good_entry_id
        self.failed_entry_id = failed_entry_id
        super().__init__(
            message=f"Recompute of '{account_id}' stopped at entry {failed_entry_id}",
            error_code="ERR_RECOMPUTE_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={
                "book": book,
                "account_id": account_id,
                "last_good_entry_id": last_good_entry_id,
                "failed_entry_id": failed_entry_id,
                "reason": reason
            }
        )


class StoreUnavailable(AppException):
    """Raised for transient infrastructure failures (database or lock store)."""

    def __init__(self, operation: str, reason: str = ""):
        super().__init__(
            message=f"Store unavailable during {operation}",
            error_code="ERR_STORE_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"operation": operation, "reason": reason}
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error(
            "%s: %s", exc.error_code, exc.message,
            extra={"details": exc.details, "correlation_id": correlation_id_of(request)}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_encoder(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception(
        "Unhandled exception: %s", type(exc).__name__,
        extra={"correlation_id": correlation_id_of(request)}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
