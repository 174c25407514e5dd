"""
Centralized exception hierarchy for the Cadeala Rewards API.

Three kinds of failure reach a client: invalid input (400), a missing
document or user (404) and everything else (500). Nothing here retries.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception
# =============================================================================


class CadealaError(RuntimeError):
    """
    Base exception for all Cadeala errors.

    Attributes:
        message: Human-readable error message.
        detail: Additional error details (optional).
        error_code: Machine-readable error code.
        request_id: Unique identifier for the request (optional).
    """

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        error_code: str | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.error_code = error_code or f"cadeala_{self.__class__.__name__.lower()}"
        self.request_id = request_id or str(uuid.uuid4())

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the API error envelope."""
        result: dict[str, Any] = {"error": self.message}
        if self.detail:
            result["details"] = self.detail
        return result

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def log(self, level: int = logging.ERROR) -> None:
        """Log the exception with structured data."""
        logger.log(
            level,
            self.message,
            extra={
                "error_code": self.error_code,
                "detail": self.detail,
                "request_id": self.request_id,
                "exception_type": self.__class__.__name__,
            },
        )


# =============================================================================
# Input Validation Errors
# =============================================================================


class ValidationError(CadealaError):
    """
    Raised when input validation fails.

    `issues` is a list of {"path", "message", "code"} dicts, returned to the
    client as the `details` of the 400 response.

    HTTP Status: 400 Bad Request
    """

    def __init__(
        self,
        message: str = "Invalid input",
        *,
        issues: list[dict[str, Any]] | None = None,
        field: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.field = field
        if issues is None:
            issues = [{"path": [field] if field else [], "message": message, "code": "invalid"}]
        self.issues = issues
        super().__init__(message, error_code="validation_error", request_id=request_id)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.issues}


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(CadealaError):
    """
    Raised when a requested document or user does not exist.

    HTTP Status: 404 Not Found
    """

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message, error_code="not_found", request_id=request_id)


class BusinessNotFoundError(NotFoundError):
    """Raised when a business document is missing."""

    def __init__(self, business_id: str, *, request_id: str | None = None) -> None:
        super().__init__(
            "Business not found",
            resource_type="Business",
            resource_id=business_id,
            request_id=request_id,
        )
        self.business_id = business_id


class UserNotFoundError(NotFoundError):
    """Raised when a user document or identity-provider account is missing."""

    def __init__(self, uid: str, *, request_id: str | None = None) -> None:
        super().__init__(
            "User not found",
            resource_type="User",
            resource_id=uid,
            request_id=request_id,
        )
        self.uid = uid


# =============================================================================
# Server-side Errors
# =============================================================================


class IdGenerationError(CadealaError):
    """
    Raised when no unused ID was drawn within the allowed attempts.

    HTTP Status: 500 Internal Server Error
    """

    def __init__(self, prefix: str, attempts: int, *, request_id: str | None = None) -> None:
        self.prefix = prefix
        self.attempts = attempts
        super().__init__(
            f"Unable to generate unique {prefix} ID after {attempts} attempts",
            error_code="id_generation_exhausted",
            request_id=request_id,
        )


class BackendNotInitializedError(CadealaError):
    """
    Raised when the Firebase Admin app cannot be initialized.

    HTTP Status: 500 Internal Server Error
    """

    def __init__(self, reason: str | None = None, *, request_id: str | None = None) -> None:
        super().__init__(
            "Firebase Admin not initialized",
            detail=reason,
            error_code="backend_not_initialized",
            request_id=request_id,
        )


class OperationFailedError(CadealaError):
    """
    Wraps an unexpected failure inside a route handler.

    `message` is the handler's summary ("Failed to delete user"), `detail`
    carries the underlying exception message.

    HTTP Status: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        request_id: str | None = None,
    ) -> None:
        self.cause = cause
        super().__init__(
            message,
            detail=str(cause) if cause is not None else None,
            error_code="operation_failed",
            request_id=request_id,
        )


# =============================================================================
# HTTP Exception Helpers
# =============================================================================


def exception_to_http_status(exc: CadealaError) -> int:
    """
    Map exception to appropriate HTTP status code.
    """
    status_map = {
        ValidationError: 400,
        NotFoundError: 404,
        IdGenerationError: 500,
        BackendNotInitializedError: 500,
        OperationFailedError: 500,
    }

    for exc_class, status in status_map.items():
        if isinstance(exc, exc_class):
            return status
    return 500


def handle_exception(exc: Exception, request_id: str | None = None) -> dict[str, Any]:
    """
    Convert any exception to the standardized error envelope.
    """
    if isinstance(exc, CadealaError):
        exc.request_id = request_id or exc.request_id
        return exc.to_dict()

    logger.error(
        "Unhandled exception",
        extra={
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "request_id": request_id,
        },
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return CadealaError("An unexpected error occurred", detail=str(exc) or None, request_id=request_id).to_dict()
