"""Booking flow exceptions following RFC 9457 Problem Details for HTTP APIs."""

from enum import Enum
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uuid
from datetime import datetime, timezone


class ErrorCategory(str, Enum):
    """Error taxonomy shared by local validation and backend failures."""
    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SERVER_ERROR = "SERVER_ERROR"
    NETWORK_UNAVAILABLE = "NETWORK_UNAVAILABLE"


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    category: ErrorCategory = ErrorCategory.SERVER_ERROR

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
            "code": self.category.value,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    @property
    def message(self) -> str:
        """User-facing message for notifications."""
        return self.problem_details.get("detail") or self.title


class ValidationFailedError(ProblemDetailsException):
    """Field-level validation failure, raised before any network call or relayed from the backend."""

    category = ErrorCategory.VALIDATION_FAILED

    def __init__(
        self,
        detail: str = "The submitted data is invalid",
        errors: Optional[Dict[str, str]] = None,
        instance: Optional[str] = None,
    ):
        self.errors = dict(errors or {})
        extensions = {}
        if self.errors:
            extensions["errors"] = self.errors

        super().__init__(
            status_code=400,
            title="Validation Failed",
            detail=detail,
            type_uri="https://example.com/problems/validation-failed",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Missing or expired credential. The stored token is cleared and the user must log in again."""

    category = ErrorCategory.UNAUTHENTICATED

    def __init__(
        self,
        detail: str = "Your session has expired. Please log in again.",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri="https://example.com/problems/authentication-required",
            instance=instance,
            extensions={"redirect_to": "login"},
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors."""

    category = ErrorCategory.FORBIDDEN

    def __init__(
        self,
        detail: str = "You do not have permission to access this resource",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri="https://example.com/problems/access-forbidden",
            instance=instance,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    category = ErrorCategory.NOT_FOUND

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://example.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    category = ErrorCategory.CONFLICT

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://example.com/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class ServerError(ProblemDetailsException):
    """The backend failed, or answered with a payload of the wrong shape."""

    category = ErrorCategory.SERVER_ERROR

    def __init__(
        self,
        detail: str = "Server error. Please try again later.",
        upstream_status: Optional[int] = None,
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        extensions = {
            "error_id": error_id or str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if upstream_status is not None:
            extensions["upstream_status"] = upstream_status

        super().__init__(
            status_code=502,
            title="Upstream Server Error",
            detail=detail,
            type_uri="https://example.com/problems/upstream-server-error",
            instance=instance,
            extensions=extensions,
        )


class NetworkUnavailableError(ProblemDetailsException):
    """The request never reached the backend."""

    category = ErrorCategory.NETWORK_UNAVAILABLE

    def __init__(
        self,
        detail: str = "Cannot reach the booking server. Check your connection and try again.",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=503,
            title="Network Unavailable",
            detail=detail,
            type_uri="https://example.com/problems/network-unavailable",
            instance=instance,
            extensions={"retryable": True},
        )


# Booking flow exceptions

class FlowGuardError(ConflictError):
    """A step was requested whose preconditions do not hold."""

    def __init__(self, requested_step: str, redirect_to: str, reason: str):
        super().__init__(detail=reason)
        self.requested_step = requested_step
        self.redirect_to = redirect_to
        self.problem_details.update({
            "title": "Step Not Available",
            "requested_step": requested_step,
            "redirect_to": redirect_to,
        })


class OperationInProgressError(ConflictError):
    """A second submission arrived while the first is still outstanding."""

    def __init__(self, operation: str):
        super().__init__(detail=f"A {operation} request is already in progress")
        self.problem_details.update({
            "operation": operation,
            "retryable": True,
        })


class TerminalBookingError(ConflictError):
    """Payment was attempted against a booking that can no longer be paid."""

    def __init__(self, booking_id: str, status: str):
        super().__init__(
            detail=f"Booking {booking_id} is {status} and cannot accept further payments",
            conflicting_resource={"booking_id": booking_id, "status": status},
        )


def _problem_response(exc: ProblemDetailsException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    if "instance" not in exc.problem_details:
        exc.problem_details["instance"] = request.url.path
    return _problem_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body validation errors as a 422 problem with violations."""
    violations: List[Dict[str, str]] = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "type": "https://example.com/problems/request-validation",
            "title": "Request Validation Error",
            "status": 422,
            "code": ErrorCategory.VALIDATION_FAILED.value,
            "detail": "The request body failed validation",
            "instance": request.url.path,
            "violations": violations,
        },
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem_details = {
        "type": "https://example.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "code": ErrorCategory.SERVER_ERROR.value,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
        media_type="application/problem+json",
    )
