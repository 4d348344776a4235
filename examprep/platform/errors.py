"""
API error types and the middleware that renders them.

Every error response has the shape

    {"error": {"code": "...", "message": "...", "details": {...}}}

and carries no traceback. An access denial is not an error: routes answer
200 with allowed=false.
"""

import logging
import uuid
from typing import Any, Optional

from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class AppError(Exception):
    """
    An error the API reports to clients.

    Subclasses fix code, status_code and a default message; AppError itself
    takes them per instance.
    """

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message, "details": self.details}}


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(AppError):
    """No session, or a webhook that failed signature verification."""

    code = "AUTHENTICATION_ERROR"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class PermissionDeniedError(AppError):
    code = "PERMISSION_DENIED"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Permission denied"


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, identifier: Optional[str] = None):
        if identifier:
            super().__init__(f"{resource} with id '{identifier}' not found")
        else:
            super().__init__(f"{resource} not found")


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting state"


class ServiceUnavailableError(AppError):
    code = "SERVICE_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable"


def get_correlation_id(request: Request) -> str:
    """Caller-supplied X-Correlation-ID, else one already on the request, else a new UUID."""
    return (
        request.headers.get("X-Correlation-ID")
        or getattr(request.state, "correlation_id", None)
        or str(uuid.uuid4())
    )


def _error_response(status_code: int, body: dict, correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body,
        headers={"X-Correlation-ID": correlation_id},
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Renders every exception in the shared error shape and tags each response
    with its correlation id. Unexpected exceptions are logged with their
    traceback and answered with a generic 500.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = get_correlation_id(request)
        request.state.correlation_id = correlation_id
        log_context = {
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
        }

        try:
            response = await call_next(request)
        except AppError as e:
            logger.warning(
                "Request failed",
                extra={**log_context, "error_code": e.code, "status_code": e.status_code},
            )
            return _error_response(e.status_code, e.to_dict(), correlation_id)
        except HTTPException as e:
            logger.warning("HTTP exception", extra={**log_context, "status_code": e.status_code})
            error = AppError(code="HTTP_ERROR", message=str(e.detail), status_code=e.status_code)
            return _error_response(e.status_code, error.to_dict(), correlation_id)
        except Exception as e:
            # A session pointing at a missing user lands here as well
            logger.exception("Unhandled exception", extra={**log_context, "error_type": type(e).__name__})
            error = AppError(details={"correlation_id": correlation_id})
            return _error_response(error.status_code, error.to_dict(), correlation_id)

        response.headers["X-Correlation-ID"] = correlation_id
        return response
