# prosperian/core/exceptions.py
from __future__ import annotations

from typing import Any, Dict, Optional, Type


class BaseAPIException(Exception):
    """
    Base exception for all API errors.

    Rendered by the app's exception handler as
    ``{"success": false, "error": code, "message": ..., "details": {...}}``.
    """
    status_code = 500
    default_message = "An error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(BaseAPIException):
    status_code = 400
    default_message = "Validation error"


class AuthenticationError(BaseAPIException):
    status_code = 401
    default_message = "Authentication failed"


class AuthorizationError(BaseAPIException):
    status_code = 403
    default_message = "Authorization failed"


class NotFoundError(BaseAPIException):
    status_code = 404
    default_message = "Resource not found"


class RateLimitError(BaseAPIException):
    status_code = 429
    default_message = "Rate limit exceeded"

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ExternalServiceError(BaseAPIException):
    """An upstream dependency failed."""
    status_code = 502
    default_message = "External service error"


class ServiceUnavailableError(BaseAPIException):
    status_code = 503
    default_message = "Service unavailable"


# Upstream statuses surfaced as-is; anything else becomes ExternalServiceError.
UPSTREAM_STATUS_ERRORS: Dict[int, Type[BaseAPIException]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    429: RateLimitError,
}


def error_for_upstream_status(status_code: Optional[int]) -> Type[BaseAPIException]:
    if status_code is None:
        return ExternalServiceError
    return UPSTREAM_STATUS_ERRORS.get(status_code, ExternalServiceError)
