# leadcapture/core/exceptions.py
from __future__ import annotations

from typing import Any, Dict, Optional


class BaseAPIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)

    def to_content(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"success": False, "code": self.code, "error": self.message}
        content.update(self.details)
        return content


class ValidationError(BaseAPIException):
    """Submitted data failed validation."""
    def __init__(self, message: str = "Validation error", fields: Optional[Dict[str, str]] = None, **kwargs):
        kwargs.setdefault("code", "validation_error")
        super().__init__(message, status_code=400, **kwargs)
        self.fields = fields or {}
        if self.fields:
            self.details["fields"] = self.fields


class AuthenticationError(BaseAPIException):
    """Authentication failed."""
    def __init__(self, message: str = "Authentication failed", **kwargs):
        kwargs.setdefault("code", "authentication_failed")
        super().__init__(message, status_code=401, **kwargs)


class AuthorizationError(BaseAPIException):
    """Authorization failed."""
    def __init__(self, message: str = "Insufficient permissions", **kwargs):
        kwargs.setdefault("code", "insufficient_permissions")
        super().__init__(message, status_code=403, **kwargs)


class NotFoundError(BaseAPIException):
    """Resource not found."""
    def __init__(self, message: str = "Resource not found", **kwargs):
        kwargs.setdefault("code", "not_found")
        super().__init__(message, status_code=404, **kwargs)


class ConflictError(BaseAPIException):
    """Resource conflict."""
    def __init__(self, message: str = "Resource conflict", **kwargs):
        kwargs.setdefault("code", "conflict")
        super().__init__(message, status_code=409, **kwargs)


class RateLimitError(BaseAPIException):
    """Rate limit exceeded."""
    def __init__(self, message: str = "Too many requests from this IP, please try again later.", retry_after: Optional[int] = None, **kwargs):
        kwargs.setdefault("code", "rate_limited")
        if retry_after is not None:
            kwargs.setdefault("headers", {"Retry-After": str(retry_after)})
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class DatabaseError(BaseAPIException):
    """Database error."""
    def __init__(self, message: str = "Internal server error. Please try again later.", **kwargs):
        kwargs.setdefault("code", "database_error")
        super().__init__(message, status_code=500, **kwargs)


class ConfigurationError(BaseAPIException):
    """A required setting is missing."""
    def __init__(self, message: str = "Service not configured", **kwargs):
        kwargs.setdefault("code", "not_configured")
        super().__init__(message, status_code=500, **kwargs)


class ExternalServiceError(BaseAPIException):
    """External service error."""
    def __init__(self, message: str = "External service error", **kwargs):
        kwargs.setdefault("code", "external_service_error")
        super().__init__(message, status_code=502, **kwargs)


class ServiceUnavailableError(BaseAPIException):
    """Service unavailable."""
    def __init__(self, message: str = "Service unavailable", **kwargs):
        kwargs.setdefault("code", "service_unavailable")
        super().__init__(message, status_code=503, **kwargs)
