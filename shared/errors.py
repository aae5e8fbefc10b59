"""
Shared error handling for the Cart Offer service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class OfferServiceError(Exception):
    """Base exception for the Cart Offer service."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(OfferServiceError):
    """Malformed offer or cart payload."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class AuthenticationMissing(OfferServiceError):
    """No usable caller identity on the request."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_MISSING", message, details)


class AuthorizationDenied(OfferServiceError):
    """Caller is known but not allowed to perform the operation."""

    status_code = 403

    def __init__(self, message: str = "Operation not permitted", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHORIZATION_DENIED", message, details)


class RateLimited(OfferServiceError):
    """Request budget for the current window is exhausted."""

    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded", retry_after: int = 1,
                 details: Optional[Dict[str, Any]] = None):
        self.retry_after = retry_after
        details = dict(details or {})
        details.setdefault("retry_after", retry_after)
        super().__init__("RATE_LIMITED", message, details)


class UpstreamUnavailable(OfferServiceError):
    """External collaborator failed or answered with an error status."""

    status_code = 503

    def __init__(self, service: str, message: str = "External service error",
                 details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("UPSTREAM_UNAVAILABLE", f"{service}: {message}", details)
