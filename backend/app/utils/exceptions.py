"""
Custom exception classes for the publishing API.
"""

from typing import Optional


class PublishAPIException(Exception):
    """Base exception for all publishing API errors."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class NotFoundError(PublishAPIException):
    """Raised when a resource, or a resource referenced by a foreign key, does not exist."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", detail: Optional[str] = None):
        super().__init__(message, detail)


class UnauthorizedError(PublishAPIException):
    """Raised when the authenticated user does not own the resource in question."""

    status_code = 401

    def __init__(self, message: str = "User doesn't own the resource requested", detail: Optional[str] = None):
        super().__init__(message, detail)


class AuthenticationError(PublishAPIException):
    """Raised when authentication fails."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", detail: Optional[str] = None):
        super().__init__(message, detail)


class ImplementationError(PublishAPIException):
    """
    Raised on an invariant violation in the authentication layer or in data integrity.

    These are bugs, never client errors.
    """

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, detail)


class ValidationError(PublishAPIException):
    """Raised when input validation fails."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, detail: Optional[str] = None):
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, detail)
        self.field = field


class IdentityProviderError(PublishAPIException):
    """Raised when the identity provider answers with an unexpected status or cannot be reached."""

    def __init__(self, message: str, status_code: int = 502, detail: Optional[str] = None):
        super().__init__(f"Identity provider error: {message}", detail)
        self.status_code = status_code
