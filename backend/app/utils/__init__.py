"""
Utility modules for the publishing API.
"""

from .exceptions import (
    PublishAPIException,
    NotFoundError,
    UnauthorizedError,
    AuthenticationError,
    ImplementationError,
    ValidationError,
    IdentityProviderError,
)

__all__ = [
    "PublishAPIException",
    "NotFoundError",
    "UnauthorizedError",
    "AuthenticationError",
    "ImplementationError",
    "ValidationError",
    "IdentityProviderError",
]
