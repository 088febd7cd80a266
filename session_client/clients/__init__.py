"""Expose constructed client wrappers."""

from .auth_api import AuthAPIClient, AuthAPIError, AuthenticationError, RenewalError

__all__ = [
    "AuthAPIClient",
    "AuthAPIError",
    "AuthenticationError",
    "RenewalError",
]
