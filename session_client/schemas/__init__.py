"""Public schema exports."""

from .auth import AuthResponse, RefreshResponse, RegisterRequest, SuccessResponse, User

__all__ = [
    "AuthResponse",
    "RefreshResponse",
    "RegisterRequest",
    "SuccessResponse",
    "User",
]
