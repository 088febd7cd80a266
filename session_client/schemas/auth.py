"""
Pydantic models for payloads exchanged with the authentication API.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Profile summary returned by the API; safe to cache for display."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    email: str
    name: Optional[str] = None


class AuthResponse(BaseModel):
    """Body returned by the login and registration endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken", min_length=1)
    user: User


class RefreshResponse(BaseModel):
    """Body returned by the refresh endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken", min_length=1)


class RegisterRequest(BaseModel):
    """New account details; extra profile fields pass through untouched."""

    model_config = ConfigDict(extra="allow")

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    name: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SuccessResponse(BaseModel):
    """Generic acknowledgement returned by the password flows."""

    model_config = ConfigDict(extra="allow")

    message: Optional[str] = None


__all__ = [
    "AuthResponse",
    "RefreshResponse",
    "RegisterRequest",
    "SuccessResponse",
    "User",
]
