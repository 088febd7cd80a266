"""
Client for the invitation builder's authentication endpoints.

These calls are made without an access token. The refresh cookie set by the
API lives in the shared ``httpx.AsyncClient`` cookie jar and is sent back
automatically; this module never reads it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import status
from pydantic import ValidationError

from session_client.core.config import SessionSettings
from session_client.schemas import AuthResponse, RefreshResponse, RegisterRequest, SuccessResponse
from session_client.utils.http import build_headers, error_message, new_request_id, resolve_url

logger = logging.getLogger(__name__)


class AuthAPIError(Exception):
    """Raised when the authentication API rejects a call."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(AuthAPIError):
    """Raised when login or registration is refused; carries the server's text."""


class RenewalError(AuthAPIError):
    """Raised when the refresh endpoint cannot mint a new access token."""


class AuthAPIClient:
    """Call the login, registration, refresh and password endpoints."""

    def __init__(self, http_client: httpx.AsyncClient, settings: SessionSettings) -> None:
        self._http = http_client
        self._settings = settings
        self._endpoints = settings.endpoints

    def _url(self, path: str) -> str:
        return resolve_url(self._settings.base_url, path)

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> httpx.Response:
        request_id = new_request_id()
        logger.debug("POST %s request_id=%s", path, request_id)
        return await self._http.post(
            self._url(path),
            json=payload,
            headers=build_headers(token=None, request_id=request_id),
        )

    async def login(self, email: str, password: str) -> AuthResponse:
        """Exchange an email and password for an access token and profile."""
        response = await self._post(
            self._endpoints.login, {"email": email, "password": password}
        )
        return self._parse_auth_response(response, default_error="Login failed")

    async def register(self, profile: RegisterRequest) -> AuthResponse:
        """Create an account and return its first access token."""
        response = await self._post(self._endpoints.register_path, profile.to_payload())
        return self._parse_auth_response(response, default_error="Registration failed")

    async def refresh(self) -> str:
        """Mint a new access token from the refresh cookie."""
        try:
            response = await self._post(self._endpoints.refresh)
        except httpx.HTTPError as exc:
            raise RenewalError(f"Refresh request failed: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise RenewalError(
                error_message(response, "Failed to refresh token"),
                status_code=response.status_code,
            )

        try:
            payload = RefreshResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RenewalError("No access token in refresh response") from exc
        return payload.access_token

    async def request_password_reset(self, email: str) -> SuccessResponse:
        """Ask the API to e-mail a password reset link."""
        response = await self._post(self._endpoints.forgot_password, {"email": email})
        return self._parse_success(response, "Failed to send password reset email")

    async def reset_password(self, token: str, password: str) -> SuccessResponse:
        """Set a new password using the token from the reset e-mail."""
        response = await self._post(
            self._endpoints.reset_password, {"token": token, "password": password}
        )
        return self._parse_success(response, "Failed to reset password")

    @staticmethod
    def _parse_auth_response(response: httpx.Response, *, default_error: str) -> AuthResponse:
        if not response.is_success:
            raise AuthenticationError(
                error_message(response, default_error),
                status_code=response.status_code,
            )
        try:
            return AuthResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise AuthAPIError(
                "Incomplete authentication payload returned by the API.",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _parse_success(response: httpx.Response, default_error: str) -> SuccessResponse:
        if not response.is_success:
            raise AuthAPIError(
                error_message(response, default_error),
                status_code=response.status_code,
            )
        try:
            return SuccessResponse.model_validate(response.json())
        except ValueError:
            return SuccessResponse()


__all__ = [
    "AuthAPIClient",
    "AuthAPIError",
    "AuthenticationError",
    "RenewalError",
]
