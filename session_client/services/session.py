"""
Sign-in, sign-out and account flows for the invitation builder UI.

UI code talks to :class:`SessionFlows`; it never handles tokens directly.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from session_client.clients.auth_api import AuthAPIClient, AuthAPIError, RenewalError
from session_client.core.config import EndpointSettings
from session_client.schemas import AuthResponse, RegisterRequest, SuccessResponse, User
from session_client.services.credential_store import CredentialStore
from session_client.services.gateway import RequestGateway, SessionExpiredError
from session_client.services.profile_cache import ProfileCache
from session_client.services.renewal import RenewalCoordinator
from session_client.services.scheduler import RenewalScheduler
from session_client.utils.http import error_message

logger = logging.getLogger(__name__)


class SessionFlows:
    """Entry points the UI calls to manage the signed-in user."""

    def __init__(
        self,
        *,
        auth_client: AuthAPIClient,
        gateway: RequestGateway,
        store: CredentialStore,
        renewals: RenewalCoordinator,
        scheduler: RenewalScheduler,
        profile_cache: ProfileCache,
        endpoints: EndpointSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._auth = auth_client
        self._gateway = gateway
        self._store = store
        self._renewals = renewals
        self._scheduler = scheduler
        self._profiles = profile_cache
        self._endpoints = endpoints
        self._http = http_client

    @property
    def gateway(self) -> RequestGateway:
        return self._gateway

    @property
    def scheduler(self) -> RenewalScheduler:
        return self._scheduler

    async def login(self, email: str, password: str) -> AuthResponse:
        """Sign in; raises :class:`AuthenticationError` with the server's message."""
        try:
            result = await self._auth.login(email, password)
        except AuthAPIError as exc:
            logger.error("Login error: %s", exc)
            raise
        self._adopt(result)
        return result

    async def register(
        self, profile: Union[RegisterRequest, Dict[str, Any]]
    ) -> AuthResponse:
        """Create an account and sign in as it."""
        if not isinstance(profile, RegisterRequest):
            profile = RegisterRequest.model_validate(profile)
        try:
            result = await self._auth.register(profile)
        except AuthAPIError as exc:
            logger.error("Registration error: %s", exc)
            raise
        self._adopt(result)
        return result

    async def logout(self) -> None:
        """Revoke the refresh cookie server-side, then always clear local state."""
        try:
            if self._store.exists():
                await self._gateway.request(self._endpoints.logout, method="POST")
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Logout API error: %s", exc)
        finally:
            self.clear_local_state()

    async def current_user(self) -> User:
        """Ask the API who the token belongs to, renewing it if needed."""
        response = await self._gateway.request(self._endpoints.me, method="GET")
        if not response.is_success:
            raise AuthAPIError("Failed to get user", status_code=response.status_code)
        try:
            payload = response.json()
            user = User.model_validate(payload.get("user") if isinstance(payload, dict) else None)
        except (ValueError, ValidationError) as exc:
            raise AuthAPIError(
                "Malformed user payload returned by the API.",
                status_code=response.status_code,
            ) from exc
        self._profiles.save(user)
        return user

    def cached_user(self) -> Optional[User]:
        """Last known profile, for display only; may be stale or missing."""
        return self._profiles.load()

    def access_token(self) -> Optional[str]:
        return self._store.get()

    def is_authenticated(self) -> bool:
        return self._store.exists()

    def adopt_token(self, token: str) -> None:
        """Take over a token handed to the client out of band, e.g. an OAuth callback."""
        if token:
            self._store.set(token)

    async def ensure_session(self, *, oauth_token: Optional[str] = None) -> bool:
        """Route-guard check: is there a session the API still accepts?"""
        if oauth_token:
            self.adopt_token(oauth_token)

        if not self._store.exists():
            try:
                await self._renewals.renew()
            except RenewalError:
                return False

        try:
            await self.current_user()
        except (AuthAPIError, SessionExpiredError, httpx.HTTPError) as exc:
            logger.info("Session check failed: %s", exc)
            return False
        return True

    async def request_password_reset(self, email: str) -> SuccessResponse:
        return await self._auth.request_password_reset(email)

    async def reset_password(self, token: str, password: str) -> SuccessResponse:
        return await self._auth.reset_password(token, password)

    async def request_password_change_otp(self, email: str) -> SuccessResponse:
        """Send a one-time code to confirm a password change for the signed-in user."""
        response = await self._gateway.request(
            self._endpoints.password_request_otp,
            method="POST",
            json={"email": email},
        )
        return self._success_or_raise(response, "Failed to send OTP")

    async def verify_password_change_otp(
        self, otp: str, new_password: str
    ) -> SuccessResponse:
        response = await self._gateway.request(
            self._endpoints.password_verify_otp,
            method="POST",
            json={"otp": otp, "newPassword": new_password},
        )
        return self._success_or_raise(response, "Failed to verify OTP")

    def clear_local_state(self) -> None:
        """Drop the token and the cached profile; never touches the network."""
        self._store.clear()
        self._profiles.clear()

    async def aclose(self) -> None:
        """Tear down: stop renewals, forget the token, close the HTTP client."""
        self._scheduler.disarm()
        self._store.clear()
        if self._http is not None:
            await self._http.aclose()

    def _adopt(self, result: AuthResponse) -> None:
        self._store.set(result.access_token)
        self._profiles.save(result.user)

    @staticmethod
    def _success_or_raise(response: httpx.Response, default_error: str) -> SuccessResponse:
        if not response.is_success:
            raise AuthAPIError(
                error_message(response, default_error),
                status_code=response.status_code,
            )
        try:
            return SuccessResponse.model_validate(response.json())
        except ValueError:
            return SuccessResponse()


__all__ = ["SessionFlows"]
