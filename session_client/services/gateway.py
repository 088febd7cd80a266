"""
Authenticated request wrapper.

Every API call made on behalf of a signed-in user goes through
:class:`RequestGateway`. It attaches the current access token and, when the
API answers 401, renews the token once and replays the call.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Optional
from urllib.parse import urlsplit

import httpx
from fastapi import status

from session_client.clients.auth_api import RenewalError
from session_client.services.credential_store import CredentialStore
from session_client.services.renewal import RenewalCoordinator
from session_client.utils.http import build_headers, new_request_id, resolve_url

logger = logging.getLogger(__name__)


class SessionExpiredError(Exception):
    """Raised when the session cannot be recovered and the user must sign in again."""

    def __init__(
        self,
        message: str = "Session expired. Please login again.",
        *,
        redirect_to: str = "/login",
    ) -> None:
        super().__init__(message)
        self.redirect_to = redirect_to


class RequestGateway:
    """Send API requests with the bearer token and recover from expired tokens."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        store: CredentialStore,
        renewals: RenewalCoordinator,
        *,
        base_url: str,
        exempt_paths: Iterable[str] = ("/auth/refresh", "/auth/logout"),
        sign_in_path: str = "/login",
        on_session_expired: Optional[Callable[[], None]] = None,
    ) -> None:
        self._http = http_client
        self._store = store
        self._renewals = renewals
        self._base_url = base_url
        self._exempt_paths = tuple(exempt_paths)
        self._sign_in_path = sign_in_path
        self._on_session_expired = on_session_expired

    async def request(
        self,
        target: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        params: Any = None,
        json: Any = None,
        content: Any = None,
        data: Any = None,
        files: Any = None,
    ) -> httpx.Response:
        """Send one request, renewing the token and replaying once on 401.

        The replay's response is returned whatever its status. Raises
        :class:`SessionExpiredError` when renewal fails; transport errors
        propagate unchanged.
        """
        url = resolve_url(self._base_url, target)
        request_id = new_request_id()
        form_body = files is not None or data is not None
        send_kwargs = {
            "params": params,
            "json": json,
            "content": content,
            "data": data,
            "files": files,
        }

        response = await self._send(
            method,
            url,
            headers=build_headers(
                token=self._store.get(),
                request_id=request_id,
                form_body=form_body,
                extra=headers,
            ),
            **send_kwargs,
        )

        if response.status_code != status.HTTP_401_UNAUTHORIZED or self._is_exempt(url):
            return response

        logger.debug(
            "401 from %s %s request_id=%s body=%r",
            method,
            url,
            request_id,
            response.text[:200],
        )
        try:
            await self._renewals.renew()
        except RenewalError as exc:
            logger.info("Session ended after failed renewal request_id=%s", request_id)
            self._end_session()
            raise SessionExpiredError(redirect_to=self._sign_in_path) from exc

        token = self._store.get()
        if not token:
            self._end_session()
            raise SessionExpiredError(redirect_to=self._sign_in_path)

        logger.info("Replaying %s %s after renewal request_id=%s", method, url, request_id)
        return await self._send(
            method,
            url,
            headers=build_headers(
                token=token,
                request_id=request_id,
                form_body=form_body,
                extra=headers,
            ),
            **send_kwargs,
        )

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return await self._http.request(method, url, **kwargs)

    def _is_exempt(self, url: str) -> bool:
        path = urlsplit(url).path
        return any(path.endswith(exempt) for exempt in self._exempt_paths)

    def _end_session(self) -> None:
        self._store.clear()
        if self._on_session_expired is not None:
            self._on_session_expired()


__all__ = ["RequestGateway", "SessionExpiredError"]
