"""
Factory functions that wire the session layer together.

``build_session`` is the composition root; the cached ``get_*`` helpers give
UI code one shared session per process.
"""

from __future__ import annotations

import time
from functools import lru_cache
from typing import Optional

import httpx

from session_client.clients import AuthAPIClient
from session_client.core.config import SessionSettings, get_settings
from session_client.services import (
    CredentialStore,
    ProfileCache,
    RenewalCoordinator,
    RenewalScheduler,
    RequestGateway,
    SessionFlows,
)
from session_client.utils.jwt import Clock


def build_http_client(
    settings: SessionSettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """One client per session, so its cookie jar carries the refresh cookie."""
    return httpx.AsyncClient(
        timeout=settings.request_timeout_seconds,
        transport=transport,
    )


def build_session(
    settings: SessionSettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    profile_cache: Optional[ProfileCache] = None,
    clock: Clock = time.time,
) -> SessionFlows:
    """Construct a fully wired :class:`SessionFlows`."""
    http_client = build_http_client(settings, transport=transport)
    profiles = profile_cache or ProfileCache(settings.profile_cache_path)
    auth_client = AuthAPIClient(http_client, settings)

    store = CredentialStore()
    renewals = RenewalCoordinator(
        store,
        auth_client.refresh,
        timeout_seconds=settings.renewal.timeout_seconds,
    )
    scheduler = RenewalScheduler(
        renewals.start,
        store.get,
        safety_margin_seconds=settings.renewal.safety_margin_seconds,
        clock=clock,
    )
    store.add_listener(scheduler.on_credential_changed)

    endpoints = settings.endpoints
    gateway = RequestGateway(
        http_client,
        store,
        renewals,
        base_url=settings.base_url,
        exempt_paths=(endpoints.refresh, endpoints.logout),
        sign_in_path=settings.sign_in_path,
        on_session_expired=profiles.clear,
    )
    return SessionFlows(
        auth_client=auth_client,
        gateway=gateway,
        store=store,
        renewals=renewals,
        scheduler=scheduler,
        profile_cache=profiles,
        endpoints=endpoints,
        http_client=http_client,
    )


@lru_cache()
def get_session_flows() -> SessionFlows:
    """Provide the process-wide session."""
    return build_session(get_settings())


def get_request_gateway() -> RequestGateway:
    """Provide the gateway used for every authenticated API call."""
    return get_session_flows().gateway


__all__ = [
    "build_http_client",
    "build_session",
    "get_request_gateway",
    "get_session_flows",
]
