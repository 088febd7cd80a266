"""
Shared access-token renewal.

Every caller, whether the proactive scheduler or a request that just got a
401, goes through :class:`RenewalCoordinator`, so only one refresh call is
ever in flight.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from session_client.clients.auth_api import RenewalError
from session_client.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

RefreshCall = Callable[[], Awaitable[str]]


class RenewalCoordinator:
    """Deduplicate refresh calls and feed the result into the credential store."""

    def __init__(
        self,
        store: CredentialStore,
        refresh: RefreshCall,
        *,
        timeout_seconds: float = 8.0,
    ) -> None:
        self._store = store
        self._refresh = refresh
        self._timeout = timeout_seconds
        self._pending: Optional[asyncio.Task[str]] = None

    @property
    def pending(self) -> Optional[asyncio.Task[str]]:
        """The renewal currently in flight, if any."""
        return self._pending

    def start(self) -> asyncio.Task[str]:
        """Join the in-flight renewal or start a new one.

        Runs without suspending, so two callers on the same loop can never
        both see an empty slot.
        """
        if self._pending is not None:
            return self._pending
        task = asyncio.get_running_loop().create_task(self._run())
        self._pending = task
        return task

    async def renew(self) -> str:
        """Return a fresh access token, raising :class:`RenewalError` on failure."""
        # Shielded so one cancelled waiter does not cancel the renewal for the rest.
        return await asyncio.shield(self.start())

    async def _run(self) -> str:
        try:
            try:
                token = await asyncio.wait_for(self._refresh(), timeout=self._timeout)
            except asyncio.TimeoutError as exc:
                raise RenewalError(
                    f"Token refresh timed out after {self._timeout:g}s"
                ) from exc
            except RenewalError:
                raise
            except Exception as exc:
                raise RenewalError(f"Token refresh failed: {exc}") from exc
            if not token:
                raise RenewalError("No access token in refresh response")
        except RenewalError as exc:
            logger.warning("Access token renewal failed: %s", exc)
            self._store.clear()
            raise
        else:
            logger.info("Access token renewed")
            self._store.set(token)
            return token
        finally:
            self._pending = None


__all__ = ["RefreshCall", "RenewalCoordinator"]
