"""
Proactive access-token renewal.

The scheduler keeps one timer per access token and fires the shared renewal
shortly before the token expires. A successful renewal stores a new token,
which re-arms the scheduler through the credential store, so the chain keeps
going for as long as the session lives.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from session_client.clients.auth_api import RenewalError
from session_client.utils.jwt import Clock, time_until_expiration

logger = logging.getLogger(__name__)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class RenewalScheduler:
    """Arm, re-arm and cancel the single renewal timer."""

    def __init__(
        self,
        start_renewal: Callable[[], Awaitable[str]],
        current_token: Callable[[], Optional[str]],
        *,
        safety_margin_seconds: float = 60.0,
        min_delay_seconds: float = 1.0,
        clock: Clock = time.time,
    ) -> None:
        self._start_renewal = start_renewal
        self._current_token = current_token
        self._margin = safety_margin_seconds
        self._min_delay = min_delay_seconds
        self._clock = clock
        self._timer: Optional[asyncio.TimerHandle] = None
        self._delay: Optional[float] = None
        self._renewing = False
        self._watcher: Optional[asyncio.Task[None]] = None

    @property
    def is_armed(self) -> bool:
        return self._timer is not None

    @property
    def scheduled_delay(self) -> Optional[float]:
        """Seconds between arming and firing for the current timer."""
        return self._delay

    @property
    def renewing(self) -> bool:
        return self._renewing

    def on_credential_changed(self, token: Optional[str]) -> None:
        """Credential store listener: follow every token change."""
        if token:
            self.arm(token)
        else:
            self.disarm()

    def arm(self, token: str) -> None:
        """Replace any existing timer with one for ``token``."""
        self.disarm()

        remaining = time_until_expiration(token, clock=self._clock)
        if remaining is None:
            logger.warning("Access token is invalid or expired; renewing now")
            self._renew_now()
            return

        delay = max(0.0, remaining - self._margin)
        if delay < self._min_delay:
            logger.info("Access token expires within the safety margin; renewing now")
            self._renew_now()
            return

        loop = _running_loop()
        if loop is None:
            logger.warning("No running event loop; token refresh not scheduled")
            return
        self._timer = loop.call_later(delay, self._on_timer)
        self._delay = delay
        logger.info("Token refresh scheduled in %d seconds", round(delay))

    def disarm(self) -> None:
        """Cancel the timer. An in-flight renewal is left to finish."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._delay = None

    def on_visibility_change(self, visible: bool) -> None:
        """Re-check the token when the host comes back to the foreground.

        Timers are unreliable while a process or tab is suspended, so the
        remaining lifetime is recomputed instead of trusting the old timer.
        """
        if not visible:
            return
        token = self._current_token()
        if not token:
            return
        remaining = time_until_expiration(token, clock=self._clock)
        if remaining is None or remaining <= self._margin:
            logger.info("Resumed with token expiring soon; renewing now")
            self.disarm()
            self._renew_now()
        else:
            self.arm(token)

    def _on_timer(self) -> None:
        self._timer = None
        self._delay = None
        self._renew_now()

    def _renew_now(self) -> None:
        if self._renewing:
            logger.debug("Token refresh already in progress, skipping")
            return
        loop = _running_loop()
        if loop is None:
            logger.warning("No running event loop; token refresh skipped")
            return
        self._renewing = True
        try:
            renewal = self._start_renewal()
        except Exception:
            self._renewing = False
            raise
        self._watcher = loop.create_task(self._await_renewal(renewal))

    async def _await_renewal(self, renewal: Awaitable[str]) -> None:
        try:
            await asyncio.shield(renewal)
        except RenewalError as exc:
            # The next API call falls back to reactive renewal.
            logger.error("Proactive token refresh failed: %s", exc)
            return
        finally:
            self._renewing = False
            self._watcher = None
        self._retry_short_lived()

    def _retry_short_lived(self) -> None:
        """Keep the chain going when the renewed token is already inside the margin.

        The store notified us while the renewal was still in flight, so ``arm``
        could neither renew nor schedule. Retry halfway to expiry instead.
        """
        if self._timer is not None:
            return
        token = self._current_token()
        if not token:
            return
        remaining = time_until_expiration(token, clock=self._clock)
        if remaining is None:
            return
        loop = _running_loop()
        if loop is None:
            return
        delay = max(self._min_delay, remaining / 2)
        self._timer = loop.call_later(delay, self._on_timer)
        self._delay = delay
        logger.warning(
            "Renewed token expires within the safety margin; retrying in %d seconds",
            round(delay),
        )


__all__ = ["RenewalScheduler"]
