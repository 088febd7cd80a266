from __future__ import annotations

import asyncio

import pytest

from conftest import FIXED_NOW, make_token
from session_client.clients.auth_api import RenewalError
from session_client.services.credential_store import CredentialStore
from session_client.services.renewal import RenewalCoordinator
from session_client.services.scheduler import RenewalScheduler

pytestmark = pytest.mark.asyncio


def _clock() -> float:
    return FIXED_NOW


class QueuedRefresh:
    """Refresh call returning queued tokens once released."""

    def __init__(self, *tokens: str, released: bool = True) -> None:
        self.tokens = list(tokens)
        self.calls = 0
        self.release = asyncio.Event()
        if released:
            self.release.set()

    async def __call__(self) -> str:
        self.calls += 1
        await self.release.wait()
        if not self.tokens:
            raise RenewalError("Failed to refresh token", status_code=401)
        return self.tokens.pop(0)


def _wire(
    refresh: QueuedRefresh, *, min_delay: float = 1.0
) -> tuple[CredentialStore, RenewalCoordinator, RenewalScheduler]:
    store = CredentialStore()
    coordinator = RenewalCoordinator(store, refresh)
    scheduler = RenewalScheduler(
        coordinator.start,
        store.get,
        safety_margin_seconds=60,
        min_delay_seconds=min_delay,
        clock=_clock,
    )
    store.add_listener(scheduler.on_credential_changed)
    return store, coordinator, scheduler


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


async def test_arm_schedules_refresh_one_margin_before_expiry() -> None:
    store, coordinator, scheduler = _wire(QueuedRefresh())

    store.set(make_token(FIXED_NOW + 70))

    assert scheduler.is_armed
    assert scheduler.scheduled_delay == pytest.approx(10)
    assert coordinator.pending is None
    scheduler.disarm()


async def test_renewed_token_rearms_for_its_own_lifetime() -> None:
    renewed = make_token(FIXED_NOW + 300)
    refresh = QueuedRefresh(renewed)
    store, coordinator, scheduler = _wire(refresh, min_delay=0.0)

    store.set(make_token(FIXED_NOW + 60.05))
    assert scheduler.scheduled_delay == pytest.approx(0.05, abs=1e-3)

    await _wait_for(lambda: store.get() == renewed)

    assert refresh.calls == 1
    assert scheduler.is_armed
    assert scheduler.scheduled_delay == pytest.approx(240)
    await _wait_for(lambda: not scheduler.renewing)
    scheduler.disarm()


async def test_new_token_cancels_previous_timer(monkeypatch) -> None:
    loop = asyncio.get_running_loop()
    handles: list[asyncio.TimerHandle] = []
    original_call_later = loop.call_later

    def recording_call_later(*args, **kwargs):
        handle = original_call_later(*args, **kwargs)
        handles.append(handle)
        return handle

    monkeypatch.setattr(loop, "call_later", recording_call_later)
    store, _, scheduler = _wire(QueuedRefresh())

    store.set(make_token(FIXED_NOW + 600))
    store.set(make_token(FIXED_NOW + 900))

    assert len(handles) == 2
    assert handles[0].cancelled()
    assert not handles[1].cancelled()
    assert scheduler.scheduled_delay == pytest.approx(840)
    scheduler.disarm()
    assert handles[1].cancelled()


async def test_token_inside_margin_renews_immediately() -> None:
    refresh = QueuedRefresh(make_token(FIXED_NOW + 300), released=False)
    store, coordinator, scheduler = _wire(refresh)

    store.set(make_token(FIXED_NOW + 30))

    assert coordinator.pending is not None
    assert scheduler.renewing
    assert not scheduler.is_armed

    refresh.release.set()
    await _wait_for(lambda: not scheduler.renewing)
    assert refresh.calls == 1
    assert scheduler.scheduled_delay == pytest.approx(240)
    scheduler.disarm()


async def test_short_lived_renewed_token_schedules_a_retry() -> None:
    refresh = QueuedRefresh(make_token(FIXED_NOW + 30))
    store, coordinator, scheduler = _wire(refresh)

    store.set(make_token(FIXED_NOW + 30))
    await _wait_for(lambda: not scheduler.renewing)

    assert refresh.calls == 1
    assert coordinator.pending is None
    assert scheduler.is_armed
    assert scheduler.scheduled_delay == pytest.approx(15)
    scheduler.disarm()


async def test_token_without_expiry_renews_immediately() -> None:
    refresh = QueuedRefresh(make_token(FIXED_NOW + 300))
    store, coordinator, scheduler = _wire(refresh)

    store.set("opaque-token")

    assert coordinator.pending is not None
    await _wait_for(lambda: not scheduler.renewing)
    assert refresh.calls == 1
    scheduler.disarm()


async def test_clearing_the_store_disarms() -> None:
    store, _, scheduler = _wire(QueuedRefresh())
    store.set(make_token(FIXED_NOW + 600))

    store.clear()

    assert not scheduler.is_armed
    assert scheduler.scheduled_delay is None


async def test_failed_proactive_refresh_stops_without_clearing_token() -> None:
    store = CredentialStore()

    async def failing_renewal() -> str:
        raise RenewalError("Failed to refresh token", status_code=401)

    scheduler = RenewalScheduler(
        failing_renewal,
        store.get,
        safety_margin_seconds=60,
        clock=_clock,
    )
    store.add_listener(scheduler.on_credential_changed)
    near_expiry = make_token(FIXED_NOW + 10)

    store.set(near_expiry)
    await _wait_for(lambda: not scheduler.renewing)

    assert store.get() == near_expiry
    assert not scheduler.is_armed


async def test_timer_does_not_start_second_renewal_while_one_runs() -> None:
    refresh = QueuedRefresh(make_token(FIXED_NOW + 300), released=False)
    store, coordinator, scheduler = _wire(refresh)
    store.set(make_token(FIXED_NOW + 30))
    assert scheduler.renewing

    scheduler.on_visibility_change(True)
    scheduler.on_visibility_change(True)

    refresh.release.set()
    await _wait_for(lambda: not scheduler.renewing)
    assert refresh.calls == 1
    scheduler.disarm()


async def test_visibility_hidden_is_ignored() -> None:
    store, coordinator, scheduler = _wire(QueuedRefresh())
    store.set(make_token(FIXED_NOW + 600))
    scheduler.disarm()

    scheduler.on_visibility_change(False)

    assert not scheduler.is_armed
    assert coordinator.pending is None


async def test_visibility_regain_reschedules_for_remaining_time() -> None:
    store, coordinator, scheduler = _wire(QueuedRefresh())
    store.set(make_token(FIXED_NOW + 600))
    scheduler.disarm()

    scheduler.on_visibility_change(True)

    assert scheduler.is_armed
    assert scheduler.scheduled_delay == pytest.approx(540)
    assert coordinator.pending is None
    scheduler.disarm()


async def test_visibility_regain_near_expiry_renews_now() -> None:
    now = [FIXED_NOW]
    refresh = QueuedRefresh(make_token(FIXED_NOW + 900))
    store = CredentialStore()
    coordinator = RenewalCoordinator(store, refresh)
    scheduler = RenewalScheduler(
        coordinator.start,
        store.get,
        safety_margin_seconds=60,
        clock=lambda: now[0],
    )
    store.add_listener(scheduler.on_credential_changed)
    store.set(make_token(FIXED_NOW + 600))
    assert refresh.calls == 0

    # The host was suspended long enough that the timer never fired.
    now[0] = FIXED_NOW + 570
    scheduler.on_visibility_change(True)

    assert coordinator.pending is not None
    await _wait_for(lambda: not scheduler.renewing)
    assert refresh.calls == 1
    assert scheduler.scheduled_delay == pytest.approx(270)
    scheduler.disarm()


async def test_visibility_regain_without_token_does_nothing() -> None:
    _, coordinator, scheduler = _wire(QueuedRefresh())

    scheduler.on_visibility_change(True)

    assert coordinator.pending is None
    assert not scheduler.is_armed
