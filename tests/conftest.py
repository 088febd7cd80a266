"""Pytest configuration shared across the suite."""

from __future__ import annotations

import base64
import json
from typing import Any

import pytest

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - tests/ is not a package
    import _bootstrap  # type: ignore # noqa: F401

from session_client.core.config import SessionSettings
from session_client.services import ProfileCache

FIXED_NOW = 1_700_000_000.0


def _b64url(data: dict[str, Any]) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def make_token(exp: Any, **claims: Any) -> str:
    """Build an unsigned JWT whose payload carries ``exp`` and ``claims``."""
    payload = dict(claims)
    if exp is not None:
        payload["exp"] = exp
    header = _b64url({"alg": "HS256", "typ": "JWT"})
    return f"{header}.{_b64url(payload)}.signature"


@pytest.fixture
def settings() -> SessionSettings:
    return SessionSettings(
        SESSION_API_URL="http://testserver/api",
        SESSION_SIGN_IN_PATH="/login",
    )


@pytest.fixture
def profile_cache(tmp_path) -> ProfileCache:
    return ProfileCache(str(tmp_path / "profile.db"))
