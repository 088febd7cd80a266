"""Read claims out of access tokens without verifying them.

Signature checks belong to the API; the client only needs ``exp`` to decide
when to renew.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def decode_jwt(token: str) -> Optional[Dict[str, Any]]:
    """Return the JWT payload, or ``None`` when the token is not a decodable JWT."""
    if not token or not isinstance(token, str):
        return None

    parts = token.split(".")
    if len(parts) != 3:
        return None

    segment = parts[1]
    padded = segment + "=" * (-len(segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        logger.debug("Failed to decode JWT payload: %s", exc)
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def get_token_expiration(token: str) -> Optional[float]:
    """Expiry as a UNIX timestamp in seconds, or ``None`` without an ``exp`` claim."""
    payload = decode_jwt(token)
    if not payload:
        return None
    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)) or not exp:
        return None
    return float(exp)


def time_until_expiration(token: str, *, clock: Clock = time.time) -> Optional[float]:
    """Seconds left before expiry; ``None`` if the token is invalid or already expired."""
    expiration = get_token_expiration(token)
    if expiration is None:
        return None
    remaining = expiration - clock()
    return remaining if remaining > 0 else None


def is_token_expired(token: str, *, clock: Clock = time.time) -> bool:
    return time_until_expiration(token, clock=clock) is None


__all__ = [
    "Clock",
    "decode_jwt",
    "get_token_expiration",
    "is_token_expired",
    "time_until_expiration",
]
