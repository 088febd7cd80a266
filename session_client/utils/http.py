"""HTTP helpers shared by the gateway and the authority client."""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import uuid4

import httpx

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    """Correlation identifier attached to every outbound call."""
    return str(uuid4())


def resolve_url(base_url: str, target: str) -> str:
    """Join ``target`` onto ``base_url`` unless it is already absolute."""
    if target.startswith(("http://", "https://")):
        return target
    path = target if target.startswith("/") else f"/{target}"
    return f"{base_url.rstrip('/')}{path}"


def build_headers(
    *,
    token: Optional[str],
    request_id: str,
    form_body: bool = False,
    extra: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Default headers for an API call; caller-supplied ``extra`` wins."""
    headers: dict[str, str] = {}
    # Form and multipart bodies get their content type from httpx.
    if not form_body:
        headers["Content-Type"] = "application/json"
    if token:
        headers["Authorization"] = f"Bearer {token}"
    headers[REQUEST_ID_HEADER] = request_id
    if extra:
        headers.update(extra)
    return headers


def error_message(response: httpx.Response, default: str) -> str:
    """Return the ``error`` field of a JSON error body, or ``default``."""
    try:
        payload: Any = response.json()
    except ValueError:
        return default
    if isinstance(payload, dict):
        message = payload.get("error")
        if isinstance(message, str) and message:
            return message
    return default


__all__ = [
    "REQUEST_ID_HEADER",
    "build_headers",
    "error_message",
    "new_request_id",
    "resolve_url",
]
