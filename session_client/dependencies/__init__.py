"""Expose dependency helpers for UI code."""

from .clients import build_http_client, build_session, get_request_gateway, get_session_flows

__all__ = [
    "build_http_client",
    "build_session",
    "get_request_gateway",
    "get_session_flows",
]
