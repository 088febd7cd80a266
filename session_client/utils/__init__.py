"""Token and HTTP helpers."""

from .http import REQUEST_ID_HEADER, build_headers, error_message, new_request_id, resolve_url
from .jwt import decode_jwt, get_token_expiration, is_token_expired, time_until_expiration

__all__ = [
    "REQUEST_ID_HEADER",
    "build_headers",
    "decode_jwt",
    "error_message",
    "get_token_expiration",
    "is_token_expired",
    "new_request_id",
    "resolve_url",
    "time_until_expiration",
]
