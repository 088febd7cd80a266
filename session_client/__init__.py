"""Access-token lifecycle and self-healing requests for the invitation builder API."""

from session_client.clients import AuthAPIError, AuthenticationError, RenewalError
from session_client.dependencies import build_session, get_session_flows
from session_client.services import RequestGateway, SessionExpiredError, SessionFlows

__all__ = [
    "AuthAPIError",
    "AuthenticationError",
    "RenewalError",
    "RequestGateway",
    "SessionExpiredError",
    "SessionFlows",
    "build_session",
    "get_session_flows",
]
