"""Service layer exports."""

from .credential_store import CredentialStore
from .gateway import RequestGateway, SessionExpiredError
from .profile_cache import ProfileCache
from .renewal import RenewalCoordinator
from .scheduler import RenewalScheduler
from .session import SessionFlows

__all__ = [
    "CredentialStore",
    "ProfileCache",
    "RenewalCoordinator",
    "RenewalScheduler",
    "RequestGateway",
    "SessionExpiredError",
    "SessionFlows",
]
