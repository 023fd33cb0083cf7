from campusconnect.auth.backend import AccountBackend
from campusconnect.auth.client import IdentityClient, Subscription
from campusconnect.auth.errors import AuthError
from campusconnect.auth.session import AuthStatus, SessionManager
from campusconnect.auth.types import AuthChangeEvent, AuthSession, AuthUser

__all__ = [
    "AccountBackend",
    "AuthChangeEvent",
    "AuthError",
    "AuthSession",
    "AuthStatus",
    "AuthUser",
    "IdentityClient",
    "SessionManager",
    "Subscription",
]
