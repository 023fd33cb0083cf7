"""Values exchanged with the identity provider."""
from collections.abc import Callable
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class AuthChangeEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class AuthUser(BaseModel):
    """The authenticated identity as reported by the provider."""
    id: str
    email: str
    email_confirmed: bool = False

    model_config = {"frozen": True}


class AuthSession(BaseModel):
    """A live provider session: the bearer tokens plus the user they belong to."""
    access_token: str
    refresh_token: str
    expires_at: datetime
    user: AuthUser

    model_config = {"frozen": True}


AuthStateListener = Callable[[AuthChangeEvent, AuthSession | None], None]
