"""OAuth sign-in providers.

Each provider turns a sign-in request into an authorization URL and, when
the browser comes back to ``/auth/callback``, exchanges the code for a
verified identity. Google is implemented with google-auth-oauthlib's
``Flow`` (PKCE) and the ID token is verified with google-auth.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from google.auth.transport.requests import Request
from google.oauth2 import id_token
from google_auth_oauthlib.flow import Flow

from campusconnect.auth.errors import AuthError
from campusconnect.core.config import Settings

logger = logging.getLogger(__name__)

GOOGLE_SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]


@dataclass(frozen=True)
class AuthorizationRequest:
    """Where to send the browser, and what to remember until it returns."""
    url: str
    state: str
    code_verifier: str | None = None


@dataclass(frozen=True)
class OAuthIdentity:
    email: str
    full_name: str | None = None
    avatar_url: str | None = None


class OAuthProvider(ABC):
    name: str

    @abstractmethod
    def authorization_request(self, redirect_uri: str) -> AuthorizationRequest: ...

    @abstractmethod
    def fetch_identity(
        self, code: str, state: str, code_verifier: str | None, redirect_uri: str
    ) -> OAuthIdentity: ...


class GoogleOAuthProvider(OAuthProvider):
    """Sign in with Google using the web-server OAuth flow."""

    name = "google"

    def __init__(self, client_id: str, client_secret: str):
        self.client_id = client_id
        self.client_config = {
            "web": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        }

    def authorization_request(self, redirect_uri: str) -> AuthorizationRequest:
        flow = Flow.from_client_config(
            self.client_config,
            scopes=GOOGLE_SCOPES,
            redirect_uri=redirect_uri,
            autogenerate_code_verifier=True,
        )
        url, state = flow.authorization_url(prompt="select_account")
        return AuthorizationRequest(url=url, state=state, code_verifier=flow.code_verifier)

    def fetch_identity(
        self, code: str, state: str, code_verifier: str | None, redirect_uri: str
    ) -> OAuthIdentity:
        flow = Flow.from_client_config(
            self.client_config,
            scopes=GOOGLE_SCOPES,
            state=state,
            redirect_uri=redirect_uri,
            code_verifier=code_verifier,
        )
        try:
            flow.fetch_token(code=code)
            claims = id_token.verify_oauth2_token(
                flow.credentials.id_token, Request(), self.client_id
            )
        except Exception as e:
            logger.error(f"Google sign-in failed: {e}")
            raise AuthError("oauth_failed", "Google sign-in could not be completed.") from e

        if not claims.get("email") or not claims.get("email_verified", False):
            raise AuthError("oauth_failed", "Your Google account has no verified email address.")
        return OAuthIdentity(
            email=claims["email"],
            full_name=claims.get("name"),
            avatar_url=claims.get("picture"),
        )


def build_oauth_providers(settings: Settings) -> dict[str, OAuthProvider]:
    """Providers enabled by configuration, keyed by name."""
    providers: dict[str, OAuthProvider] = {}
    if settings.google_client_id and settings.google_client_secret:
        providers["google"] = GoogleOAuthProvider(
            settings.google_client_id, settings.google_client_secret
        )
    else:
        logger.info("Google sign-in disabled: GOOGLE_CLIENT_ID/SECRET not configured")
    return providers
