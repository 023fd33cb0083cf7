"""Per-browser identity client.

``IdentityClient`` plays the role of a provider SDK instance: it keeps the
current session for one browser, talks to the shared ``AccountBackend``
and OAuth providers, and notifies subscribers of every session change.

Listeners are notified while the client's lock is held, and the lock is
not reentrant. A listener must therefore never call back into the client
(``fetch_profile`` included) synchronously; it has to defer that work
until the notifying call has returned.
"""
import logging
import threading
from dataclasses import dataclass
from urllib.parse import urlencode

from campusconnect.auth.backend import AccountBackend
from campusconnect.auth.errors import AuthError
from campusconnect.auth.oauth import OAuthProvider
from campusconnect.auth.types import AuthChangeEvent, AuthSession, AuthStateListener, AuthUser
from campusconnect.models import Profile

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by ``on_auth_state_change``."""

    def __init__(self, client: "IdentityClient", callback: AuthStateListener):
        self._client = client
        self.callback = callback

    def unsubscribe(self) -> None:
        self._client._remove_listener(self.callback)


@dataclass(frozen=True)
class _PendingOAuth:
    provider: str
    code_verifier: str | None
    redirect_uri: str


class IdentityClient:
    def __init__(
        self,
        backend: AccountBackend,
        oauth_providers: dict[str, OAuthProvider] | None = None,
        site_url: str = "http://localhost:8000",
    ):
        self.backend = backend
        self.oauth_providers = oauth_providers or {}
        self.site_url = site_url.rstrip("/")
        self._lock = threading.Lock()
        self._listeners: list[AuthStateListener] = []
        self._session: AuthSession | None = None
        self._pending_oauth: dict[str, _PendingOAuth] = {}

    @property
    def callback_url(self) -> str:
        return f"{self.site_url}/auth/callback"

    @property
    def current_session(self) -> AuthSession | None:
        return self._session

    # Subscriptions

    def on_auth_state_change(self, callback: AuthStateListener) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self, callback)

    def _remove_listener(self, callback: AuthStateListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _set_session(self, event: AuthChangeEvent, session: AuthSession | None) -> None:
        """Record the new session and notify listeners. Caller holds the lock."""
        self._session = session
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                logger.exception(f"Auth state listener failed on {event.value}")

    # Sessions

    def get_session(self, access_token: str | None = None) -> AuthSession | None:
        """Resume the session for ``access_token`` or return the current one.

        Resuming emits INITIAL_SESSION, with ``None`` when the token is no
        longer valid.
        """
        if access_token is None:
            return self._session
        session = self.backend.lookup_session(access_token)
        with self._lock:
            self._set_session(AuthChangeEvent.INITIAL_SESSION, session)
        return session

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        user = self.backend.authenticate(email, password)
        session = self.backend.issue_session(user)
        with self._lock:
            self._set_session(AuthChangeEvent.SIGNED_IN, session)
        logger.info(f"User {user.id} signed in with password")
        return session

    def sign_in_with_oauth(self, provider: str, redirect_to: str | None = None) -> str:
        """Start an OAuth sign-in and return the URL to send the browser to."""
        oauth = self.oauth_providers.get(provider)
        if oauth is None:
            raise AuthError("provider_not_supported", f"Sign-in with {provider} is not available.")
        redirect_uri = redirect_to or self.callback_url
        request = oauth.authorization_request(redirect_uri)
        with self._lock:
            self._pending_oauth[request.state] = _PendingOAuth(
                provider=provider,
                code_verifier=request.code_verifier,
                redirect_uri=redirect_uri,
            )
        return request.url

    def exchange_code_for_session(self, state: str, code: str) -> AuthSession:
        """Complete an OAuth sign-in started by ``sign_in_with_oauth``."""
        with self._lock:
            pending = self._pending_oauth.pop(state, None)
        if pending is None:
            raise AuthError("oauth_failed", "This sign-in link has expired. Please try again.")
        identity = self.oauth_providers[pending.provider].fetch_identity(
            code, state, pending.code_verifier, pending.redirect_uri
        )
        user = self.backend.upsert_oauth_account(
            identity.email, identity.full_name, identity.avatar_url
        )
        session = self.backend.issue_session(user)
        with self._lock:
            self._set_session(AuthChangeEvent.SIGNED_IN, session)
        logger.info(f"User {user.id} signed in with {pending.provider}")
        return session

    def sign_up(self, email: str, password: str, redirect_to: str | None = None) -> AuthUser:
        """Create an account; the user must confirm the email before signing in."""
        user, token = self.backend.create_account(email, password)
        confirm_url = f"{redirect_to or self.site_url + '/auth/confirm'}?{urlencode({'token': token})}"
        # No mail transport is configured; the link is logged for the operator
        logger.info(f"Confirmation link for {user.email}: {confirm_url}")
        return user

    def verify_email(self, token: str) -> AuthUser:
        return self.backend.confirm_email(token)

    def refresh_session(self) -> AuthSession | None:
        """Rotate the current token pair.

        Emits TOKEN_REFRESHED, or SIGNED_OUT when the provider no longer
        accepts the refresh token. If the session changed while the provider
        call was in flight, the new pair is revoked without emitting and the
        session as it now stands is returned.
        """
        current = self._session
        if current is None:
            raise AuthError("not_authenticated", "You are not signed in.")
        try:
            session = self.backend.refresh(current.refresh_token)
        except AuthError:
            with self._lock:
                if self._session is current:
                    self._set_session(AuthChangeEvent.SIGNED_OUT, None)
            raise
        with self._lock:
            stale = self._session is not current
            if not stale:
                self._set_session(AuthChangeEvent.TOKEN_REFRESHED, session)
        if stale:
            logger.info("Session changed during token refresh; discarding the new tokens")
            self.backend.revoke(session.access_token)
            return self._session
        return session

    def sign_out(self) -> None:
        """Revoke the current session.

        The local session is dropped and SIGNED_OUT emitted even when the
        revocation fails; the failure is re-raised afterwards.
        """
        current = self._session
        try:
            if current is not None:
                self.backend.revoke(current.access_token)
        except Exception as e:
            raise AuthError("network_failure", "Could not reach the identity provider to sign out.") from e
        finally:
            with self._lock:
                self._set_session(AuthChangeEvent.SIGNED_OUT, None)

    # Row queries

    def fetch_profile(self, user_id: str) -> Profile | None:
        """Select the profile row for ``user_id`` using the current session."""
        with self._lock:
            if self._session is None:
                raise AuthError("not_authenticated", "You are not signed in.")
        return self.backend.get_profile(user_id)
