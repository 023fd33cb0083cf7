"""Session manager: the signed-in identity of one browser.

The manager is the only writer of session, user and profile state. It
subscribes to the identity client once, at construction, and that
subscription is the single place where session transitions are applied,
whether they come from a direct call (sign-in, sign-out), from the OAuth
callback or from the background token refresh.

States::

    anonymous -> authenticating -> authenticated -> anonymous
                       |                 (profile_pending until the
                       +-> anonymous      profile row has been fetched)
                          (credentials rejected)

Profile fetches are deferred through a ``TaskQueue`` and run once the
client call that emitted the auth event has returned. The client holds a
non-reentrant lock while notifying, so fetching inline from the listener
would deadlock.
"""
import logging
from collections.abc import Callable
from contextlib import contextmanager
from enum import Enum

from campusconnect.auth.client import IdentityClient
from campusconnect.auth.errors import AuthError
from campusconnect.auth.types import AuthChangeEvent, AuthSession, AuthUser
from campusconnect.core.tasks import TaskQueue
from campusconnect.models import Profile, Role
from campusconnect.notifications.toasts import Toaster

logger = logging.getLogger(__name__)

IdentityListener = Callable[[AuthUser | None], None]


class AuthStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SessionManager:
    """Owns the session/user/profile triple for one browser.

    Provider errors are logged, turned into one destructive toast and
    re-raised so callers can skip follow-up work (no redirect after a
    failed login). After any failure the manager is back in a consistent
    anonymous or authenticated state.
    """

    def __init__(self, client: IdentityClient, toaster: Toaster, tasks: TaskQueue | None = None):
        self.client = client
        self.toaster = toaster
        self.tasks = tasks or TaskQueue()
        self.status = AuthStatus.ANONYMOUS
        self.session: AuthSession | None = None
        self.user: AuthUser | None = None
        self.profile: Profile | None = None
        self.profile_pending = False
        self._identity_listeners: list[IdentityListener] = []
        self._subscription = client.on_auth_state_change(self._handle_auth_change)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def role(self) -> Role:
        if self.profile is None:
            return Role.STUDENT
        return self.profile.resolved_role

    def is_admin(self) -> bool:
        return self.profile is not None and self.profile.resolved_role is Role.ADMIN

    @property
    def display_name(self) -> str | None:
        if self.profile is not None and self.profile.full_name:
            return self.profile.full_name
        return self.user.email if self.user else None

    def add_identity_listener(self, listener: IdentityListener) -> None:
        """Call ``listener`` with the new user whenever the signed-in user changes."""
        self._identity_listeners.append(listener)

    def close(self) -> None:
        self._subscription.unsubscribe()

    # Auth state subscription

    def _handle_auth_change(self, event: AuthChangeEvent, session: AuthSession | None) -> None:
        previous_user_id = self.user.id if self.user else None
        self.session = session
        self.user = session.user if session else None

        if self.user is not None:
            self.status = AuthStatus.AUTHENTICATED
            self.profile_pending = True
            self.tasks.defer(self._load_profile, self.user.id)
        else:
            self.status = AuthStatus.ANONYMOUS
            self.profile = None
            self.profile_pending = False

        logger.debug(f"Auth event {event.value}, user={self.user.id if self.user else None}")
        current_user_id = self.user.id if self.user else None
        if current_user_id != previous_user_id:
            self._notify_identity_change()

    def _notify_identity_change(self) -> None:
        for listener in list(self._identity_listeners):
            listener(self.user)

    def _load_profile(self, user_id: str) -> None:
        if self.user is None or self.user.id != user_id:
            return  # Signed out or switched user before the task ran
        try:
            profile = self.client.fetch_profile(user_id)
        except Exception as e:
            # Authenticated users without a readable profile are plain students
            logger.error(f"Failed to fetch profile for {user_id}: {e}")
            profile = None
        if self.user is not None and self.user.id == user_id:
            self.profile = profile
            self.profile_pending = False

    # Provider calls

    @contextmanager
    def _provider_call(self):
        """Run deferred auth work once the wrapped client call has returned."""
        try:
            yield
        finally:
            self.tasks.run_pending()

    def _call(self, failure_title: str, func: Callable, *args):
        try:
            with self._provider_call():
                return func(*args)
        except AuthError as e:
            self._report(failure_title, e)
            raise
        except Exception as e:
            error = AuthError("network_failure", "Could not reach the identity provider. Please try again.")
            self._report(failure_title, error)
            raise error from e

    def _report(self, title: str, error: AuthError) -> None:
        logger.warning(f"{title}: {error.code} ({error.message})")
        self.toaster.error(title, error.message)

    def _settle_status(self) -> None:
        self.status = AuthStatus.AUTHENTICATED if self.user else AuthStatus.ANONYMOUS

    # Operations

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self.status = AuthStatus.AUTHENTICATING
        try:
            return self._call("Sign in failed", self.client.sign_in_with_password, email, password)
        finally:
            self._settle_status()

    def sign_in_with_oauth(self, provider: str) -> str:
        """Return the provider URL; the session arrives later through ``complete_oauth``."""
        self.status = AuthStatus.AUTHENTICATING
        try:
            return self._call("Sign in failed", self.client.sign_in_with_oauth, provider)
        except AuthError:
            self._settle_status()
            raise

    def complete_oauth(self, state: str, code: str) -> AuthSession:
        self.status = AuthStatus.AUTHENTICATING
        try:
            return self._call("Sign in failed", self.client.exchange_code_for_session, state, code)
        finally:
            self._settle_status()

    def sign_up(self, email: str, password: str) -> AuthUser:
        """Create an account. Success means a confirmation email is pending, not a session."""
        user = self._call("Sign up failed", self.client.sign_up, email, password)
        self.toaster.push(
            "Check your email",
            f"We sent a confirmation link to {user.email}. Confirm it, then sign in.",
        )
        return user

    def confirm_email(self, token: str) -> AuthUser:
        user = self._call("Confirmation failed", self.client.verify_email, token)
        self.toaster.push("Email confirmed", "You can now sign in.")
        return user

    def resume(self, access_token: str) -> AuthSession | None:
        """Restore a session persisted by the browser (INITIAL_SESSION)."""
        return self._call("Could not restore your session", self.client.get_session, access_token)

    def refresh(self) -> AuthSession | None:
        """Rotate the session tokens; a rejected refresh signs the user out.

        Returns None if the user signed out while the refresh was running.
        """
        return self._call("Session expired", self.client.refresh_session)

    def logout(self) -> None:
        """Sign out remotely and clear local state whatever the remote outcome.

        A remote failure is logged, toasted and re-raised after the local
        state has been cleared.
        """
        try:
            self._call("Sign out incomplete", self.client.sign_out)
        finally:
            self._clear()

    def _clear(self) -> None:
        had_user = self.user is not None
        self.session = None
        self.user = None
        self.profile = None
        self.profile_pending = False
        self.status = AuthStatus.ANONYMOUS
        if had_user:
            self._notify_identity_change()
