"""Per-browser service objects, built at the application root.

Each browser (identified by the id stored in its signed session cookie)
gets a ``ClientContext`` owning its own identity client, session manager,
notification list and toasts. Routes receive the context through a
FastAPI dependency instead of looking anything up globally.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from campusconnect.auth.backend import AccountBackend
from campusconnect.auth.client import IdentityClient
from campusconnect.auth.errors import AuthError
from campusconnect.auth.oauth import OAuthProvider
from campusconnect.auth.session import SessionManager
from campusconnect.core.tasks import TaskQueue
from campusconnect.notifications.center import NotificationCenter
from campusconnect.notifications.toasts import Toaster
from campusconnect.store.base import EventStore

logger = logging.getLogger(__name__)


@dataclass
class ClientContext:
    """Everything one browser's requests operate on.

    Attributes:
        client_id: Random id kept in the session cookie.
        session_manager: Signed-in identity for this browser.
        notifications: Reminder/welcome list, rebuilt on identity change.
        toaster: Messages for the next rendered page.
        last_seen: Last request time; idle contexts are pruned.
    """
    client_id: str
    session_manager: SessionManager
    notifications: NotificationCenter
    toaster: Toaster
    last_seen: datetime = field(default_factory=lambda: datetime.now(UTC))

    def touch(self) -> None:
        self.last_seen = datetime.now(UTC)


class ClientRegistry:
    def __init__(
        self,
        backend: AccountBackend,
        event_store: EventStore,
        oauth_providers: dict[str, OAuthProvider] | None = None,
        site_url: str = "http://localhost:8000",
        reminder_window_days: int = 3,
    ):
        self.backend = backend
        self.event_store = event_store
        self.oauth_providers = oauth_providers or {}
        self.site_url = site_url
        self.reminder_window_days = reminder_window_days
        self._contexts: dict[str, ClientContext] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._contexts)

    def create_context(self, client_id: str) -> ClientContext:
        toaster = Toaster()
        client = IdentityClient(self.backend, self.oauth_providers, self.site_url)
        manager = SessionManager(client, toaster, TaskQueue())
        notifications = NotificationCenter(self.event_store, self.reminder_window_days)
        manager.add_identity_listener(notifications.on_identity_change)
        return ClientContext(
            client_id=client_id,
            session_manager=manager,
            notifications=notifications,
            toaster=toaster,
        )

    def get_or_create(self, client_id: str, access_token: str | None = None) -> ClientContext:
        """Return the context for ``client_id``, resuming ``access_token`` for new ones."""
        with self._lock:
            context = self._contexts.get(client_id)
            created = context is None
            if created:
                context = self.create_context(client_id)
                self._contexts[client_id] = context
        context.touch()

        if created and access_token:
            try:
                context.session_manager.resume(access_token)
            except AuthError:
                pass  # Already logged and toasted; the browser continues signed out
        return context

    def get(self, client_id: str) -> ClientContext | None:
        return self._contexts.get(client_id)

    def discard(self, client_id: str) -> None:
        with self._lock:
            context = self._contexts.pop(client_id, None)
        if context is not None:
            context.session_manager.close()

    def contexts(self) -> list[ClientContext]:
        with self._lock:
            return list(self._contexts.values())

    def refresh_expiring(self, margin: timedelta) -> dict:
        """Refresh sessions expiring within ``margin``. Returns job statistics."""
        stats = {"refreshed": 0, "expired": 0}
        cutoff = datetime.now(UTC) + margin
        for context in self.contexts():
            session = context.session_manager.session
            if session is None or session.expires_at > cutoff:
                continue
            try:
                if context.session_manager.refresh() is not None:
                    stats["refreshed"] += 1
            except AuthError:
                stats["expired"] += 1
        return stats

    def prune_idle(self, max_idle: timedelta) -> int:
        """Drop contexts not seen for ``max_idle``; returns how many were dropped."""
        cutoff = datetime.now(UTC) - max_idle
        idle = [c.client_id for c in self.contexts() if c.last_seen < cutoff]
        for client_id in idle:
            self.discard(client_id)
        if idle:
            logger.info(f"Pruned {len(idle)} idle browser contexts")
        return len(idle)
