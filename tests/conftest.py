"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, create_engine
from sqlmodel.pool import StaticPool

from campusconnect.auth.backend import AccountBackend
from campusconnect.auth.client import IdentityClient
from campusconnect.auth.errors import AuthError
from campusconnect.auth.oauth import AuthorizationRequest, OAuthIdentity, OAuthProvider
from campusconnect.auth.session import SessionManager
from campusconnect.core.clients import ClientRegistry
from campusconnect.core.database import create_db_and_tables
from campusconnect.core.tasks import TaskQueue
from campusconnect.dependencies import get_event_store, get_registry
from campusconnect.main import app
from campusconnect.models import Event, EventCategory, EventData
from campusconnect.notifications.toasts import Toaster
from campusconnect.store import InMemoryEventStore

STUDENT_EMAIL = "student@campus.edu"
ADMIN_EMAIL = "admin@campus.edu"
PASSWORD = "secret-password"


class FakeOAuthProvider(OAuthProvider):
    """OAuth provider that accepts the code "good-code" for a fixed identity."""

    name = "campus"

    def __init__(self, email: str = "oauth.student@campus.edu"):
        self.email = email
        self.requests = 0

    def authorization_request(self, redirect_uri: str) -> AuthorizationRequest:
        self.requests += 1
        state = f"state-{self.requests}"
        return AuthorizationRequest(
            url=f"https://sso.campus.edu/authorize?state={state}&redirect_uri={redirect_uri}",
            state=state,
            code_verifier="verifier",
        )

    def fetch_identity(self, code, state, code_verifier, redirect_uri) -> OAuthIdentity:
        if code != "good-code":
            raise AuthError("oauth_failed", "Campus sign-in could not be completed.")
        return OAuthIdentity(email=self.email, full_name="Olivia Auth")


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="now")
def now_fixture() -> datetime:
    return datetime.now(UTC).replace(microsecond=0)


@pytest.fixture(name="store")
def store_fixture() -> InMemoryEventStore:
    """Create an empty in-memory event store."""
    return InMemoryEventStore()


@pytest.fixture(name="backend")
def backend_fixture(engine) -> AccountBackend:
    return AccountBackend(engine, session_ttl=timedelta(minutes=60))


@pytest.fixture(name="oauth_provider")
def oauth_provider_fixture() -> FakeOAuthProvider:
    return FakeOAuthProvider()


@pytest.fixture(name="student")
def student_fixture(backend: AccountBackend):
    """Create a confirmed student account."""
    user, token = backend.create_account(STUDENT_EMAIL, PASSWORD, full_name="Sam Student")
    return backend.confirm_email(token)


@pytest.fixture(name="admin")
def admin_fixture(backend: AccountBackend):
    """Create an administrator account."""
    return backend.create_admin(ADMIN_EMAIL, PASSWORD, "Ada Admin")


@pytest.fixture(name="identity_client")
def identity_client_fixture(backend: AccountBackend, oauth_provider: FakeOAuthProvider):
    return IdentityClient(backend, {"campus": oauth_provider}, site_url="http://testserver")


@pytest.fixture(name="toaster")
def toaster_fixture() -> Toaster:
    return Toaster()


@pytest.fixture(name="manager")
def manager_fixture(identity_client: IdentityClient, toaster: Toaster) -> SessionManager:
    return SessionManager(identity_client, toaster, TaskQueue())


@pytest.fixture(name="registry")
def registry_fixture(backend, store, oauth_provider) -> ClientRegistry:
    return ClientRegistry(
        backend,
        store,
        oauth_providers={"campus": oauth_provider},
        site_url="http://testserver",
    )


@pytest.fixture(name="client")
def client_fixture(store: InMemoryEventStore, registry: ClientRegistry):
    """Create a test client wired to the test store and registry."""
    app.dependency_overrides[get_event_store] = lambda: store
    app.dependency_overrides[get_registry] = lambda: registry
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def make_event_data(title: str = "Hack Night", days: float = 2, **overrides) -> EventData:
    values = {
        "title": title,
        "description": "An evening of building side projects.",
        "date": datetime.now(UTC) + timedelta(days=days),
        "location": "Engineering Building",
        "category": EventCategory.TECH,
        "organizer": "Computer Science Society",
    }
    values.update(overrides)
    return EventData(**values)


@pytest.fixture(name="sample_event")
def sample_event_fixture(store: InMemoryEventStore) -> Event:
    """Create an upcoming event for testing."""
    return store.add_event(make_event_data(max_attendees=2))


@pytest.fixture(name="past_event")
def past_event_fixture(store: InMemoryEventStore) -> Event:
    """Create an event that has already happened."""
    return store.add_event(make_event_data("Welcome Week Mixer", days=-7, category=EventCategory.SOCIAL))


def sign_in(client: TestClient, email: str = STUDENT_EMAIL, password: str = PASSWORD):
    return client.post(
        "/login", data={"email": email, "password": password}, follow_redirects=False
    )
