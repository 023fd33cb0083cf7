"""Tests for API routes."""

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from campusconnect.core.clients import ClientRegistry
from campusconnect.models import Event, EventCategory
from campusconnect.store import InMemoryEventStore
from conftest import ADMIN_EMAIL, PASSWORD, make_event_data, sign_in

JSON = {"Accept": "application/json"}


@pytest.fixture(name="student_client")
def student_client_fixture(client: TestClient, student) -> TestClient:
    """A test client signed in as the student."""
    response = sign_in(client)
    assert response.status_code == 303
    return client


@pytest.fixture(name="admin_client")
def admin_client_fixture(client: TestClient, admin) -> TestClient:
    """A test client signed in through the admin login."""
    response = client.post(
        "/admin/login", data={"email": ADMIN_EMAIL, "password": PASSWORD}, follow_redirects=False
    )
    assert response.status_code == 303
    return client


def event_form(**overrides) -> dict:
    data = {
        "title": "Robotics Demo",
        "description": "See the robotics club's latest builds in action.",
        "date": "2030-03-01",
        "time": "15:00",
        "location": "Engineering Atrium",
        "category": "tech",
        "organizer": "Robotics Club",
        "max_attendees": "40",
    }
    data.update(overrides)
    return data


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient):
        """Test the health endpoint returns OK."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["app"] == "CampusConnect"


class TestPages:
    """Tests for the public pages."""

    def test_home_page(self, client: TestClient, store: InMemoryEventStore, sample_event: Event):
        """Test the home page lists featured and upcoming events."""
        store.add_event(make_event_data("Career Fair", days=9, is_featured=True))
        response = client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Career Fair" in response.text
        assert sample_event.title in response.text

    def test_about_page(self, client: TestClient):
        """Test the about page loads."""
        response = client.get("/about")
        assert response.status_code == 200

    def test_unknown_page(self, client: TestClient):
        """Test unknown URLs render the not-found page."""
        response = client.get("/no-such-page")
        assert response.status_code == 404
        assert "Page not found" in response.text


class TestEventsRoutes:
    """Tests for event-related routes."""

    def test_events_page(self, client: TestClient, sample_event: Event):
        """Test the events page loads."""
        response = client.get("/events")
        assert response.status_code == 200
        assert sample_event.title in response.text

    def test_events_json_query(self, client: TestClient, store: InMemoryEventStore):
        """Test search, category filter and sort through the JSON response."""
        store.add_event(make_event_data("Hack Night", days=4))
        store.add_event(make_event_data("Art Fair", days=2, category=EventCategory.ART))
        store.add_event(make_event_data("Night Market", days=3, category=EventCategory.CULTURAL))

        response = client.get("/events?q=night&sort=date-desc", headers=JSON)
        assert [e["title"] for e in response.json()["events"]] == ["Hack Night", "Night Market"]

        response = client.get("/events?category=art&category=cultural", headers=JSON)
        data = response.json()
        assert data["total"] == 2
        assert [e["title"] for e in data["events"]] == ["Art Fair", "Night Market"]
        assert data["categories"] == ["art", "cultural"]

    def test_invalid_sort(self, client: TestClient):
        """Test unknown sort keys are rejected."""
        response = client.get("/events?sort=random", headers=JSON)
        assert response.status_code == 422

    def test_event_detail_page(self, client: TestClient, sample_event: Event):
        """Test the event detail page loads."""
        response = client.get(f"/events/{sample_event.id}")
        assert response.status_code == 200
        assert sample_event.title in response.text
        assert "Sign in to register" in response.text

    def test_event_detail_not_found(self, client: TestClient):
        """Test 404 for non-existent event."""
        response = client.get(f"/events/{uuid4()}")
        assert response.status_code == 404
        assert "Page not found" in response.text

        response = client.get(f"/events/{uuid4()}", headers=JSON)
        assert response.status_code == 404
        assert response.json()["detail"] == "Event not found"

    def test_register_requires_login(self, client: TestClient, sample_event: Event):
        """Test anonymous visitors are sent to the login page."""
        response = client.post(f"/events/{sample_event.id}/register", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_register_and_cancel(
        self, student_client: TestClient, store: InMemoryEventStore, sample_event: Event, student
    ):
        """Test registering for an event and cancelling it."""
        response = student_client.post(f"/events/{sample_event.id}/register", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == f"/events/{sample_event.id}"
        assert store.is_registered(student.id, sample_event.id)

        response = student_client.get(f"/events/{sample_event.id}")
        assert "Registration successful" in response.text
        assert "You are registered for this event." in response.text

        response = student_client.post(f"/events/{sample_event.id}/cancel", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/my-registrations"
        assert not store.is_registered(student.id, sample_event.id)

    def test_register_full_event(
        self, student_client: TestClient, store: InMemoryEventStore, sample_event: Event
    ):
        """Test registering for a full event fails."""
        store.register("someone", sample_event.id)
        store.register("someone-else", sample_event.id)

        response = student_client.post(f"/events/{sample_event.id}/register", headers=JSON)
        assert response.status_code == 400
        assert response.json()["error"] == "This event is already full."

    def test_register_past_event(self, student_client: TestClient, past_event: Event):
        """Test events that already happened refuse registrations."""
        response = student_client.post(f"/events/{past_event.id}/register", headers=JSON)
        assert response.status_code == 400

    def test_admin_cannot_register(self, admin_client: TestClient, sample_event: Event):
        """Test administrators cannot register for events."""
        response = admin_client.post(f"/events/{sample_event.id}/register", headers=JSON)
        assert response.status_code == 400
        assert response.json()["error"] == "Administrators cannot register for events."


class TestStudentPages:
    """Tests for pages that require a signed-in student."""

    def test_dashboard_requires_login(self, client: TestClient):
        """Test the dashboard redirects anonymous visitors."""
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_dashboard(self, student_client: TestClient, store: InMemoryEventStore, sample_event: Event, student):
        """Test the dashboard shows the student's events."""
        store.register(student.id, sample_event.id)
        response = student_client.get("/dashboard")
        assert response.status_code == 200
        assert "Sam Student" in response.text
        assert "You are registered for 1 event." in response.text

    def test_dashboard_sections(
        self, student_client: TestClient, store: InMemoryEventStore, sample_event: Event, student
    ):
        """Test "Your Events" holds registrations and "Coming Up on Campus" holds all upcoming events."""
        store.register(student.id, sample_event.id)
        other = store.add_event(make_event_data("Art Fair", days=1, category=EventCategory.ART))

        response = student_client.get("/dashboard")
        yours, coming_up = response.text.split("Coming Up on Campus")
        assert "Your Events" in yours
        assert sample_event.title in yours
        assert other.title not in yours
        assert other.title in coming_up
        assert sample_event.title in coming_up

    def test_my_registrations(
        self,
        student_client: TestClient,
        store: InMemoryEventStore,
        sample_event: Event,
        student,
    ):
        """Test registrations are listed and deleted events are skipped."""
        doomed = store.add_event(make_event_data("Cancelled Concert", days=4))
        store.register(student.id, sample_event.id)
        store.register(student.id, doomed.id)
        store.delete_event(doomed.id)

        response = student_client.get("/my-registrations")
        assert response.status_code == 200
        assert sample_event.title in response.text
        assert "Cancelled Concert" not in response.text
        assert "No past events." in response.text


class TestAuthRoutes:
    """Tests for sign-in, sign-up and sign-out."""

    def test_login_page(self, client: TestClient):
        """Test the login page offers the configured OAuth providers."""
        response = client.get("/login")
        assert response.status_code == 200
        assert "/auth/oauth/campus" in response.text

    def test_login_redirects_student_home(self, client: TestClient, student):
        """Test a successful student login redirects to the home page."""
        response = sign_in(client)
        assert response.status_code == 303
        assert response.headers["location"] == "/"

        status = client.get("/auth/status").json()
        assert status["authenticated"] is True
        assert status["email"] == student.email
        assert status["is_admin"] is False
        assert status["profile_pending"] is False

    def test_login_wrong_password(self, client: TestClient, student):
        """Test a rejected login re-renders the form with one error."""
        response = sign_in(client, password="wrong-password")
        assert response.status_code == 401
        assert response.text.count("Invalid login credentials.") == 1
        assert client.get("/auth/status").json()["authenticated"] is False

    def test_login_validation(self, client: TestClient):
        """Test malformed input is rejected before contacting the provider."""
        response = sign_in(client, email="not-an-email", password="123")
        assert response.status_code == 400
        assert "Please enter a valid email address." in response.text
        assert "Password must be at least 6 characters." in response.text

    def test_signup(self, client: TestClient):
        """Test sign-up sends the visitor back to login with a confirmation notice."""
        response = client.post(
            "/signup", data={"email": "new@campus.edu", "password": PASSWORD}, follow_redirects=False
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert "Check your email" in client.get("/login").text

    def test_signup_existing_email(self, client: TestClient, student):
        """Test signing up twice with one email fails."""
        response = client.post("/signup", data={"email": student.email, "password": PASSWORD})
        assert response.status_code == 400
        assert "An account with this email already exists." in response.text

    def test_confirm_invalid_token(self, client: TestClient):
        """Test an invalid confirmation link is reported on the login page."""
        response = client.get("/auth/confirm?token=bogus", follow_redirects=False)
        assert response.status_code == 303
        assert "Confirmation failed" in client.get("/login").text

    def test_logout(self, student_client: TestClient):
        """Test signing out clears the session."""
        response = student_client.post("/logout", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert student_client.get("/auth/status").json()["authenticated"] is False

    def test_session_survives_lost_context(self, student_client: TestClient, registry: ClientRegistry):
        """Test the access token in the cookie restores the session for a new context."""
        assert registry.prune_idle(timedelta(seconds=-1)) == 1
        assert len(registry) == 0

        status = student_client.get("/auth/status").json()
        assert status["authenticated"] is True

    def test_session_survives_refresh_then_lost_context(
        self, student_client: TestClient, registry: ClientRegistry, student
    ):
        """Test a cookie written before a background refresh still restores the session."""
        assert registry.refresh_expiring(timedelta(hours=2)) == {"refreshed": 1, "expired": 0}
        assert registry.prune_idle(timedelta(seconds=-1)) == 1

        status = student_client.get("/auth/status").json()
        assert status["authenticated"] is True
        assert status["user_id"] == student.id


class TestOAuthRoutes:
    """Tests for OAuth sign-in."""

    def test_oauth_round_trip(self, client: TestClient):
        """Test the provider redirect and callback sign the user in."""
        response = client.get("/auth/oauth/campus", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"].startswith("https://sso.campus.edu/authorize")

        response = client.get("/auth/callback?state=state-1&code=good-code", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert client.get("/auth/status").json()["email"] == "oauth.student@campus.edu"

    def test_oauth_unknown_provider(self, client: TestClient):
        """Test unknown providers send the visitor back to login."""
        response = client.get("/auth/oauth/myspace", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_oauth_cancelled(self, client: TestClient):
        """Test a callback carrying an error does not sign anyone in."""
        response = client.get("/auth/callback?error=access_denied", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert client.get("/auth/status").json()["authenticated"] is False


class TestNotificationRoutes:
    """Tests for the notification menu."""

    def test_requires_login(self, client: TestClient):
        """Test anonymous visitors have no notifications page."""
        response = client.get("/notifications", follow_redirects=False)
        assert response.status_code == 303

    def test_list_and_mark_read(self, client: TestClient, sample_event: Event, student):
        """Test the welcome and reminder entries and marking them read."""
        sign_in(client)
        data = client.get("/notifications", headers=JSON).json()
        assert [n["id"] for n in data["notifications"]] == [
            "welcome",
            f"event-reminder-{sample_event.id}",
        ]
        assert data["unread_count"] == 2

        data = client.post("/notifications/welcome/read", headers=JSON).json()
        assert data["unread_count"] == 1

        data = client.post("/notifications/read-all", headers=JSON).json()
        assert data["unread_count"] == 0

    def test_mark_unknown(self, student_client: TestClient):
        """Test marking an unknown notification returns 404."""
        response = student_client.post("/notifications/missing/read", headers=JSON)
        assert response.status_code == 404


class TestAdminRoutes:
    """Tests for the admin pages."""

    def test_admin_requires_login(self, client: TestClient):
        """Test anonymous visitors are sent to the admin login."""
        response = client.get("/admin", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/admin/login"

    def test_student_denied(self, student_client: TestClient):
        """Test students are sent home from admin pages."""
        response = student_client.get("/admin/events", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert "Access denied" in student_client.get("/").text

    def test_admin_login_as_student(self, client: TestClient, student):
        """Test a student using the admin form is refused admin access."""
        response = client.post(
            "/admin/login", data={"email": student.email, "password": PASSWORD}, follow_redirects=False
        )
        assert response.status_code == 403
        assert "Access denied" in response.text

    def test_dashboard_stats(
        self, admin_client: TestClient, store: InMemoryEventStore, sample_event: Event, past_event: Event
    ):
        """Test the dashboard counts events, registrations and announcements."""
        store.register("someone", sample_event.id)
        stats = admin_client.get("/admin", headers=JSON).json()
        assert stats == {
            "total_events": 2,
            "upcoming_events": 1,
            "registrations": 1,
            "announcements": 0,
        }

    def test_events_search(self, admin_client: TestClient, store: InMemoryEventStore, sample_event: Event):
        """Test the admin list searches locations."""
        store.add_event(make_event_data("Art Fair", location="Fine Arts Courtyard", category=EventCategory.ART))
        response = admin_client.get("/admin/events?q=courtyard")
        assert response.status_code == 200
        assert "Art Fair" in response.text
        assert sample_event.title not in response.text

    def test_create_event(self, admin_client: TestClient, store: InMemoryEventStore):
        """Test creating an event from the form."""
        response = admin_client.post("/admin/events/new", data=event_form(is_featured="true"), follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/admin/events"

        [event] = store.get_all_events()
        assert event.title == "Robotics Demo"
        assert event.max_attendees == 40
        assert event.is_featured is True
        assert event.date.hour == 15

    def test_create_event_invalid(self, admin_client: TestClient, store: InMemoryEventStore):
        """Test invalid input is shown next to the fields and nothing is stored."""
        response = admin_client.post("/admin/events/new", data=event_form(title="R", time="25:00"))
        assert response.status_code == 400
        assert "Title must be at least 2 characters." in response.text
        assert "Please enter a valid time in 24-hour format (HH:MM)." in response.text
        assert store.get_all_events() == []

    def test_edit_event(self, admin_client: TestClient, store: InMemoryEventStore, sample_event: Event):
        """Test editing an event."""
        response = admin_client.get(f"/admin/events/edit/{sample_event.id}")
        assert response.status_code == 200
        assert sample_event.title in response.text

        response = admin_client.post(
            f"/admin/events/edit/{sample_event.id}",
            data=event_form(title="Hack Night Reloaded"),
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert store.get_event_by_id(sample_event.id).title == "Hack Night Reloaded"

    def test_edit_capacity_below_registrations(
        self, admin_client: TestClient, store: InMemoryEventStore, sample_event: Event
    ):
        """Test capacity cannot be edited below the registrations already taken."""
        store.register("user-1", sample_event.id)
        store.register("user-2", sample_event.id)

        response = admin_client.post(
            f"/admin/events/edit/{sample_event.id}",
            data=event_form(title="Hack Night Reloaded", max_attendees="1"),
            follow_redirects=False,
        )
        assert response.status_code == 400
        assert "Capacity cannot be below the 2 current registrations." in response.text

        event = store.get_event_by_id(sample_event.id)
        assert event.title == sample_event.title
        assert event.max_attendees == 2
        assert event.current_attendees == 2

    def test_edit_missing_event(self, admin_client: TestClient):
        """Test 404 when editing a non-existent event."""
        response = admin_client.get(f"/admin/events/edit/{uuid4()}")
        assert response.status_code == 404

    def test_delete_event(self, admin_client: TestClient, store: InMemoryEventStore, sample_event: Event):
        """Test deleting an event removes its registrations."""
        store.register("someone", sample_event.id)
        response = admin_client.post(f"/admin/events/{sample_event.id}/delete", follow_redirects=False)
        assert response.status_code == 303
        assert store.get_event_by_id(sample_event.id) is None
        assert store.count_registrations() == 0

    def test_create_announcement(self, admin_client: TestClient, store: InMemoryEventStore):
        """Test publishing an announcement shows it on the home page."""
        response = admin_client.post(
            "/admin/announcements/new",
            data={"title": "Library hours", "content": "The library is open until midnight this week."},
            follow_redirects=False,
        )
        assert response.status_code == 303
        [announcement] = store.get_all_announcements()
        assert announcement.author == "Ada Admin"
        assert "Library hours" in admin_client.get("/").text
