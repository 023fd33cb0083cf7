"""FastAPI dependencies handing the root-owned services to routes."""
from uuid import uuid4

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse

from campusconnect.core.clients import ClientContext, ClientRegistry
from campusconnect.store.base import EventStore


def get_event_store(request: Request) -> EventStore:
    return request.app.state.event_store


def get_registry(request: Request) -> ClientRegistry:
    return request.app.state.registry


async def get_client(request: Request, registry: ClientRegistry = Depends(get_registry)) -> ClientContext:
    """The browser context for this request, created on first visit."""
    client_id = request.session.get("client_id")
    if not client_id:
        client_id = uuid4().hex
        request.session["client_id"] = client_id
    context = registry.get_or_create(client_id, request.session.get("access_token"))
    remember_session(request, context)
    return context


def remember_session(request: Request, context: ClientContext) -> None:
    """Persist the access token in the cookie so the session survives restarts.

    The refresh job may rotate the pair before the cookie is next written;
    the rotated token still resolves to its replacement on resume.
    """
    session = context.session_manager.session
    if session is not None:
        request.session["access_token"] = session.access_token
    else:
        request.session.pop("access_token", None)


def wants_json(request: Request) -> bool:
    """Check if the client prefers JSON response (AJAX request)."""
    accept = request.headers.get("accept", "")
    return "application/json" in accept


def login_required(context: ClientContext, login_url: str = "/login") -> RedirectResponse | None:
    """Redirect anonymous visitors to the login page."""
    if not context.session_manager.is_authenticated:
        return RedirectResponse(login_url, status_code=303)
    return None


def admin_required(context: ClientContext) -> RedirectResponse | None:
    """Redirect anonymous visitors to the admin login and students to the home page."""
    manager = context.session_manager
    if not manager.is_authenticated:
        return RedirectResponse("/admin/login", status_code=303)
    if not manager.is_admin():
        context.toaster.error("Access denied", "Your account does not have admin privileges.")
        return RedirectResponse("/", status_code=303)
    return None
