"""Home, about, dashboard and registration pages."""
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from campusconnect.core.clients import ClientContext
from campusconnect.dependencies import get_client, get_event_store, login_required
from campusconnect.store.base import EventStore
from campusconnect.templating import render

router = APIRouter(tags=["pages"])


def registered_events(store: EventStore, user_id: str) -> list[dict]:
    """The user's registrations joined with their events.

    Registrations whose event no longer exists are skipped.
    """
    joined = []
    for registration in store.get_registrations_for_user(user_id):
        event = store.get_event_by_id(registration.event_id)
        if event is None:
            continue
        joined.append({
            "registration_id": registration.id,
            "registration_date": registration.registration_date,
            "event": event,
        })
    return joined


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    Display the home page.

    Shows featured events, the next three upcoming events and the
    announcements, newest first.
    """
    return render(
        request,
        context,
        "index.html",
        featured_events=store.get_featured_events(),
        upcoming_events=store.get_upcoming_events(datetime.now(UTC))[:3],
        announcements=store.get_all_announcements(),
    )


@router.get("/about", response_class=HTMLResponse)
async def about(request: Request, context: ClientContext = Depends(get_client)):
    return render(request, context, "about.html")


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    Display the student dashboard.

    Shows a card for every event the student is registered for, past ones
    included, under "Your Events". "Coming Up on Campus" lists the next three
    upcoming events on campus whether or not the student registered for them.
    """
    redirect = login_required(context)
    if redirect:
        return redirect

    registrations = registered_events(store, context.session_manager.user.id)
    return render(
        request,
        context,
        "dashboard.html",
        registered=[item["event"] for item in registrations],
        upcoming_events=store.get_upcoming_events(datetime.now(UTC))[:3],
    )


@router.get("/my-registrations", response_class=HTMLResponse)
async def my_registrations(
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    Display the signed-in user's registrations split into upcoming and past.

    An event counts as upcoming until its start time has passed.
    """
    redirect = login_required(context)
    if redirect:
        return redirect

    now = datetime.now(UTC)
    registrations = registered_events(store, context.session_manager.user.id)
    return render(
        request,
        context,
        "my_registrations.html",
        upcoming=[item for item in registrations if item["event"].date >= now],
        past=[item for item in registrations if item["event"].date < now],
    )
