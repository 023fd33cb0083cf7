"""Event routes for browsing events and registering for them."""
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from campusconnect.core.clients import ClientContext
from campusconnect.dependencies import get_client, get_event_store, login_required, wants_json
from campusconnect.events.query import SortKey, query_events
from campusconnect.models import EventCategory
from campusconnect.store.base import EventStore, RegistrationError
from campusconnect.templating import render

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_class=HTMLResponse)
async def list_events(
    request: Request,
    q: str = "",
    category: list[EventCategory] = Query(default=[]),
    sort: SortKey = SortKey.DATE_ASC,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    Display all events matching the search, category and sort controls.

    The search is applied first, then the category filter, then the sort.
    Returns the matching events as JSON when Accept: application/json is
    present.
    """
    events = query_events(store.get_all_events(), q, category, sort)

    if wants_json(request):
        return JSONResponse({
            "events": [event.model_dump(mode="json") for event in events],
            "total": len(events),
            "query": q,
            "categories": [c.value for c in category],
            "sort": sort.value,
        })

    return render(
        request,
        context,
        "events.html",
        events=events,
        query=q,
        selected_categories=[c.value for c in category],
        sort=sort.value,
    )


@router.get("/{event_id}", response_class=HTMLResponse)
async def event_detail(
    event_id: UUID,
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    Display single event detail.

    Shows the full description, capacity and, for signed-in students,
    whether they are registered. Returns 404 if the event does not exist.
    """
    event = store.get_event_by_id(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    manager = context.session_manager
    is_registered = bool(manager.user) and store.is_registered(manager.user.id, event_id)
    return render(
        request,
        context,
        "event_detail.html",
        event=event,
        is_registered=is_registered,
        now=datetime.now(UTC),
    )


@router.post("/{event_id}/register")
async def register_for_event(
    event_id: UUID,
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    Register the signed-in student for an event.

    Anonymous visitors are sent to the login page. Administrators cannot
    register. Full events, closed registrations and duplicate registrations
    are refused with an error message.
    """
    redirect = login_required(context)
    if redirect:
        return redirect

    event = store.get_event_by_id(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    manager = context.session_manager
    error = None
    if manager.is_admin():
        error = "Administrators cannot register for events."
        context.toaster.error("Registration failed", error)
    else:
        try:
            store.register(manager.user.id, event_id, datetime.now(UTC))
            context.toaster.push("Registration successful", f"You are registered for {event.title}.")
        except RegistrationError as e:
            error = e.message
            context.toaster.error("Registration failed", e.message)

    if wants_json(request):
        if error:
            return JSONResponse({"success": False, "error": error}, status_code=400)
        return JSONResponse({"success": True, "event_id": str(event_id)})

    return RedirectResponse(f"/events/{event_id}", status_code=303)


@router.post("/{event_id}/cancel")
async def cancel_registration(
    event_id: UUID,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """Cancel the signed-in student's registration for an event."""
    redirect = login_required(context)
    if redirect:
        return redirect

    if store.cancel_registration(context.session_manager.user.id, event_id):
        context.toaster.push("Registration cancelled", "Your place has been released.")
    else:
        context.toaster.error("Nothing to cancel", "You were not registered for this event.")
    return RedirectResponse("/my-registrations", status_code=303)
