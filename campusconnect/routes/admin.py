"""Administrator routes: dashboard, event management and announcements."""
import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import BaseModel

from campusconnect.core.clients import ClientContext
from campusconnect.dependencies import admin_required, get_client, get_event_store, wants_json
from campusconnect.events.forms import (
    AnnouncementForm,
    EventForm,
    errors_by_field,
    to_announcement_data,
    to_event_data,
    validate_announcement_form,
    validate_event_form,
)
from campusconnect.events.query import ADMIN_SEARCH_FIELDS, SortKey, search_events, sort_events
from campusconnect.store.base import CapacityError, EventStore
from campusconnect.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


async def read_form(request: Request, model: type[BaseModel]) -> BaseModel:
    """Build ``model`` from the submitted form; absent checkboxes stay at their default."""
    data = await request.form()
    values = {name: data[name] for name in model.model_fields if name in data}
    return model.model_validate(values)


@router.get("", response_class=HTMLResponse)
async def admin_dashboard(
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    Display the admin dashboard.

    Shows total events, upcoming events, registrations and announcements,
    followed by the next five events.
    """
    redirect = admin_required(context)
    if redirect:
        return redirect

    upcoming = store.get_upcoming_events(datetime.now(UTC))
    stats = {
        "total_events": len(store.get_all_events()),
        "upcoming_events": len(upcoming),
        "registrations": store.count_registrations(),
        "announcements": len(store.get_all_announcements()),
    }
    if wants_json(request):
        return JSONResponse(stats)
    return render(
        request, context, "admin/dashboard.html", stats=stats, next_events=upcoming[:5]
    )


@router.get("/events", response_class=HTMLResponse)
async def admin_events(
    request: Request,
    q: str = "",
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    List every event for management, soonest first.

    The search box matches title, organizer, location and category.
    """
    redirect = admin_required(context)
    if redirect:
        return redirect

    events = sort_events(search_events(store.get_all_events(), q, ADMIN_SEARCH_FIELDS), SortKey.DATE_ASC)
    return render(request, context, "admin/events.html", events=events, query=q)


@router.get("/events/new", response_class=HTMLResponse)
async def new_event_form(request: Request, context: ClientContext = Depends(get_client)):
    redirect = admin_required(context)
    if redirect:
        return redirect
    return render(
        request, context, "admin/event_form.html", form=EventForm(), errors={}, event=None
    )


@router.post("/events/new")
async def create_event(
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """
    Create an event from the submitted form.

    Invalid input re-renders the form with an error under each offending
    field and nothing is stored.
    """
    redirect = admin_required(context)
    if redirect:
        return redirect

    form = await read_form(request, EventForm)
    errors = validate_event_form(form)
    if errors:
        return render(
            request, context, "admin/event_form.html", status_code=400,
            form=form, errors=errors_by_field(errors), event=None,
        )

    event = store.add_event(to_event_data(form))
    logger.info(f"Admin {context.session_manager.user.id} created event {event.id}")
    context.toaster.push("Event created", f"{event.title} has been published.")
    return RedirectResponse("/admin/events", status_code=303)


@router.get("/events/edit/{event_id}", response_class=HTMLResponse)
async def edit_event_form(
    event_id: UUID,
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    redirect = admin_required(context)
    if redirect:
        return redirect

    event = store.get_event_by_id(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return render(
        request, context, "admin/event_form.html",
        form=EventForm.from_event(event), errors={}, event=event,
    )


@router.post("/events/edit/{event_id}")
async def update_event(
    event_id: UUID,
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """Apply the edit form to an existing event. Returns 404 if it is gone."""
    redirect = admin_required(context)
    if redirect:
        return redirect

    event = store.get_event_by_id(event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    form = await read_form(request, EventForm)
    errors = validate_event_form(form)
    if errors:
        return render(
            request, context, "admin/event_form.html", status_code=400,
            form=form, errors=errors_by_field(errors), event=event,
        )

    try:
        updated = store.update_event(event_id, to_event_data(form))
    except CapacityError as e:
        return render(
            request, context, "admin/event_form.html", status_code=400,
            form=form, errors={"max_attendees": [e.message]}, event=event,
        )
    if updated is None:
        raise HTTPException(status_code=404, detail="Event not found")
    context.toaster.push("Event updated", f"{updated.title} has been saved.")
    return RedirectResponse("/admin/events", status_code=303)


@router.post("/events/{event_id}/delete")
async def delete_event(
    event_id: UUID,
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """Delete an event together with its registrations."""
    redirect = admin_required(context)
    if redirect:
        return redirect

    if not store.delete_event(event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    logger.info(f"Admin {context.session_manager.user.id} deleted event {event_id}")

    if wants_json(request):
        return JSONResponse({"success": True, "event_id": str(event_id)})
    context.toaster.push("Event deleted", "The event and its registrations were removed.")
    return RedirectResponse("/admin/events", status_code=303)


@router.get("/announcements/new", response_class=HTMLResponse)
async def new_announcement_form(request: Request, context: ClientContext = Depends(get_client)):
    redirect = admin_required(context)
    if redirect:
        return redirect
    return render(
        request, context, "admin/announcement_form.html", form=AnnouncementForm(), errors={}
    )


@router.post("/announcements/new")
async def create_announcement(
    request: Request,
    store: EventStore = Depends(get_event_store),
    context: ClientContext = Depends(get_client),
):
    """Publish an announcement on the home page, signed by the admin's name."""
    redirect = admin_required(context)
    if redirect:
        return redirect

    form = await read_form(request, AnnouncementForm)
    errors = validate_announcement_form(form)
    if errors:
        return render(
            request, context, "admin/announcement_form.html", status_code=400,
            form=form, errors=errors_by_field(errors),
        )

    store.add_announcement(to_announcement_data(form, context.session_manager.display_name))
    context.toaster.push("Announcement published", form.title.strip())
    return RedirectResponse("/admin", status_code=303)
