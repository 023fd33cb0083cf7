"""Jinja2 environment and the shared page context (navigation, toasts)."""
from datetime import datetime
from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from campusconnect.core.clients import ClientContext
from campusconnect.core.config import settings
from campusconnect.events.query import SortKey
from campusconnect.models import EventCategory

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def _format_datetime(value: datetime | None, fmt: str = "%b %d, %Y %H:%M") -> str:
    return value.strftime(fmt) if value else ""


def _category_label(value) -> str:
    return EventCategory(value).label


templates.env.filters["datetime"] = _format_datetime
templates.env.filters["category_label"] = _category_label


def render(
    request: Request,
    context: ClientContext | None,
    name: str,
    status_code: int = 200,
    **values,
):
    """Render ``name`` with the layout values every page needs."""
    page = {
        "app_name": settings.app_name,
        "categories": list(EventCategory),
        "sort_keys": list(SortKey),
        "user": None,
        "display_name": None,
        "is_admin": False,
        "unread_count": 0,
        "toasts": [],
    }
    if context is not None:
        manager = context.session_manager
        page.update(
            user=manager.user,
            display_name=manager.display_name,
            is_admin=manager.is_admin(),
            unread_count=context.notifications.unread_count,
            toasts=context.toaster.drain(),
        )
    page.update(values)
    return templates.TemplateResponse(request, name, page, status_code=status_code)
