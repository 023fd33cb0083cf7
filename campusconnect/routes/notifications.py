"""Notification menu routes."""
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from campusconnect.core.clients import ClientContext
from campusconnect.dependencies import get_client, login_required, wants_json
from campusconnect.templating import render

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _payload(context: ClientContext) -> dict:
    center = context.notifications
    return {
        "notifications": [n.model_dump(mode="json") for n in center.notifications],
        "unread_count": center.unread_count,
    }


@router.get("", response_class=HTMLResponse)
async def list_notifications(request: Request, context: ClientContext = Depends(get_client)):
    """
    Display the signed-in user's notifications.

    Returns the list and the unread count as JSON when
    Accept: application/json is present.
    """
    redirect = login_required(context)
    if redirect:
        return redirect

    if wants_json(request):
        return JSONResponse(_payload(context))
    return render(
        request,
        context,
        "notifications.html",
        notifications=context.notifications.notifications,
    )


@router.post("/read-all")
async def mark_all_read(request: Request, context: ClientContext = Depends(get_client)):
    redirect = login_required(context)
    if redirect:
        return redirect

    context.notifications.mark_all_as_read()
    if wants_json(request):
        return JSONResponse(_payload(context))
    return RedirectResponse("/notifications", status_code=303)


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str, request: Request, context: ClientContext = Depends(get_client)
):
    """Mark one notification read. Returns 404 for an unknown id."""
    redirect = login_required(context)
    if redirect:
        return redirect

    if not context.notifications.mark_as_read(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    if wants_json(request):
        return JSONResponse(_payload(context))
    return RedirectResponse("/notifications", status_code=303)
