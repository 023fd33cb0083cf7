"""Authentication routes: login forms, sign-up, OAuth and sign-out."""
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from campusconnect.auth.errors import AuthError
from campusconnect.auth.forms import CredentialsForm, validate_credentials_form
from campusconnect.core.clients import ClientContext
from campusconnect.dependencies import get_client, remember_session
from campusconnect.events.forms import errors_by_field
from campusconnect.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _landing_page(context: ClientContext) -> str:
    return "/admin" if context.session_manager.is_admin() else "/"


def _oauth_providers(context: ClientContext) -> list[str]:
    return sorted(context.session_manager.client.oauth_providers)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, context: ClientContext = Depends(get_client)):
    """Display the student login and sign-up forms."""
    if context.session_manager.is_authenticated:
        return RedirectResponse(_landing_page(context), status_code=303)
    return render(
        request, context, "login.html", errors={}, email="", providers=_oauth_providers(context)
    )


@router.post("/login")
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    context: ClientContext = Depends(get_client),
):
    """
    Sign in with email and password.

    Invalid input is rejected before the identity provider is contacted.
    Rejected credentials re-render the form with the provider's reason;
    success redirects administrators to /admin and students to /.
    """
    form = CredentialsForm(email=email, password=password)
    errors = validate_credentials_form(form)
    if errors:
        return render(
            request, context, "login.html", status_code=400,
            errors=errors_by_field(errors), email=email, providers=_oauth_providers(context),
        )

    try:
        context.session_manager.sign_in_with_password(form.email.strip(), form.password)
    except AuthError:
        return render(
            request, context, "login.html", status_code=401,
            errors={}, email=email, providers=_oauth_providers(context),
        )

    remember_session(request, context)
    context.toaster.push("Login successful", f"Welcome back, {context.session_manager.display_name}.")
    return RedirectResponse(_landing_page(context), status_code=303)


@router.post("/signup")
async def signup(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    context: ClientContext = Depends(get_client),
):
    """
    Create a student account.

    Success does not sign the user in: a confirmation link must be
    followed first, so the browser is sent back to the login page.
    """
    form = CredentialsForm(email=email, password=password)
    errors = validate_credentials_form(form)
    if errors:
        return render(
            request, context, "login.html", status_code=400,
            errors=errors_by_field(errors), email=email, signup=True,
            providers=_oauth_providers(context),
        )

    try:
        context.session_manager.sign_up(form.email.strip(), form.password)
    except AuthError:
        return render(
            request, context, "login.html", status_code=400,
            errors={}, email=email, signup=True, providers=_oauth_providers(context),
        )
    return RedirectResponse("/login", status_code=303)


@router.get("/admin/login", response_class=HTMLResponse)
async def admin_login_page(request: Request, context: ClientContext = Depends(get_client)):
    """Display the administrator login form."""
    if context.session_manager.is_admin():
        return RedirectResponse("/admin", status_code=303)
    return render(request, context, "admin_login.html", errors={}, email="", login_error=None)


@router.post("/admin/login")
async def admin_login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    context: ClientContext = Depends(get_client),
):
    """
    Sign in through the administrator form.

    Accounts without the admin role are signed in but refused access to
    the admin pages, with an explanation on the form.
    """
    form = CredentialsForm(email=email, password=password)
    errors = validate_credentials_form(form)
    if errors:
        return render(
            request, context, "admin_login.html", status_code=400,
            errors=errors_by_field(errors), email=email, login_error=None,
        )

    manager = context.session_manager
    try:
        manager.sign_in_with_password(form.email.strip(), form.password)
    except AuthError as e:
        return render(
            request, context, "admin_login.html", status_code=401,
            errors={}, email=email, login_error=e.message,
        )

    remember_session(request, context)
    if not manager.is_admin():
        message = "Access denied. Your account does not have admin privileges."
        context.toaster.error("Access denied", "Your account does not have admin privileges.")
        return render(
            request, context, "admin_login.html", status_code=403,
            errors={}, email=email, login_error=message,
        )
    return RedirectResponse("/admin", status_code=303)


@router.post("/logout")
async def logout(request: Request, context: ClientContext = Depends(get_client)):
    """Sign out; the local session is cleared even if the provider call fails."""
    try:
        context.session_manager.logout()
        context.toaster.push("Signed out", "You have been signed out.")
    except AuthError:
        pass  # Reported to the user by the session manager
    remember_session(request, context)
    return RedirectResponse("/", status_code=303)


@router.get("/auth/oauth/{provider}")
async def oauth_sign_in(
    provider: str, request: Request, context: ClientContext = Depends(get_client)
):
    """Send the browser to the OAuth provider's consent page."""
    try:
        url = context.session_manager.sign_in_with_oauth(provider)
    except AuthError:
        return RedirectResponse("/login", status_code=303)
    return RedirectResponse(url, status_code=303)


@router.get("/auth/callback")
async def oauth_callback(
    request: Request,
    state: str = "",
    code: str = "",
    error: str = "",
    context: ClientContext = Depends(get_client),
):
    """
    Complete an OAuth sign-in.

    The provider redirects here with ``state`` and ``code``; the session
    is established through the identity client's auth state subscription.
    """
    manager = context.session_manager
    if error or not state or not code:
        logger.warning(f"OAuth callback without code: {error or 'missing parameters'}")
        context.toaster.error("Sign in failed", "The sign-in request was cancelled or incomplete.")
        return RedirectResponse("/login", status_code=303)

    try:
        manager.complete_oauth(state, code)
    except AuthError:
        return RedirectResponse("/login", status_code=303)

    remember_session(request, context)
    context.toaster.push("Login successful", f"Welcome, {manager.display_name}.")
    return RedirectResponse(_landing_page(context), status_code=303)


@router.get("/auth/confirm")
async def confirm_email(token: str = "", context: ClientContext = Depends(get_client)):
    """Confirm an email address from the link logged at sign-up."""
    try:
        context.session_manager.confirm_email(token)
    except AuthError:
        pass  # Reported to the user by the session manager
    return RedirectResponse("/login", status_code=303)


@router.get("/auth/status")
async def auth_status(context: ClientContext = Depends(get_client)):
    """
    Report the browser's authentication state.

    Returns JSON with the session status, the signed-in user, whether the
    profile has been loaded yet and whether the user is an administrator.
    """
    manager = context.session_manager
    return {
        "status": manager.status.value,
        "authenticated": manager.is_authenticated,
        "user_id": manager.user.id if manager.user else None,
        "email": manager.user.email if manager.user else None,
        "role": manager.role.value,
        "is_admin": manager.is_admin(),
        "profile_pending": manager.profile_pending,
        "providers": _oauth_providers(context),
    }
