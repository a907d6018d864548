"""
web/routes.py -- Jinja2 template routes for the UniDirectory web UI.

These routes serve server-rendered HTML. They share app.state with the API
routes (same stores and services) but answer with pages and redirects.

Auth policy: every page except /login and /register needs a session. A
missing session is answered with 302 -> /login, never with an error status;
that is the difference from the JSON API, which answers 403.

Routes:
  GET  /                    -- home (auth required)
  GET  /home                -- 302 -> / (auth required)
  GET  /about               -- static about page (auth required)
  GET  /profile             -- own profile with edit controls (auth required)
  GET  /profile/{username}  -- another member's profile; 302 -> / if unknown
  GET  /register            -- registration form
  POST /register            -- create account, 302 -> /login
  GET  /login               -- login form
  POST /login               -- verify credentials, start session, 302 -> next or /
  GET  /signout             -- end session, clear cookie, 302 -> /login
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from auth.credentials import CredentialStore
from auth.dependencies import try_get_context
from auth.models import AuthenticatedContext
from auth.sessions import SessionManager
from auth.tokens import clear_session_cookie, set_session_cookie
from core.config import get_settings
from core.errors import AuthenticationFailure, DuplicateUsernameError, NotFound
from core.limiter import limiter
from directory.profiles import ProfileService
from web.forms import RegistrationForm, describe_errors

logger = logging.getLogger("unidirectory.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------

# Whitelist mapping for ?error= query params on /login.
# The raw query param is NEVER passed to templates -- only the message from
# this dict is. Prevents reflected XSS via crafted error query strings.
_ERROR_MESSAGES: dict[str, str] = {
    "bad_credentials": "Invalid username or password.",
}

_NOTICES: dict[str, str] = {
    "registered": "Account created. Please sign in.",
}


def _safe_next(next_url: Optional[str]) -> str:
    """Validate a post-login redirect target. Only accept relative paths.

    Rejects absolute URLs and protocol-relative ("//host") URLs, both of which
    would send the browser off-site after login.
    """
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return "/"


def _require_auth(request: Request) -> tuple[Optional[AuthenticatedContext], Optional[RedirectResponse]]:
    """Return (ctx, None) for a signed-in request, else (None, redirect to /login).

    Call at the top of protected route handlers:
        ctx, redirect = _require_auth(request)
        if redirect:
            return redirect
    """
    ctx = try_get_context(request)
    if ctx is None:
        return None, RedirectResponse("/login", status_code=302)
    return ctx, None


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    ctx, redirect = _require_auth(request)
    if redirect:
        return redirect
    return templates.TemplateResponse(request, "home.html", {"current_user": ctx.user})


@router.get("/home")
def home_alias(request: Request) -> RedirectResponse:
    _ctx, redirect = _require_auth(request)
    if redirect:
        return redirect
    return RedirectResponse("/", status_code=302)


@router.get("/about", response_class=HTMLResponse)
def about(request: Request) -> HTMLResponse:
    ctx, redirect = _require_auth(request)
    if redirect:
        return redirect
    return templates.TemplateResponse(request, "about.html", {"current_user": ctx.user})


@router.get("/profile", response_class=HTMLResponse)
def own_profile(request: Request) -> HTMLResponse:
    """Render the caller's profile with the biography / featured works editors."""
    ctx, redirect = _require_auth(request)
    if redirect:
        return redirect
    profiles: ProfileService = request.app.state.profiles
    user = profiles.get_own_profile(ctx)
    return templates.TemplateResponse(request, "userprofile.html", {"current_user": ctx.user, "user": user})


@router.get("/profile/{username}", response_class=HTMLResponse)
def member_profile(request: Request, username: str) -> HTMLResponse:
    """Render another member's read-only profile. Unknown usernames go home."""
    ctx, redirect = _require_auth(request)
    if redirect:
        return redirect
    profiles: ProfileService = request.app.state.profiles
    try:
        user = profiles.get_public_profile(username)
    except NotFound:
        return RedirectResponse("/", status_code=302)
    return templates.TemplateResponse(request, "profile.html", {"current_user": ctx.user, "user": user})


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@router.get("/register", response_class=HTMLResponse)
def register_form(request: Request) -> HTMLResponse:
    if try_get_context(request) is not None:
        return RedirectResponse("/", status_code=302)
    return templates.TemplateResponse(request, "register.html", {"errors": []})


@router.post("/register", response_class=HTMLResponse)
async def register_post(request: Request) -> HTMLResponse:
    """Validate the form, create the account, and send the browser to /login."""
    form = await request.form()
    try:
        data = RegistrationForm.model_validate({k: v for k, v in form.items() if isinstance(v, str)})
    except ValidationError as exc:
        return templates.TemplateResponse(
            request,
            "register.html",
            {"errors": describe_errors(exc)},
            status_code=400,
        )

    credentials: CredentialStore = request.app.state.credentials
    try:
        # bcrypt and the insert are blocking; keep them off the event loop.
        await run_in_threadpool(credentials.register, data.to_profile_fields(), data.password)
    except DuplicateUsernameError:
        return templates.TemplateResponse(
            request,
            "register.html",
            {"errors": ["That username is already taken."]},
            status_code=409,
        )
    return RedirectResponse("/login?notice=registered", status_code=302)


# ---------------------------------------------------------------------------
# Login / sign-out
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    """Render the login page."""
    # Redirect already-authenticated users to /
    if try_get_context(request) is not None:
        return RedirectResponse("/", status_code=302)

    # Map ?error= / ?notice= query params through whitelists
    error_msg = _ERROR_MESSAGES.get(request.query_params.get("error", ""))
    notice_msg = _NOTICES.get(request.query_params.get("notice", ""))
    return templates.TemplateResponse(
        request,
        "login.html",
        {
            "error_msg": error_msg,
            "notice_msg": notice_msg,
            "next": _safe_next(request.query_params.get("next")),
        },
    )


@router.post("/login", response_class=HTMLResponse)
@limiter.limit(lambda: get_settings().login_rate_limit)
def login_post(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
) -> RedirectResponse:
    """Handle username/password login form submission.

    Unknown user and wrong password take the same path to the same redirect.
    """
    credentials: CredentialStore = request.app.state.credentials
    sessions: SessionManager = request.app.state.sessions
    try:
        user = credentials.verify_credentials(username, password)
    except AuthenticationFailure:
        logger.info("Failed login for %r", username.strip().lower()[:64])
        return RedirectResponse("/login?error=bad_credentials", status_code=302)

    token = sessions.start_session(user)
    next_url = _safe_next(request.query_params.get("next"))
    resp = RedirectResponse(next_url, status_code=302)
    set_session_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/signout")
def signout(request: Request) -> RedirectResponse:
    """End the current session and clear the cookie."""
    resp = RedirectResponse("/login", status_code=302)
    ctx = try_get_context(request)
    if ctx is None:
        return resp
    sessions: SessionManager = request.app.state.sessions
    sessions.end_session(ctx.session_token)
    clear_session_cookie(resp)
    logger.info("Signed out %s", ctx.username)
    return resp
