"""
api/routes/profile.py -- Self-service profile endpoints.

Routes:
  GET  /api/profile      -- caller's own public record (JSON)
  POST /api/edit/bio     -- replace biography; body field "biography"
  POST /api/edit/works   -- replace featured works; body field "featuredworks"

Auth policy: every route depends on require_api_context. A missing or dead
session raises Unauthorized before the body is read, and api/main.py answers
403 with a plain-text body -- never a redirect and never any user data.

Edit bodies may be form-encoded or JSON, matching the browser forms and the
fetch() calls of the profile page. Acknowledgements are plain text.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from api.models import UserPublic
from auth.dependencies import require_api_context
from auth.models import AuthenticatedContext
from directory.profiles import ProfileService

router = APIRouter()

_EDIT_ACK = "Successfully Edited!"


class _MissingField(Exception):
    pass


async def _read_text_field(request: Request, name: str) -> str:
    """Return body field `name` from a JSON or form-encoded body.

    Raises _MissingField when the body has no such string field.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as exc:
            # Malformed JSON or a body that is not valid UTF-8.
            raise _MissingField(name) from exc
        value = body.get(name) if isinstance(body, dict) else None
    else:
        form = await request.form()
        value = form.get(name)
    if not isinstance(value, str):
        raise _MissingField(name)
    return value


def _missing(name: str) -> PlainTextResponse:
    return PlainTextResponse(f"Missing field: {name}.", status_code=400)


@router.get("/profile", response_model=UserPublic)
def own_profile(request: Request, ctx: AuthenticatedContext = Depends(require_api_context)) -> UserPublic:
    """Return the authenticated caller's own directory record."""
    profiles: ProfileService = request.app.state.profiles
    return UserPublic.from_user(profiles.get_own_profile(ctx))


@router.post("/edit/bio", response_class=PlainTextResponse)
async def edit_biography(request: Request, ctx: AuthenticatedContext = Depends(require_api_context)):
    try:
        text = await _read_text_field(request, "biography")
    except _MissingField:
        return _missing("biography")
    profiles: ProfileService = request.app.state.profiles
    await run_in_threadpool(profiles.update_biography, ctx, text)
    return PlainTextResponse(_EDIT_ACK)


@router.post("/edit/works", response_class=PlainTextResponse)
async def edit_featured_works(request: Request, ctx: AuthenticatedContext = Depends(require_api_context)):
    try:
        text = await _read_text_field(request, "featuredworks")
    except _MissingField:
        return _missing("featuredworks")
    profiles: ProfileService = request.app.state.profiles
    await run_in_threadpool(profiles.update_featured_works, ctx, text)
    return PlainTextResponse(_EDIT_ACK)
