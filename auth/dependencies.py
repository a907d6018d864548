"""
auth/dependencies.py -- The auth gate: turn a request into an identity.

One lookup path: signed session cookie -> raw token -> session row -> live
User. The result is wrapped in an AuthenticatedContext and handed to the
handler explicitly; nothing is stashed on the request object.

try_get_context() is the soft variant (returns None on failure). Page routes
call it and redirect to /login themselves.
require_api_context() is the FastAPI dependency for JSON/data endpoints and
raises Unauthorized, which api/main.py turns into a 403 plain-text response.
Interactive and programmatic callers fail differently on purpose.

Layer rule: no imports from web/ or directory/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import AuthenticatedContext
from auth.sessions import SessionManager
from auth.tokens import read_session_cookie
from core.errors import Unauthorized


def try_get_context(request: Request) -> AuthenticatedContext | None:
    """Resolve the request's session cookie. Never raises for a bad cookie."""
    token = read_session_cookie(request)
    if token is None:
        return None
    sessions: SessionManager = request.app.state.sessions
    user = sessions.resolve_session(token)
    if user is None:
        return None
    return AuthenticatedContext(user=user, session_token=token)


def require_api_context(request: Request) -> AuthenticatedContext:
    """Require a session on a data API route. Raises Unauthorized (-> 403).

    Use as a FastAPI dependency:
        @router.get("/api/protected")
        def route(ctx: AuthenticatedContext = Depends(require_api_context)): ...
    """
    ctx = try_get_context(request)
    if ctx is None:
        raise Unauthorized()
    return ctx
