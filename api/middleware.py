"""
api/middleware.py -- Request body ceiling.

BodySizeLimitMiddleware answers 413 for any request body larger than
Settings.max_body_bytes:

  Content-Length present   -- rejected from the header alone, body never read.
  No Content-Length        -- (chunked transfer) the body is buffered up to
                              the ceiling before the app runs, then replayed
                              to it. One byte over and the app is never called.

Written as a plain ASGI middleware rather than @app.middleware("http")
because it has to wrap `receive`, which BaseHTTPMiddleware does not expose.
The limit is read from the settings object on every request.
"""

from __future__ import annotations

from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.config import Settings


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, settings: Settings) -> None:
        self.app = app
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.settings.max_body_bytes
        length = Headers(scope=scope).get("content-length")
        if length is not None:
            if length.isdigit() and int(length) > limit:
                await _too_large(scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        messages: list[Message] = []
        received = 0
        while True:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > limit:
                await _too_large(scope, receive, send)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if messages:
                return messages.pop(0)
            return await receive()

        await self.app(scope, replay, send)


async def _too_large(scope: Scope, receive: Receive, send: Send) -> None:
    response = PlainTextResponse("Request body too large.", status_code=413)
    await response(scope, receive, send)
