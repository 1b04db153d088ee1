"""Command App — raw ASGI endpoint that feeds GET/POST exchanges to the dispatcher.

Invariants:
    - GET and POST go to the dispatcher; every other method gets 405 with Allow
    - Websocket scopes are closed immediately (commands are plain HTTP)
    - One AsgiTransport per request; the dispatcher owns its lifecycle from there

Design Decisions:
    - Raw ASGI app mounted under the prefix instead of a FastAPI route: the
      transport writes with send() directly, so controllers that stream their own
      response and the "already committed" check see the real wire state
"""

import logging

from starlette.responses import PlainTextResponse
from starlette.types import Receive, Scope, Send
from starlette.websockets import WebSocketClose

from jsoncommand.infrastructure.asgi_transport import AsgiTransport
from jsoncommand.services.request_dispatcher import RequestDispatcher

logger = logging.getLogger(__name__)


class JsonCommandApp:
    """ASGI app: /<controller>/<method> below its mount point."""

    def __init__(self, dispatcher: RequestDispatcher):
        self.dispatcher = dispatcher

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket":
            await WebSocketClose()(scope, receive, send)
            return
        if scope["type"] != "http":
            return

        method = scope["method"]
        transport = AsgiTransport(scope, receive, send)
        if method == "GET":
            await self.dispatcher.handle_get(transport)
        elif method == "POST":
            await self.dispatcher.handle_post(transport)
        else:
            response = PlainTextResponse(
                "Method Not Allowed", status_code=405,
                headers={"Allow": "GET, POST"},
            )
            await response(scope, receive, send)
