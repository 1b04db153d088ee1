"""ASGI Transport — the Transport protocol over a raw ASGI http scope.

Invariants:
    - path is the route path below the mount point (root_path stripped)
    - The response is committed the moment http.response.start is attempted,
      even if sending then fails — there is no second chance on the wire
    - write() answers HTTP 200 only; a second write raises ResponseCommittedError

Design Decisions:
    - starlette.requests.Request for header/query/body parsing: same parsing
      as every FastAPI route (ClientDisconnect on a vanished client included)
    - Raw send() for the response: committed state is the real wire state,
      which a returned Response object could not expose to controllers
"""

from typing import Mapping

from starlette.requests import Request
from starlette.types import Receive, Scope, Send

from jsoncommand.core.errors import ResponseCommittedError


def route_path(scope: Scope) -> str:
    path = scope.get("path", "")
    root_path = scope.get("root_path", "")
    if root_path and path.startswith(root_path + "/"):
        return path[len(root_path):]
    return path


class AsgiTransport:
    """One HTTP exchange seen through ASGI."""

    def __init__(self, scope: Scope, receive: Receive, send: Send):
        self._request = Request(scope, receive)
        self._send = send
        self._committed = False
        self.method = scope.get("method", "GET")
        self.path = route_path(scope)

    @property
    def content_length(self) -> int | None:
        raw = self._request.headers.get("content-length")
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    def header(self, name: str) -> str | None:
        return self._request.headers.get(name)

    def query_param(self, name: str) -> str | None:
        return self._request.query_params.get(name)

    async def read_body(self) -> bytes:
        return await self._request.body()

    def is_committed(self) -> bool:
        return self._committed

    async def write(self, body: bytes, headers: Mapping[str, str]) -> None:
        if self._committed:
            raise ResponseCommittedError()
        self._committed = True
        raw_headers = [
            (key.lower().encode("latin-1"), value.encode("latin-1"))
            for key, value in headers.items()
            if key.lower() != "content-length"
        ]
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))
        await self._send({
            "type": "http.response.start",
            "status": 200,
            "headers": raw_headers,
        })
        await self._send({"type": "http.response.body", "body": body})
