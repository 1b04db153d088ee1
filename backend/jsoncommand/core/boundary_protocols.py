"""Boundary Protocols — contracts between the dispatch core and its collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Transport IO and controller lookup accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Transport.write always answers HTTP 200 — errors travel inside the Envelope
"""

from typing import Mapping, Protocol


class Transport(Protocol):
    """One inbound HTTP exchange, as seen by the dispatcher."""
    method: str
    path: str

    @property
    def content_length(self) -> int | None: ...
    def header(self, name: str) -> str | None: ...
    def query_param(self, name: str) -> str | None: ...
    async def read_body(self) -> bytes: ...
    def is_committed(self) -> bool: ...
    async def write(self, body: bytes, headers: Mapping[str, str]) -> None: ...


class ControllerProvider(Protocol):
    """A registry that may know a controller by name.

    try_resolve returns None for a soft miss; the resolver moves on to the
    next provider in the chain.
    """
    name: str

    def try_resolve(self, controller_name: str) -> object | None: ...
