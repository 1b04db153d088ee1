"""Request Context — per-call scratch state, passed explicitly down the dispatch path.

Invariants:
    - Exactly one RequestContext per inbound call; never shared between calls
    - status starts True; only fail() flips it (and sets fail_message with it)
    - clear() runs on every exit path from dispatch and drops the transport reference

Design Decisions:
    - Explicit context-passing over thread-locals/contextvars: pooled workers can
      never see a stale context, and tests build one with a plain constructor
    - Dataclass with a state field: the dispatch lifecycle is observable without mocks
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from jsoncommand.core.boundary_protocols import Transport


class DispatchState(str, Enum):
    """Lifecycle of one request through the dispatcher."""
    STARTED = "started"
    RESOLVING = "resolving"
    INVOKING = "invoking"
    RESPONDING = "responding"
    DONE = "done"


@dataclass
class RequestContext:
    """Per-request state. Controllers marked @uses_context receive it."""

    transport: Transport | None = None

    # Raw JSON argument text as received (query param or POST body)
    payload: str = ""

    # Forced to False by fail(); overrides the Envelope status on the wire
    status: bool = True
    fail_message: Any = None

    controller_name: str | None = None
    method_name: str | None = None
    state: DispatchState = DispatchState.STARTED

    def fail(self, message: Any) -> None:
        """Force the response to status=false with the given message as data."""
        self.status = False
        self.fail_message = message

    def advance(self, state: DispatchState) -> None:
        self.state = state

    def clear(self) -> None:
        """Tear down per-request state. Safe to call more than once."""
        self.transport = None
        self.payload = ""
        self.status = True
        self.fail_message = None
        self.state = DispatchState.DONE
