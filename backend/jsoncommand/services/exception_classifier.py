"""Exception Classifier — root-causes a failure and maps it to a wire response.

Invariants:
    - Classification is by the ROOT cause, never the outer wrapper
    - CLIENT_DISCONNECTED carries no Envelope (nobody left to answer)
    - Builtin connection errors (BrokenPipeError, ConnectionResetError, ...) count as a
      disconnect only while reading or writing the client socket; raised by a
      controller they are upstream I/O failures and still get an Envelope
    - AUTH_FAILURE is checked before NETWORK_FAILURE (PermissionError is an OSError)
    - Logging severity follows expectedness: disconnect=INFO, auth/IO=WARNING,
      anything else=ERROR with the root's traceback

Design Decisions:
    - Tagged variant (FailureKind + Classification) over isinstance checks at call
      sites: the dispatcher and the writer branch on kind, nothing else
    - Walks __cause__ first, then implicit __context__ unless suppressed
      ("raise ... from None" is an explicit request to hide the context)
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum

from starlette.requests import ClientDisconnect

from jsoncommand.core.envelope import Envelope
from jsoncommand.core.errors import AccessDeniedError

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "error: Invalid JSON request made."
SESSION_ENDED_MESSAGE = (
    "error: Your session with our website appears to have ended. "
    "Please log out and back in."
)

_SOCKET_CLOSED_TYPES = (BrokenPipeError, ConnectionResetError, ConnectionAbortedError)
_AUTH_TYPES = (AccessDeniedError, PermissionError)
_NETWORK_TYPES = (OSError, json.JSONDecodeError, UnicodeDecodeError)


class FailureKind(str, Enum):
    """What went wrong, as far as the client is concerned."""
    CLIENT_DISCONNECTED = "client_disconnected"
    AUTH_FAILURE = "auth_failure"
    NETWORK_FAILURE = "network_failure"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Classification:
    kind: FailureKind
    root: BaseException
    envelope: Envelope | None

    @property
    def description(self) -> str:
        return describe_exception(self.root)


def root_cause(exc: BaseException) -> BaseException:
    """Return the innermost exception of the cause chain."""
    seen = {id(exc)}
    while True:
        nxt = exc.__cause__
        if nxt is None and not exc.__suppress_context__:
            nxt = exc.__context__
        if nxt is None or id(nxt) in seen:
            return exc
        seen.add(id(nxt))
        exc = nxt


def describe_exception(exc: BaseException) -> str:
    """'<Kind> <message>' — builtins without module prefix."""
    cls = type(exc)
    kind = cls.__qualname__
    if cls.__module__ != "builtins":
        kind = f"{cls.__module__}.{kind}"
    message = str(exc)
    return f"{kind} {message}" if message else kind


def classify_failure(exc: BaseException, client_io: bool = True) -> Classification:
    """Classify by root cause.

    client_io is False while a controller runs: a closed socket there belongs to
    some upstream service, not to the client.
    """
    root = root_cause(exc)
    if isinstance(root, ClientDisconnect) or (
        client_io and isinstance(root, _SOCKET_CLOSED_TYPES)
    ):
        return Classification(FailureKind.CLIENT_DISCONNECTED, root, None)
    if isinstance(root, _AUTH_TYPES):
        return Classification(
            FailureKind.AUTH_FAILURE, root, Envelope.failure(SESSION_ENDED_MESSAGE),
        )
    if isinstance(root, _NETWORK_TYPES):
        return Classification(
            FailureKind.NETWORK_FAILURE, root, Envelope.failure(INVALID_JSON_MESSAGE),
        )
    return Classification(
        FailureKind.UNEXPECTED,
        root,
        Envelope.failure(
            "error: Communications issue between your computer and our "
            f"website ({describe_exception(root)})",
        ),
    )


def log_failure(classification: Classification, phase: str) -> None:
    """Log a classified failure at the severity its kind deserves."""
    extra = {"failure_kind": classification.kind.value, "phase": phase}
    kind = classification.kind
    if kind is FailureKind.CLIENT_DISCONNECTED:
        logger.info(
            "Client aborted connection while processing JSON request.",
            extra=extra,
        )
    elif kind in (FailureKind.AUTH_FAILURE, FailureKind.NETWORK_FAILURE):
        logger.warning(
            f"Exception occurred while {phase}: {classification.description}",
            extra=extra,
        )
    else:
        root = classification.root
        logger.error(
            f"Unexpected exception occurred while {phase}",
            exc_info=(type(root), root, root.__traceback__),
            extra=extra,
        )
