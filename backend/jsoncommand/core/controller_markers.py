"""Controller Markers — decorators controllers use to shape what is callable remotely.

Invariants:
    - Markers only set attributes on the function; they never wrap it
    - @internal methods are never invocable over HTTP, whatever their name

Design Decisions:
    - Attribute flags over a registry: the marker travels with the function,
      so both the static table and entry-point plugins honor it
"""

from typing import Callable, TypeVar

F = TypeVar("F", bound=Callable)

INTERNAL_ATTR = "__jsoncommand_internal__"
USES_CONTEXT_ATTR = "__jsoncommand_uses_context__"


def internal(func: F) -> F:
    """Hide a public method from remote callers."""
    setattr(func, INTERNAL_ATTR, True)
    return func


def uses_context(func: F) -> F:
    """Pass the RequestContext as the first argument after self."""
    setattr(func, USES_CONTEXT_ATTR, True)
    return func


def is_internal(func: object) -> bool:
    return bool(getattr(func, INTERNAL_ATTR, False))


def wants_context(func: object) -> bool:
    return bool(getattr(func, USES_CONTEXT_ATTR, False))
