"""Controller Invocation — decode arguments, find the method, call it, wrap the result.

Invariants:
    - Arguments must be a JSON array; a decode error propagates (classified as invalid JSON)
    - Only public (no leading underscore), non-@internal callables are reachable
    - Lookup matches name AND argument count; @uses_context methods get ctx first,
      which does not count toward the arity
    - Coroutine methods are awaited; sync methods run in the threadpool
    - A returned Envelope passes through untouched; anything else becomes Envelope.success

Design Decisions:
    - inspect.signature().bind() for the arity check: honors defaults, *args and
      keyword-only parameters exactly as a real call would
    - run_in_threadpool (starlette) keeps blocking controllers off the event loop
"""

import inspect
import json
import logging
from typing import Any, Callable

from starlette.concurrency import run_in_threadpool

from jsoncommand.core.controller_markers import is_internal, wants_context
from jsoncommand.core.envelope import Envelope
from jsoncommand.core.request_context import RequestContext
from jsoncommand.services.handler_resolver import HandlerBinding

logger = logging.getLogger(__name__)


def decode_arguments(payload: str) -> list | Envelope:
    """Parse the JSON argument array. Raises json.JSONDecodeError on bad JSON."""
    args = json.loads(payload)
    if not isinstance(args, list):
        return Envelope.failure("error: Arguments must be a JSON array.")
    return args


def find_method(
    handler: object, method_name: str, args: list, ctx: RequestContext,
) -> tuple[Callable, tuple] | None:
    """Return (bound method, call args) when a callable accepts these args."""
    if method_name.startswith("_"):
        return None
    method = getattr(handler, method_name, None)
    if method is None or not callable(method) or is_internal(method):
        return None
    call_args = (ctx, *args) if wants_context(method) else tuple(args)
    try:
        inspect.signature(method).bind(*call_args)
    except TypeError:
        return None
    except ValueError:
        # No introspectable signature (some builtins); the call itself decides
        pass
    return method, call_args


async def call_method(method: Callable, call_args: tuple) -> Any:
    if inspect.iscoroutinefunction(method):
        return await method(*call_args)
    result = await run_in_threadpool(method, *call_args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def invoke_method(
    binding: HandlerBinding, payload: str, ctx: RequestContext,
) -> Envelope:
    """Invoke binding.method_name with the decoded payload. Exceptions propagate."""
    args = decode_arguments(payload)
    if isinstance(args, Envelope):
        return args

    found = find_method(binding.handler, binding.method_name, args, ctx)
    if found is None:
        return Envelope.failure(
            f"error: Method '{binding.controller_name}.{binding.method_name}' "
            f"not found or does not accept {len(args)} argument(s).",
        )
    method, call_args = found

    logger.debug(
        f"Invoking {binding.controller_name}.{binding.method_name}",
        extra={
            "controller": binding.controller_name,
            "method": binding.method_name,
            "provider": binding.provider,
        },
    )
    result = await call_method(method, call_args)
    if isinstance(result, Envelope):
        return result
    return Envelope.success(result)
