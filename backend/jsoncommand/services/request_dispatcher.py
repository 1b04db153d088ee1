"""Request Dispatcher — runs one command request from arrival to written response.

Invariants:
    - STARTED → RESOLVING → INVOKING → RESPONDING → DONE, recorded on ctx.state
    - A resolver failure Envelope skips INVOKING
    - Only Exception is caught; CancelledError/KeyboardInterrupt/SystemExit propagate untouched
    - ctx.clear() runs in finally on every path, including propagating BaseExceptions
    - If the controller already committed the response, nothing more is written
    - Slow responses (> slow_response_seconds) are logged with a truncated payload; advisory only

Design Decisions:
    - GET/POST pre-checks fail fast with a failure Envelope before resolution
    - Clock injectable: slow-call logging testable without sleeping
"""

import logging
import time
from typing import Callable

from jsoncommand.core.boundary_protocols import Transport
from jsoncommand.core.envelope import Envelope
from jsoncommand.core.request_context import DispatchState, RequestContext
from jsoncommand.services.controller_invoke import invoke_method
from jsoncommand.services.exception_classifier import classify_failure, log_failure
from jsoncommand.services.handler_resolver import HandlerResolver
from jsoncommand.services.response_writer import ResponseWriter

logger = logging.getLogger(__name__)

EMPTY_GET_MESSAGE = "error: HTTP-GET had empty or no 'json' parameter."
BAD_CONTENT_LENGTH_MESSAGE = "error: Call to server had incorrect Content-Length specified."
UNREADABLE_POST_MESSAGE = "error: Unable to read HTTP-POST JSON content."


class RequestDispatcher:
    """Per-request orchestration: resolve, invoke, classify, respond."""

    def __init__(
        self,
        resolver: HandlerResolver,
        writer: ResponseWriter,
        slow_response_seconds: float = 2.0,
        slow_payload_chars: int = 255,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._resolver = resolver
        self._writer = writer
        self._slow_seconds = slow_response_seconds
        self._slow_chars = slow_payload_chars
        self._clock = clock

    @property
    def resolver(self) -> HandlerResolver:
        return self._resolver

    async def handle_get(self, transport: Transport) -> RequestContext:
        """GET /<controller>/<method>?json=[...]"""
        ctx = RequestContext(transport=transport)
        try:
            payload = transport.query_param("json")
            if payload is None or not payload.strip():
                await self._respond(ctx, Envelope.failure(EMPTY_GET_MESSAGE))
                return ctx
            logger.debug("GET RESTful JSON")
            await self._dispatch(ctx, payload)
            return ctx
        finally:
            ctx.clear()

    async def handle_post(self, transport: Transport) -> RequestContext:
        """POST /<controller>/<method> with the JSON argument array as body."""
        ctx = RequestContext(transport=transport)
        try:
            length = transport.content_length
            if length is None or length < 1:
                await self._respond(ctx, Envelope.failure(BAD_CONTENT_LENGTH_MESSAGE))
                return ctx
            try:
                payload = (await transport.read_body()).decode("utf-8")
            except Exception as e:
                classification = classify_failure(e)
                log_failure(classification, "reading")
                if classification.envelope is not None:
                    await self._respond(ctx, Envelope.failure(UNREADABLE_POST_MESSAGE))
                return ctx
            logger.debug("POST RESTful JSON")
            await self._dispatch(ctx, payload)
            return ctx
        finally:
            ctx.clear()

    async def _dispatch(self, ctx: RequestContext, payload: str) -> None:
        ctx.payload = payload
        ctx.advance(DispatchState.RESOLVING)
        try:
            outcome = self._resolver.resolve(ctx.transport.path, payload)
            if isinstance(outcome, Envelope):
                envelope = outcome
            else:
                ctx.controller_name = outcome.controller_name
                ctx.method_name = outcome.method_name
                ctx.advance(DispatchState.INVOKING)
                envelope = await invoke_method(outcome, payload, ctx)
        except Exception as e:
            classification = classify_failure(e, client_io=False)
            log_failure(classification, "invoking")
            if classification.envelope is not None:
                await self._respond(ctx, classification.envelope)
            return

        if ctx.transport.is_committed():
            logger.debug(
                "Response already committed by controller",
                extra={"controller": ctx.controller_name, "method": ctx.method_name},
            )
            return

        start = self._clock()
        await self._respond(ctx, envelope)
        elapsed = self._clock() - start
        if elapsed > self._slow_seconds:
            elapsed_ms = int(elapsed * 1000)
            logger.info(
                f"Slow return response: {payload[:self._slow_chars]} took {elapsed_ms} ms",
                extra={
                    "controller": ctx.controller_name,
                    "method": ctx.method_name,
                    "elapsed_ms": elapsed_ms,
                },
            )

    async def _respond(self, ctx: RequestContext, envelope: Envelope) -> None:
        ctx.advance(DispatchState.RESPONDING)
        await self._writer.send(ctx, envelope)
