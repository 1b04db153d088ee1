"""Response Writer — serializes the Envelope, optionally gzips it, writes it once.

Invariants:
    - Wire body is exactly {"data":...,"status":...} (UTF-8)
    - ctx.status forced False wins: data becomes ctx.fail_message, status false
    - gzip only when body > compress_min_bytes AND client accepts gzip AND result is smaller
    - Content-Encoding header present only when the body really is gzipped
    - Already-committed (or cleared) transport → silent no-op; never a second write
    - A body that cannot be built (unserializable data) is answered with the
      classifier's failure Envelope instead; nothing has been committed yet
    - Failures once writing has started are classified and logged, never re-raised

Design Decisions:
    - A new Envelope for the forced-failure case: the caller's Envelope is never mutated
    - Compressor injectable: compression policy is testable without real gzip ratios
"""

import gzip
import logging
from typing import Callable

from jsoncommand.core.envelope import Envelope
from jsoncommand.core.request_context import RequestContext
from jsoncommand.services.exception_classifier import classify_failure, log_failure

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
CACHE_CONTROL = "private, no-cache, no-store"


def gzip_compress(body: bytes) -> bytes:
    return gzip.compress(body, mtime=0)


def accepts_gzip(accept_encoding: str | None) -> bool:
    """True when Accept-Encoding lists gzip (or *) without q=0."""
    if not accept_encoding:
        return False
    for item in accept_encoding.split(","):
        token, *params = [part.strip() for part in item.split(";")]
        if token.lower() not in ("gzip", "*"):
            continue
        for param in params:
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    if float(value) == 0:
                        break
                except ValueError:
                    break
        else:
            return True
    return False


class ResponseWriter:
    """Builds and writes the JSON response for one request."""

    def __init__(
        self,
        compress_min_bytes: int = 512,
        compressor: Callable[[bytes], bytes] = gzip_compress,
    ):
        self.compress_min_bytes = compress_min_bytes
        self._compress = compressor

    def build_response(self, ctx: RequestContext, envelope: Envelope) -> bytes:
        if not ctx.status:
            envelope = Envelope(data=ctx.fail_message, status=False)
        return envelope.to_json_bytes()

    def encode_body(
        self, body: bytes, accept_encoding: str | None,
    ) -> tuple[bytes, str | None]:
        if len(body) <= self.compress_min_bytes or not accepts_gzip(accept_encoding):
            return body, None
        compressed = self._compress(body)
        if len(compressed) < len(body):
            return compressed, "gzip"
        return body, None

    async def send(self, ctx: RequestContext, envelope: Envelope) -> None:
        """Write the envelope unless the response is already committed."""
        transport = ctx.transport
        if transport is None or transport.is_committed():
            return
        try:
            body = self.build_response(ctx, envelope)
        except Exception as e:
            classification = classify_failure(e, client_io=False)
            log_failure(classification, "building response")
            if classification.envelope is None:
                return
            body = classification.envelope.to_json_bytes()
        try:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"  return {body.decode('utf-8')}")
            payload, encoding = self.encode_body(
                body, transport.header("accept-encoding"),
            )
            headers = {
                "Content-Type": JSON_CONTENT_TYPE,
                "Cache-Control": CACHE_CONTROL,
            }
            if encoding:
                headers["Content-Encoding"] = encoding
            await transport.write(payload, headers)
        except Exception as e:
            log_failure(classify_failure(e), "responding")
