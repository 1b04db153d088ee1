"""Error Handlers — global exception handlers for the FastAPI side of the gateway.

Invariants:
    - DispatchError → its failure Envelope, HTTP 200 (errors travel in the envelope)
    - Exception (catch-all) → generic failure Envelope, HTTP 500, never leaks internal details

Design Decisions:
    - Two-layer handler: domain (DispatchError), catch-all (Exception)
    - Extracted from main.py (ADR: import fan-out < 10)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from jsoncommand.core.envelope import Envelope
from jsoncommand.core.errors import DispatchError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_dispatch_error_handler(app)
    _register_generic_error_handler(app)


def _register_dispatch_error_handler(app: FastAPI) -> None:

    @app.exception_handler(DispatchError)
    async def dispatch_error_handler(request: Request, exc: DispatchError):
        logger.warning(
            f"DispatchError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=exc.to_envelope().model_dump(mode="json"),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=Envelope.failure(
                "error: An unexpected error occurred",
            ).model_dump(mode="json"),
        )
