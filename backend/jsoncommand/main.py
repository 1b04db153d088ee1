"""JSON Command Gateway — FastAPI application entry point.

Invariants:
    - Routes and the command app registered explicitly (no auto-discovery)
    - Provider chain built once per app, in order: static table, then entry-point plugins
    - Global error handlers map DispatchError → Envelope responses
    - CORS configured from settings (not hardcoded)

Design Decisions:
    - create_app() factory: tests build apps with their own provider chain;
      `app` below is what uvicorn serves
    - Lifespan over @app.on_event: FastAPI recommended pattern
    - Command endpoint mounted AFTER API routes so /api/v1/* takes precedence
"""

import logging
from contextlib import asynccontextmanager
from typing import Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jsoncommand.api.command_app import JsonCommandApp
from jsoncommand.api.error_handlers import register_error_handlers
from jsoncommand.api.routes import health
from jsoncommand.config import Settings, get_settings
from jsoncommand.core.boundary_protocols import ControllerProvider
from jsoncommand.infrastructure.observability import setup_logging
from jsoncommand.services.controller_providers import (
    EntryPointControllerProvider, StaticControllerProvider,
)
from jsoncommand.services.handler_resolver import HandlerResolver
from jsoncommand.services.request_dispatcher import RequestDispatcher
from jsoncommand.services.response_writer import ResponseWriter

logger = logging.getLogger(__name__)


def build_providers(settings: Settings) -> list[ControllerProvider]:
    """Default provider chain from settings."""
    providers: list[ControllerProvider] = [
        StaticControllerProvider.from_import_strings(settings.controllers),
    ]
    if settings.enable_entry_point_controllers:
        providers.append(
            EntryPointControllerProvider(settings.controller_entry_point_group),
        )
    return providers


def build_dispatcher(
    settings: Settings, providers: Sequence[ControllerProvider],
) -> RequestDispatcher:
    return RequestDispatcher(
        HandlerResolver(providers),
        ResponseWriter(compress_min_bytes=settings.compress_min_bytes),
        slow_response_seconds=settings.slow_response_seconds,
        slow_payload_chars=settings.slow_payload_chars,
    )


def create_app(
    settings: Settings | None = None,
    providers: Sequence[ControllerProvider] | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    if providers is None:
        providers = build_providers(settings)
    dispatcher = build_dispatcher(settings, providers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        logger.info(
            f"JSON command gateway started at {settings.url_prefix} "
            f"(providers: {', '.join(p.name for p in providers)})",
        )
        yield
        logger.info("JSON command gateway shutting down")

    app = FastAPI(
        title="JSON Command Gateway", version="1.0.0", lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.resolver = dispatcher.resolver

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health.router)
    app.mount(settings.url_prefix, JsonCommandApp(dispatcher), name="commands")
    return app


app = create_app()
