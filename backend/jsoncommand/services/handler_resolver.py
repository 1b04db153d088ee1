"""Handler Resolver — maps /controller/method to a controller via an ordered provider chain.

Invariants:
    - Providers are tried strictly in configured order; first hit wins
    - A provider returning None is a soft miss, never an error
    - Malformed paths and unknown controllers come back as failure Envelopes (never raise)
    - A controller known to several providers always resolves to the earliest one

Design Decisions:
    - Ordered list of ControllerProvider over hardcoded primary/fallback fields:
      N backends, no special cases
    - HandlerBinding is frozen and per-request: any caching belongs to providers
"""

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from jsoncommand.core.boundary_protocols import ControllerProvider
from jsoncommand.core.envelope import Envelope

logger = logging.getLogger(__name__)

_ROUTE_PATTERN = re.compile(r"^/([^/?]+)/([^/?]+)/?$")


@dataclass(frozen=True)
class HandlerBinding:
    """Resolved target of one call."""
    controller_name: str
    method_name: str
    handler: object
    provider: str


def parse_route(path: str) -> tuple[str, str] | Envelope:
    """Split '/<controller>/<method>' or return a failure Envelope."""
    match = _ROUTE_PATTERN.match(path or "")
    if match is None:
        return Envelope.failure(
            "error: Invalid request URL - expected /controller/method "
            f"but got '{path}'.",
        )
    return match.group(1), match.group(2)


class HandlerResolver:
    """Resolves controllers through providers, in priority order."""

    def __init__(self, providers: Sequence[ControllerProvider]):
        self._providers = tuple(providers)

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    def resolve(self, path: str, payload: str) -> HandlerBinding | Envelope:
        route = parse_route(path)
        if isinstance(route, Envelope):
            logger.debug(f"Malformed command URL '{path}' (payload {len(payload)} chars)")
            return route
        controller_name, method_name = route

        for provider in self._providers:
            handler = provider.try_resolve(controller_name)
            if handler is not None:
                return HandlerBinding(
                    controller_name, method_name, handler, provider.name,
                )

        logger.info(
            f"Unknown controller '{controller_name}'",
            extra={"controller": controller_name, "method": method_name},
        )
        return Envelope.failure(
            f"error: Unable to locate controller named '{controller_name}'.",
        )
