"""Controller Providers — a static table and an entry-point plugin registry.

Invariants:
    - try_resolve returns the controller instance, or None when unknown
    - Classes are instantiated once (no-arg constructor); instances are used as-is
    - Entry-point controllers load lazily on first lookup, then come from cache
    - A plugin that exists but fails to load raises ControllerLoadError (not a soft miss)

Design Decisions:
    - "pkg.module:Attr" import strings for the static table: configurable
      from settings/env without code changes
    - importlib.metadata entry points for plugins: installable packages
      register controllers with no edits here
"""

import importlib
import logging
from importlib.metadata import EntryPoint, entry_points
from typing import Mapping

from jsoncommand.core.errors import ControllerLoadError

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_POINT_GROUP = "jsoncommand.controllers"


def _instantiate(target: object) -> object:
    return target() if isinstance(target, type) else target


def load_import_string(controller_name: str, import_string: str) -> object:
    """Import 'pkg.module:Attr' and instantiate it when it is a class."""
    module_name, _, attr = import_string.partition(":")
    if not module_name or not attr:
        raise ControllerLoadError(
            controller_name, f"'{import_string}' is not 'module:attribute'",
        )
    try:
        target = importlib.import_module(module_name)
        for part in attr.split("."):
            target = getattr(target, part)
        return _instantiate(target)
    except Exception as e:
        raise ControllerLoadError(controller_name, str(e)) from e


class StaticControllerProvider:
    """Explicit name -> controller table, populated at startup."""

    def __init__(self, controllers: Mapping[str, object], name: str = "static"):
        self.name = name
        self._controllers = {
            key: _instantiate(value) for key, value in controllers.items()
        }

    @classmethod
    def from_import_strings(
        cls, mapping: Mapping[str, str], name: str = "static",
    ) -> "StaticControllerProvider":
        return cls(
            {key: load_import_string(key, target) for key, target in mapping.items()},
            name=name,
        )

    @property
    def controller_names(self) -> list[str]:
        return sorted(self._controllers)

    def try_resolve(self, controller_name: str) -> object | None:
        return self._controllers.get(controller_name)


class EntryPointControllerProvider:
    """Controllers contributed by installed packages under an entry-point group."""

    def __init__(self, group: str = DEFAULT_ENTRY_POINT_GROUP, name: str = "plugins"):
        self.name = name
        self.group = group
        self._loaded: dict[str, object] = {}

    def _find(self, controller_name: str) -> EntryPoint | None:
        for ep in entry_points(group=self.group):
            if ep.name == controller_name:
                return ep
        return None

    def try_resolve(self, controller_name: str) -> object | None:
        cached = self._loaded.get(controller_name)
        if cached is not None:
            return cached
        ep = self._find(controller_name)
        if ep is None:
            return None
        try:
            controller = _instantiate(ep.load())
        except Exception as e:
            raise ControllerLoadError(controller_name, str(e)) from e
        logger.info(
            f"Loaded controller '{controller_name}' from {ep.value}",
            extra={"controller": controller_name, "provider": self.name},
        )
        self._loaded[controller_name] = controller
        return controller
