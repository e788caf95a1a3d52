"""Plugin manager -- discovery and selection of compiler backends.

This module contains :class:`PluginManager`, which knows the built-in
backends and discovers third-party ones registered as Python entry points.

The entry-point group used for discovery is ``webbuild.compilers``.
Third-party packages register a backend by declaring an entry point under
this group in their ``pyproject.toml``::

    [project.entry-points."webbuild.compilers"]
    swc = "my_package.compiler:SwcCompiler"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Callable

from webbuild.exceptions import PluginError
from webbuild.plugins.base import Compiler, TypeChecker

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "webbuild.compilers"
"""The entry-point group name used for compiler backend discovery."""


def _builtin_compilers() -> dict[str, Callable[[], Compiler]]:
    from webbuild.plugins.esbuild import EsbuildCompiler

    return {"esbuild": EsbuildCompiler}


class PluginManager:
    """Resolves compiler backend names to :class:`~webbuild.plugins.base.Compiler` instances.

    Built-in backends are always available. :meth:`discover` adds backends
    registered in the ``webbuild.compilers`` entry-point group; a
    third-party entry point never replaces a built-in of the same name.

    Example:
        Typical usage::

            manager = PluginManager()
            manager.discover()
            compiler = manager.get_compiler(config.compiler)
    """

    def __init__(self) -> None:
        self._factories: dict[str, Callable[[], Compiler]] = _builtin_compilers()

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self) -> list[str]:
        """Register backends declared in the ``webbuild.compilers`` entry-point group.

        Returns:
            The names of newly registered backends. Entry points that fail
            to load are logged as warnings and skipped.
        """
        loaded: list[str] = []
        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            if ep.name in self._factories:
                logger.debug("Compiler '%s' already registered, skipping entry point", ep.name)
                continue
            try:
                factory = ep.load()
            except Exception as exc:
                logger.warning("Failed to load compiler '%s': %s", ep.name, exc)
                continue
            self.register(ep.name, factory)
            loaded.append(ep.name)
        return loaded

    def register(self, name: str, factory: Callable[[], Compiler]) -> None:
        """Register a compiler backend factory under *name*.

        Raises:
            PluginError: If a backend with the same *name* is already registered.
        """
        if name in self._factories:
            raise PluginError(f"Compiler '{name}' is already registered")
        self._factories[name] = factory
        logger.info("Registered compiler '%s'", name)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def list_compilers(self) -> list[str]:
        return sorted(self._factories)

    def get_compiler(self, name: str) -> Compiler:
        """Instantiate the backend registered under *name*.

        Raises:
            PluginError: If no backend is registered under *name* or its
                constructor fails.
        """
        try:
            factory = self._factories[name]
        except KeyError:
            available = ", ".join(self.list_compilers())
            raise PluginError(
                f"Unknown compiler '{name}' (available: {available})"
            ) from None
        try:
            return factory()
        except Exception as exc:
            raise PluginError(f"Compiler '{name}' failed to initialise: {exc}") from exc

    def get_type_checker(self) -> TypeChecker:
        from webbuild.plugins.tsc import TscTypeChecker

        return TscTypeChecker()
