"""
Default reload hook: imports every managed plugin module.

Importing a plugin executes code fetched from the catalog, so the CLI only
wires this in when ``verify_imports`` is enabled. Host applications that
load plugins themselves should pass their own reload callable instead.
"""

from __future__ import annotations

import importlib.util
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

from pluginkit.logging import get_logger
from pluginkit.store import LocalPluginStore

logger = get_logger("loader")


@dataclass
class LoadedPlugin:
    name: str
    path: Path
    module: ModuleType

    @property
    def description(self) -> str:
        doc = (self.module.__doc__ or "").strip()
        return doc.splitlines()[0] if doc else ""


class PluginLoader:
    """
    Imports plugin files from a :class:`LocalPluginStore`.

    Modules are registered as ``<namespace>.<name>`` in ``sys.modules``.
    Each :meth:`reload` drops the previous generation first, so removed
    plugins disappear and changed plugins are re-executed.
    """

    def __init__(self, store: LocalPluginStore, namespace: str = "pluginkit_plugins") -> None:
        self.store = store
        self.namespace = namespace
        self.loaded: dict[str, LoadedPlugin] = {}
        self.errors: dict[str, str] = {}

    def discover(self) -> list[tuple[str, Path]]:
        """Find plugin files, skipping backups, declarations and private files."""
        found = [(self.store.strip_suffix(p.name), p) for p in self.store.files()]
        for name, path in found:
            logger.debug("Discovered plugin: %s (%s)", name, path)
        return found

    def load_plugin(self, name: str, path: Path) -> bool:
        """Import one plugin file. Returns ``True`` on success."""
        module_name = f"{self.namespace}.{name}"
        try:
            spec = importlib.util.spec_from_file_location(module_name, path)
            if spec is None or spec.loader is None:
                raise ImportError(f"Cannot load module from {path}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            self.errors[name] = f"{type(e).__name__}: {e}"
            logger.warning("Failed to load plugin %s: %s", name, e)
            return False

        self.loaded[name] = LoadedPlugin(name=name, path=path, module=module)
        logger.debug("Loaded plugin: %s", name)
        return True

    def unload_all(self) -> None:
        for name in list(self.loaded):
            sys.modules.pop(f"{self.namespace}.{name}", None)
        self.loaded.clear()
        self.errors.clear()

    def reload(self) -> int:
        """
        Drop previously imported plugins and import the current set.

        Returns:
            Number of plugins loaded
        """
        self.unload_all()
        discovered = self.discover()
        count = sum(1 for name, path in discovered if self.load_plugin(name, path))
        logger.info("Loaded %d/%d plugins", count, len(discovered))
        return count

    def __call__(self) -> int:
        return self.reload()
