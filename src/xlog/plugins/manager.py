"""Plugin discovery for xlog.

Plugins come from two places: distributions exposing the ``xlog.plugins``
entry-point group, and single ``*.py`` files dropped into
``{data_dir}/plugins/``. In both cases a plugin may be a class; it is
instantiated once before registration.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

import pluggy

from xlog.plugins.hookspecs import PROJECT_NAME, XlogHookSpec

ENTRY_POINT_GROUP = "xlog.plugins"
LOCAL_MODULE_PREFIX = "xlog_local_plugin_"

logger = logging.getLogger(__name__)


def has_hook_impls(cls: type) -> bool:
    """Whether any public attribute of *cls* is marked with ``@hookimpl``."""
    marker = f"{PROJECT_NAME}_impl"
    return any(
        callable(attr) and getattr(attr, marker, None)
        for name, attr in inspect.getmembers(cls)
        if not name.startswith("_")
    )


def _import_file(path: Path) -> ModuleType | None:
    module_name = LOCAL_MODULE_PREFIX + path.stem
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Cannot import plugin file %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Skipping plugin file %s", path, exc_info=True)
        return None
    return module


def _plugin_classes(module: ModuleType) -> Iterator[type]:
    for _, cls in inspect.getmembers(module, inspect.isclass):
        # classes merely imported into the file are not its plugins
        if cls.__module__ == module.__name__ and has_hook_impls(cls):
            yield cls


class PluginManager(pluggy.PluginManager):
    """pluggy manager preloaded with the xlog hook specifications."""

    def __init__(self) -> None:
        super().__init__(PROJECT_NAME)
        self.add_hookspecs(XlogHookSpec)
        self.is_loaded = False

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then local files; return all plugin names."""
        self.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        for plugin in list(self.get_plugins()):
            if inspect.isclass(plugin) and has_hook_impls(plugin):
                name = self.get_name(plugin) or plugin.__name__
                self.unregister(plugin)
                self._register_instance(plugin, name)
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if path.name.startswith("_"):
                    continue
                module = _import_file(path)
                if module is None:
                    continue
                for cls in _plugin_classes(module):
                    self._register_instance(cls, f"{module.__name__}.{cls.__name__}")
        self.is_loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register an instance, named after its class unless *name* is given."""
        name = name or type(plugin).__name__
        self.register(plugin, name=name)
        logger.debug("Registered plugin: %s", name)

    def list_plugin_names(self) -> list[str]:
        return sorted(self.get_name(p) or type(p).__name__ for p in self.get_plugins())

    def _register_instance(self, cls: type, name: str) -> None:
        try:
            instance = cls()
        except Exception:
            logger.warning("Cannot instantiate plugin %s", name, exc_info=True)
            return
        self.register_plugin(instance, name=name)
