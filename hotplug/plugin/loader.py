"""
Dynamic Module Loader.

This module abstracts the host's code loading for plugins.

Key features:
- ModuleLoader protocol consumed by the catalog, staging and manager
- importlib integration for probing and unloading
- Search path registration for staged code directories
"""

import importlib
import importlib.util
import sys
from pathlib import Path
from typing import Protocol


class ModuleLoader(Protocol):
    """Code loading capabilities the plugin system relies on."""

    def probe_loadable(self, name: str) -> bool:
        """Return True if name is loaded or could be loaded, leaving no new load behind."""
        ...

    def register_search_path(self, directory: Path) -> None:
        """Make code in directory loadable."""
        ...

    def unload(self, name: str) -> None:
        """Unload name and everything loaded beneath it."""
        ...

    def is_loaded(self, name: str) -> bool:
        """Return True if name is currently loaded."""
        ...


class ImportlibModuleLoader:
    """
    ModuleLoader backed by importlib, sys.path and sys.modules.

    Plugin names are treated as top-level module names. Dependency names that
    resolve to an importable module of the interpreter count as built-in.
    """

    def __init__(self):
        self._search_paths: list[str] = []

    @property
    def search_paths(self) -> list[Path]:
        """Directories registered through register_search_path."""
        return [Path(p) for p in self._search_paths]

    def probe_loadable(self, name: str) -> bool:
        """
        Check whether a module can be loaded.

        A module already in sys.modules counts as loadable. Otherwise the
        module is located with find_spec. Parent packages imported while
        locating a dotted name are removed again afterwards.

        Args:
            name: Module name

        Returns:
            True if the module is loaded or loadable
        """
        if name in sys.modules:
            return True

        before = set(sys.modules)
        try:
            return importlib.util.find_spec(name) is not None
        except (ImportError, ValueError):
            return False
        finally:
            for module_name in set(sys.modules) - before:
                sys.modules.pop(module_name, None)

    def register_search_path(self, directory: Path) -> None:
        """
        Prepend a code directory to sys.path.

        Args:
            directory: Directory holding plugin modules
        """
        path = str(directory)
        if path not in sys.path:
            sys.path.insert(0, path)
        if path not in self._search_paths:
            self._search_paths.append(path)
        importlib.invalidate_caches()

    def unload(self, name: str) -> None:
        """
        Remove a module and its submodules from sys.modules.

        Args:
            name: Top-level module name
        """
        prefix = f"{name}."
        for module_name in list(sys.modules):
            if module_name == name or module_name.startswith(prefix):
                sys.modules.pop(module_name, None)
        importlib.invalidate_caches()

    def is_loaded(self, name: str) -> bool:
        """
        Check if a module is in sys.modules.

        Args:
            name: Module name

        Returns:
            True if loaded
        """
        return name in sys.modules
