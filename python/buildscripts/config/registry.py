"""
Module registry for config scripts.

Config scripts are not imported through ``sys.modules``. Loaded modules are
kept in an explicit registry keyed by canonical file path, which the executor
owns and callers may inject.

Example:
    >>> from buildscripts.config.registry import ModuleRegistry
    >>>
    >>> registry = ModuleRegistry()
    >>> registry.is_registered("/proj/build.config.py")
    False
"""

from __future__ import annotations

import types
from pathlib import Path

from .exceptions import ModuleNotRegisteredError

__all__ = ["ModuleRegistry", "canonical_key", "module_registry"]


def canonical_key(path: str | Path) -> str:
    """
    Return the registry key for a module path.

    Parameters
    ----------
    path
        Module file path.

    Returns
    -------
    str
        Absolute, normalised path string.
    """
    return str(Path(path).resolve())


class ModuleRegistry:
    """
    Registry of loaded config modules.

    Entries are only removed by :meth:`invalidate` or :meth:`clear`.

    Example:
        >>> registry = ModuleRegistry()
        >>> registry.register("/proj/cfg.py", module)
        >>> registry.get("/proj/cfg.py")
        <module 'cfg'>
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._modules: dict[str, types.ModuleType] = {}

    def register(self, path: str | Path, module: types.ModuleType) -> None:
        """
        Register a loaded module under its file path.

        Parameters
        ----------
        path
            File the module was loaded from.
        module
            The loaded module. Replaces any module registered for ``path``.
        """
        self._modules[canonical_key(path)] = module

    def get(self, path: str | Path) -> types.ModuleType:
        """
        Get the module loaded from ``path``.

        Parameters
        ----------
        path
            Module file path.

        Returns
        -------
        types.ModuleType
            The registered module.

        Raises
        ------
        ModuleNotRegisteredError
            If no module is registered for ``path``.
        """
        key = canonical_key(path)
        if key not in self._modules:
            raise ModuleNotRegisteredError(key)
        return self._modules[key]

    def invalidate(self, path: str | Path) -> bool:
        """
        Drop the module registered for ``path``.

        Parameters
        ----------
        path
            Module file path.

        Returns
        -------
        bool
            True if an entry was removed.
        """
        return self._modules.pop(canonical_key(path), None) is not None

    def list(self) -> list[str]:
        """
        List all registered module paths.

        Returns
        -------
        list[str]
            Sorted list of registered paths.
        """
        return sorted(self._modules.keys())

    def is_registered(self, path: str | Path) -> bool:
        """
        Check if a module is registered for ``path``.

        Parameters
        ----------
        path
            Module file path.

        Returns
        -------
        bool
            True if the module is registered, False otherwise.
        """
        return canonical_key(path) in self._modules

    def clear(self) -> None:
        """Remove every registered module."""
        self._modules.clear()


# Module-level singleton instance
module_registry = ModuleRegistry()
