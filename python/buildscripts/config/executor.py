"""
Execution of config scripts as transient modules.

This module provides:
- load_module_sync / import_module_async: The two module-loading primitives
- module_exports / export_value: Extraction of a module's export value
- temporary_artifact: Scoped on-disk artifact for compiled code
- ModuleExecutor: Runs compiled source text and rewrites failure diagnostics
"""

from __future__ import annotations

import ast
import asyncio
import contextlib
import inspect
import logging
import re
import types
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from .base import ModuleSystem
from .exceptions import ConfigExecutionError
from .registry import ModuleRegistry, module_registry

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_EXPORT",
    "ModuleExecutor",
    "artifact_path",
    "default_export",
    "export_value",
    "import_module_async",
    "load_module_sync",
    "module_exports",
    "temporary_artifact",
]

DEFAULT_EXPORT = "default"


def _new_module(path: Path) -> types.ModuleType:
    name = "buildscripts_config_" + re.sub(r"\W", "_", path.name)
    module = types.ModuleType(name)
    module.__file__ = str(path)
    return module


def load_module_sync(
    path: str | Path, registry: ModuleRegistry | None = None
) -> types.ModuleType:
    """
    Load a config script with the synchronous module system.

    The module body runs to completion before this returns. A module already
    in ``registry`` is returned as is.

    Parameters
    ----------
    path
        Script path. Used as the code's filename in tracebacks.
    registry
        Module registry (defaults to the shared ``module_registry``).

    Returns
    -------
    types.ModuleType
        The loaded module.
    """
    registry = module_registry if registry is None else registry
    if registry.is_registered(path):
        return registry.get(path)

    path = Path(path)
    source = path.read_text(encoding="utf-8")
    module = _new_module(path)
    code = compile(source, str(path), "exec", dont_inherit=True)
    exec(code, module.__dict__)  # noqa: S102
    registry.register(path, module)
    return module


async def import_module_async(
    path: str | Path, registry: ModuleRegistry | None = None
) -> types.ModuleType:
    """
    Import a config script with the asynchronous module system.

    The source is compiled with top-level ``await`` allowed and its body is
    awaited on the running event loop. A module already in ``registry`` is
    returned as is.

    Parameters
    ----------
    path
        Script path. Used as the code's filename in tracebacks.
    registry
        Module registry (defaults to the shared ``module_registry``).

    Returns
    -------
    types.ModuleType
        The loaded module.
    """
    registry = module_registry if registry is None else registry
    if registry.is_registered(path):
        return registry.get(path)

    path = Path(path)
    source = await asyncio.to_thread(path.read_text, encoding="utf-8")
    module = _new_module(path)
    code = compile(
        source,
        str(path),
        "exec",
        flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT,
        dont_inherit=True,
    )
    result = eval(code, module.__dict__)  # noqa: S307
    if inspect.isawaitable(result):
        await result
    registry.register(path, module)
    return module


def module_exports(module: types.ModuleType) -> dict[str, Any]:
    """
    Return the whole export value of a module.

    Parameters
    ----------
    module
        A loaded config module.

    Returns
    -------
    dict[str, Any]
        The names listed in ``__all__`` if the module defines it, otherwise
        every public name that is not itself a module.
    """
    namespace = vars(module)
    if "__all__" in namespace:
        return {name: namespace[name] for name in namespace["__all__"]}
    return {
        name: value
        for name, value in namespace.items()
        if not name.startswith("_") and not isinstance(value, types.ModuleType)
    }


def default_export(module: types.ModuleType) -> Any:
    """Return the module's ``default`` name, or None."""
    return vars(module).get(DEFAULT_EXPORT)


def export_value(module: types.ModuleType) -> Any:
    """Return the default export if the module defines one, else all exports."""
    if DEFAULT_EXPORT in vars(module):
        return default_export(module)
    return module_exports(module)


def artifact_path(original_path: str | Path, module_system: ModuleSystem) -> Path:
    """
    Derive the temporary artifact path for a compiled source.

    Parameters
    ----------
    original_path
        The typed source file.
    module_system
        Target module system of the compiled code.

    Returns
    -------
    Path
        ``<original_path>.mpy`` for ASYNC, ``<original_path>.cpy`` for SYNC.

    Examples
    --------
    >>> artifact_path("/proj/build.config.pyt", ModuleSystem.ASYNC)
    PosixPath('/proj/build.config.pyt.mpy')
    """
    return Path(f"{original_path}{module_system.artifact_suffix}")


@contextlib.contextmanager
def temporary_artifact(
    code: str, original_path: str | Path, module_system: ModuleSystem
) -> Iterator[Path]:
    """
    Write compiled code next to its source for the duration of a block.

    The artifact is removed when the block exits, whether it succeeds or
    raises.

    Parameters
    ----------
    code
        Compiled source text.
    original_path
        The source the code was compiled from.
    module_system
        Target module system of the code.

    Yields
    ------
    Path
        The artifact path.
    """
    artifact = artifact_path(original_path, module_system)
    try:
        artifact.write_text(code, encoding="utf-8")
        logger.debug(f"Wrote temporary artifact {artifact}")
        yield artifact
    finally:
        artifact.unlink(missing_ok=True)
        logger.debug(f"Removed temporary artifact {artifact}")


class ModuleExecutor:
    """
    Executes compiled config code as a transient module.

    Parameters
    ----------
    registry
        Module registry owned by this executor. Defaults to the shared
        ``module_registry``.

    Example:
        >>> executor = ModuleExecutor()
        >>> await executor.execute("default = {'a': 1}", path, ModuleSystem.ASYNC)
        {'a': 1}
    """

    def __init__(self, registry: ModuleRegistry | None = None) -> None:
        self.registry = module_registry if registry is None else registry

    async def execute(
        self, code: str, original_path: str | Path, module_system: ModuleSystem
    ) -> Any:
        """
        Run ``code`` from a temporary artifact and return its export value.

        Parameters
        ----------
        code
            Plain Python source compiled for ``module_system``.
        original_path
            The source file the code was compiled from.
        module_system
            Module system used to load the artifact.

        Returns
        -------
        Any
            The module's ``default`` name if defined, else its whole exports.

        Raises
        ------
        ConfigExecutionError
            If writing, loading or running the artifact fails. The artifact
            has been removed by the time the error is raised.
        """
        original_path = Path(original_path)
        artifact = artifact_path(original_path, module_system)
        try:
            with temporary_artifact(code, original_path, module_system):
                # A previous compilation for the same artifact name must not be reused
                self.registry.invalidate(artifact)
                if module_system is ModuleSystem.ASYNC:
                    module = await import_module_async(artifact, self.registry)
                else:
                    module = load_module_sync(artifact, self.registry)
                return export_value(module)
        except Exception as err:
            # The cause names the artifact, so it is kept on err.cause only
            raise ConfigExecutionError(
                original_path, temp_path=artifact, cause=err
            ) from None
