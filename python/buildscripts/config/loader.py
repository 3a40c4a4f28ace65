"""
Configuration loading for buildscripts.

This module provides:
- load_config: Load the raw configuration object from a single config file
- get_user_config: Load a resolved config path (if any) and apply a mode
- load_user_config: Resolve, load and merge a project's configuration
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any, assert_never

import json5

from .base import ConfigSource, SourceKind, UserConfig, default_user_config
from .classify import classify_config_source
from .compiler import AnnotationStripCompiler, ScriptCompiler
from .exceptions import (
    ConfigCompileError,
    ConfigExecutionError,
    ConfigFileNotFoundError,
    ConfigParseError,
)
from .executor import (
    ModuleExecutor,
    default_export,
    import_module_async,
    load_module_sync,
    module_exports,
)
from .manifest import PackageManifest, load_package_manifest
from .merging import merge_mode_config
from .resolver import SearchFunction, glob_search, resolve_config_file

logger = logging.getLogger(__name__)

__all__ = [
    "get_user_config",
    "load_config",
    "load_user_config",
]


def _load_structured(path: Path) -> Any:
    try:
        return json5.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as err:
        raise ConfigParseError(path, cause=err) from err


async def _load_plain_script(source: ConfigSource, executor: ModuleExecutor) -> Any:
    try:
        if source.is_async:
            module = await import_module_async(source.path, executor.registry)
            return default_export(module)
        module = load_module_sync(source.path, executor.registry)
        return module_exports(module)
    except Exception as err:
        raise ConfigExecutionError(source.path, cause=err) from None


async def load_config(
    path: str | Path,
    manifest: PackageManifest | None = None,
    *,
    compiler: ScriptCompiler | None = None,
    executor: ModuleExecutor | None = None,
) -> Any:
    """
    Load the raw configuration object from a config file.

    The file is classified by suffix (see
    :func:`~buildscripts.config.classify.classify_config_source`):

    - ``.json``/``.json5``: parsed with JSON5 (comments, trailing commas and
      unquoted keys allowed)
    - plain scripts: the ``default`` name for the async module system, the
      whole public namespace for the sync module system
    - typed scripts: compiled, then run from a temporary artifact

    Parameters
    ----------
    path
        Config file path.
    manifest
        Project manifest declaring the module-default type.
    compiler
        Compiler for typed scripts (defaults to AnnotationStripCompiler).
    executor
        Executor for compiled code (defaults to a ModuleExecutor on the shared
        module registry).

    Returns
    -------
    Any
        Raw, unvalidated configuration object.

    Raises
    ------
    UnsupportedConfigFormatError
        If the suffix is not a known config format.
    ConfigParseError
        If structured data cannot be read or parsed.
    ConfigCompileError
        If a typed script cannot be compiled.
    ConfigExecutionError
        If a script fails while being loaded.

    Examples
    --------
    >>> config = await load_config("build.config.json5")
    >>> config["plugins"]
    ['plugin-a']
    """
    source = classify_config_source(path, manifest)
    executor = ModuleExecutor() if executor is None else executor

    if source.kind is SourceKind.STRUCTURED_DATA:
        return _load_structured(source.path)

    if source.kind is SourceKind.PLAIN_SCRIPT:
        return await _load_plain_script(source, executor)

    if source.kind is SourceKind.TYPED_SCRIPT:
        assert source.module_system is not None
        start = time.perf_counter()
        compiler = AnnotationStripCompiler() if compiler is None else compiler
        try:
            code = await compiler.compile(source.path, source.module_system)
        except ConfigCompileError:
            raise
        except Exception as err:
            raise ConfigCompileError(source.path, cause=err) from err
        config = await executor.execute(code, source.path, source.module_system)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"Compiled config module loaded in {elapsed_ms:.0f}ms")
        return config

    assert_never(source.kind)


async def get_user_config(
    config_path: str | Path | None,
    mode: str = "",
    manifest: PackageManifest | None = None,
    *,
    compiler: ScriptCompiler | None = None,
    executor: ModuleExecutor | None = None,
) -> UserConfig:
    """
    Load a resolved config file and apply the overrides of ``mode``.

    Parameters
    ----------
    config_path
        Resolved config path, or None when the project has no config file.
    mode
        Mode name selecting an entry of ``modeConfig``.
    manifest
        Project manifest declaring the module-default type.
    compiler
        Compiler for typed scripts.
    executor
        Executor for compiled code.

    Returns
    -------
    UserConfig
        The merged configuration. ``{"plugins": []}`` when there is no config
        file.

    Raises
    ------
    ConfigFileNotFoundError
        If ``config_path`` is given but does not exist.
    ConfigLoadError
        If the file cannot be loaded (see :func:`load_config`).
    """
    if config_path is None:
        logger.debug(
            "No config file found in the root directory. "
            "Ignore this message if the project is meant to run without one."
        )
        config: UserConfig = default_user_config()
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigFileNotFoundError(config_path)
        config = await load_config(
            config_path, manifest, compiler=compiler, executor=executor
        )
        logger.debug(f"Loaded config file {config_path}")

    return merge_mode_config(mode, config)


async def load_user_config(  # noqa: PLR0913
    root_dir: str | Path,
    mode: str = "",
    explicit_config: str | Path | None = None,
    patterns: Sequence[str] | None = None,
    manifest: PackageManifest | None = None,
    *,
    search: SearchFunction = glob_search,
    compiler: ScriptCompiler | None = None,
    executor: ModuleExecutor | None = None,
) -> UserConfig:
    """
    Resolve, load and merge the configuration of a project.

    Parameters
    ----------
    root_dir
        Project root directory.
    mode
        Mode name selecting an entry of ``modeConfig``.
    explicit_config
        Config path given by the user. No search happens when it is set.
    patterns
        Search patterns (defaults to ``manifest.config_files``).
    manifest
        Project manifest (defaults to ``<root_dir>/pyproject.toml``).
    search
        Search collaborator used to discover the config file.
    compiler
        Compiler for typed scripts.
    executor
        Executor for compiled code.

    Returns
    -------
    UserConfig
        The merged configuration.

    Examples
    --------
    >>> config = await load_user_config(".", mode="production")
    """
    if manifest is None:
        manifest = load_package_manifest(root_dir)
    if patterns is None:
        patterns = manifest.config_files

    config_path = await resolve_config_file(
        patterns, root_dir, explicit_config, search=search
    )
    return await get_user_config(
        config_path, mode, manifest, compiler=compiler, executor=executor
    )
