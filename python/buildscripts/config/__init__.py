"""
buildscripts configuration layer.

This module locates, loads and merges a project's build configuration,
supporting:
- JSON5 config files
- Python config scripts for a synchronous or asynchronous module system
- Typed config scripts compiled just in time and run from a temporary file
- Mode-specific overrides declared in ``modeConfig``

Example:
    >>> import asyncio
    >>> from buildscripts.config import load_user_config
    >>> config = asyncio.run(load_user_config(".", mode="production"))
    >>> config["plugins"]
    ['plugin-a', ['plugin-b', {'minify': True}]]
"""

from __future__ import annotations

from .base import ConfigSource, ModuleSystem, SourceKind, default_user_config
from .classify import classify_config_source
from .compiler import AnnotationStripCompiler, ScriptCompiler, strip_annotations
from .exceptions import (
    ConfigCompileError,
    ConfigError,
    ConfigExecutionError,
    ConfigFileNotFoundError,
    ConfigLoadError,
    ConfigParseError,
    ErrorKind,
    ModuleNotRegisteredError,
    UnsupportedConfigFormatError,
)
from .executor import ModuleExecutor, artifact_path, temporary_artifact
from .loader import get_user_config, load_config, load_user_config
from .manifest import DEFAULT_CONFIG_FILES, PackageManifest, load_package_manifest
from .merging import merge_mode_config, merge_plugins, plugin_name
from .registry import ModuleRegistry, module_registry
from .resolver import glob_search, resolve_config_file

__all__ = [
    "DEFAULT_CONFIG_FILES",
    "AnnotationStripCompiler",
    "ConfigCompileError",
    "ConfigError",
    "ConfigExecutionError",
    "ConfigFileNotFoundError",
    "ConfigLoadError",
    "ConfigParseError",
    "ConfigSource",
    "ErrorKind",
    "ModuleExecutor",
    "ModuleNotRegisteredError",
    "ModuleRegistry",
    "ModuleSystem",
    "PackageManifest",
    "ScriptCompiler",
    "SourceKind",
    "UnsupportedConfigFormatError",
    "artifact_path",
    "classify_config_source",
    "default_user_config",
    "get_user_config",
    "glob_search",
    "load_config",
    "load_package_manifest",
    "load_user_config",
    "merge_mode_config",
    "merge_plugins",
    "module_registry",
    "plugin_name",
    "resolve_config_file",
    "strip_annotations",
    "temporary_artifact",
]
