"""
Config source classification.

A config path is tagged once, purely by its suffix and the project's declared
module-default type, and the loader then matches on the tag.
"""

from __future__ import annotations

from pathlib import Path

from .base import ConfigSource, ModuleSystem, SourceKind
from .exceptions import UnsupportedConfigFormatError
from .manifest import PackageManifest

__all__ = [
    "STRUCTURED_SUFFIXES",
    "SUPPORTED_SUFFIXES",
    "classify_config_source",
    "resolve_module_system",
]

STRUCTURED_SUFFIXES = (".json", ".json5")
PLAIN_SUFFIXES = (".py", ".mpy", ".cpy")
TYPED_SUFFIXES = (".pyt", ".mpyt", ".cpyt")

# Suffixes that name their module system explicitly
ASYNC_SUFFIXES = (".mpy", ".mpyt")
# Suffixes that defer to the manifest's module-default type
AMBIGUOUS_SUFFIXES = (".py", ".pyt")

SUPPORTED_SUFFIXES = [*STRUCTURED_SUFFIXES, *PLAIN_SUFFIXES, *TYPED_SUFFIXES]


def resolve_module_system(
    suffix: str, manifest: PackageManifest | None = None
) -> ModuleSystem:
    """
    Decide the module system for a script suffix.

    Parameters
    ----------
    suffix
        Lower-case file suffix including the dot.
    manifest
        Project manifest, if any.

    Returns
    -------
    ModuleSystem
        ASYNC for explicit async suffixes, or for ambiguous suffixes when the
        manifest declares the async default. SYNC otherwise.

    Examples
    --------
    >>> resolve_module_system(".mpy")
    <ModuleSystem.ASYNC: 'async'>
    >>> resolve_module_system(".py")
    <ModuleSystem.SYNC: 'sync'>
    """
    if suffix in ASYNC_SUFFIXES:
        return ModuleSystem.ASYNC
    if suffix in AMBIGUOUS_SUFFIXES and manifest is not None and manifest.is_async:
        return ModuleSystem.ASYNC
    return ModuleSystem.SYNC


def classify_config_source(
    path: str | Path, manifest: PackageManifest | None = None
) -> ConfigSource:
    """
    Classify a config file by suffix.

    The file content is never inspected.

    Parameters
    ----------
    path
        Config file path.
    manifest
        Project manifest declaring the module-default type, if any.

    Returns
    -------
    ConfigSource
        The tagged source.

    Raises
    ------
    UnsupportedConfigFormatError
        If the suffix is not a known config format.

    Examples
    --------
    >>> classify_config_source("build.config.json5").kind
    <SourceKind.STRUCTURED_DATA: 'structured-data'>
    >>> source = classify_config_source("build.config.mpyt")
    >>> source.kind, source.module_system
    (<SourceKind.TYPED_SCRIPT: 'typed-script'>, <ModuleSystem.ASYNC: 'async'>)
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix in STRUCTURED_SUFFIXES:
        return ConfigSource(path=path, kind=SourceKind.STRUCTURED_DATA)

    if suffix in PLAIN_SUFFIXES:
        kind = SourceKind.PLAIN_SCRIPT
    elif suffix in TYPED_SUFFIXES:
        kind = SourceKind.TYPED_SCRIPT
    else:
        raise UnsupportedConfigFormatError(path, SUPPORTED_SUFFIXES)

    return ConfigSource(
        path=path, kind=kind, module_system=resolve_module_system(suffix, manifest)
    )
