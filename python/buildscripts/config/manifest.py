"""
Project manifest for buildscripts configuration.

The manifest is the ``[tool.buildscripts]`` table of a project's
``pyproject.toml``. It declares the module-default type for ambiguous config
script suffixes and, optionally, the patterns used to discover a config file.

Example ``pyproject.toml``::

    [tool.buildscripts]
    module-type = "async"
    config-files = ["build.config.*"]
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .base import ModuleSystem

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_CONFIG_FILES", "PackageManifest", "load_package_manifest"]

MANIFEST_FILE = "pyproject.toml"

DEFAULT_CONFIG_FILES = (
    "build.config.mpyt",
    "build.config.cpyt",
    "build.config.pyt",
    "build.config.mpy",
    "build.config.cpy",
    "build.config.py",
    "build.config.json5",
    "build.config.json",
)


@dataclass
class PackageManifest:
    """
    Settings read from the project's manifest.

    Parameters
    ----------
    module_type
        Declared module-default type (``"async"`` or ``"sync"``), if any
    config_files
        Glob patterns used to discover a config file
    """

    module_type: str | None = None
    config_files: list[str] = field(default_factory=lambda: list(DEFAULT_CONFIG_FILES))

    @property
    def is_async(self) -> bool:
        """Whether ambiguous script suffixes default to the async module system."""
        return self.module_type == ModuleSystem.ASYNC.value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PackageManifest:
        """
        Build a manifest from a ``[tool.buildscripts]`` table.

        Parameters
        ----------
        data
            Table contents. Unknown keys are ignored.

        Returns
        -------
        PackageManifest
            Manifest with defaults for missing keys.

        Raises
        ------
        ValueError
            If ``module-type`` is not a known module system or
            ``config-files`` is not a list of strings.
        """
        module_type = data.get("module-type")
        known = [m.value for m in ModuleSystem]
        if module_type is not None and module_type not in known:
            msg = f"Invalid module-type {module_type!r} (expected one of {known})"
            raise ValueError(msg)

        config_files = data.get("config-files", list(DEFAULT_CONFIG_FILES))
        if not isinstance(config_files, list) or not all(
            isinstance(p, str) for p in config_files
        ):
            msg = "config-files must be a list of glob patterns"
            raise ValueError(msg)

        return cls(module_type=module_type, config_files=list(config_files))


def load_package_manifest(root_dir: str | Path) -> PackageManifest:
    """
    Load the manifest from ``<root_dir>/pyproject.toml``.

    Parameters
    ----------
    root_dir
        Project root directory.

    Returns
    -------
    PackageManifest
        Manifest from the ``[tool.buildscripts]`` table, or defaults when the
        file or table is absent.

    Raises
    ------
    ValueError
        If ``[tool]`` or ``[tool.buildscripts]`` is not a table, or the table
        holds invalid values.
    """
    path = Path(root_dir) / MANIFEST_FILE
    if not path.is_file():
        logger.debug(f"No {MANIFEST_FILE} in {root_dir}, using default manifest")
        return PackageManifest()

    with path.open("rb") as f:
        data = tomllib.load(f)

    tool = data.get("tool", {})
    if not isinstance(tool, Mapping):
        msg = f"[tool] in {path} must be a table"
        raise ValueError(msg)
    table = tool.get("buildscripts", {})
    if not isinstance(table, Mapping):
        msg = f"[tool.buildscripts] in {path} must be a table"
        raise ValueError(msg)
    return PackageManifest.from_mapping(table)
