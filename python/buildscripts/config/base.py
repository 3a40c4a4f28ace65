"""
Base types for buildscripts configuration.

This module defines the vocabulary shared by the loader components:
- ModuleSystem: The two module-loading disciplines a config script may target
- SourceKind: The three source formats a config file may be written in
- ConfigSource: A config path tagged once with its kind and module system
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any

__all__ = [
    "ConfigSource",
    "ModuleSystem",
    "PluginEntry",
    "SourceKind",
    "UserConfig",
    "default_user_config",
]

#: A bare plugin identifier, or an ``[identifier, options]`` pair.
PluginEntry = str | list[Any] | tuple[Any, ...]

#: A loaded configuration payload. Only ``plugins`` and ``modeConfig`` matter here.
UserConfig = dict[str, Any]


class ModuleSystem(enum.Enum):
    """
    Module-loading discipline of a config script.

    SYNC
        The module body runs to completion as soon as it is loaded. Its whole
        public namespace is the export value.
    ASYNC
        The module body may use top-level ``await`` and is awaited on the
        running event loop. Its ``default`` name is the export value.
    """

    SYNC = "sync"
    ASYNC = "async"

    @property
    def artifact_suffix(self) -> str:
        """Suffix appended to a source path to name its compiled artifact."""
        return ".mpy" if self is ModuleSystem.ASYNC else ".cpy"


class SourceKind(enum.Enum):
    """Source format of a config file."""

    STRUCTURED_DATA = "structured-data"
    PLAIN_SCRIPT = "plain-script"
    TYPED_SCRIPT = "typed-script"


@dataclass(frozen=True)
class ConfigSource:
    """
    A config file path classified by format and module system.

    Parameters
    ----------
    path
        Absolute path to the config file
    kind
        Source format of the file
    module_system
        Module system the file targets (None for structured data)
    """

    path: Path
    kind: SourceKind
    module_system: ModuleSystem | None = None

    @property
    def is_async(self) -> bool:
        """Whether the file is loaded with the asynchronous module system."""
        return self.module_system is ModuleSystem.ASYNC


def default_user_config() -> UserConfig:
    """Return the configuration used when a project has no config file."""
    return {"plugins": []}
