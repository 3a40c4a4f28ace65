"""
Mode-specific configuration merging.

This module provides:
- plugin_name: Identity of a plugin entry
- merge_plugins: Order-preserving reconciliation of two plugin lists
- merge_mode_config: Apply the ``modeConfig`` override of a named mode
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .base import PluginEntry, UserConfig

__all__ = ["merge_mode_config", "merge_plugins", "plugin_name"]

MODE_CONFIG_KEY = "modeConfig"
PLUGINS_KEY = "plugins"


def plugin_name(entry: PluginEntry) -> Any:
    """
    Return the identifier of a plugin entry.

    Parameters
    ----------
    entry
        Bare identifier or ``[identifier, options]`` pair.

    Returns
    -------
    Any
        The identifier (first element of a pair, else the entry itself).

    Examples
    --------
    >>> plugin_name("plugin-a")
    'plugin-a'
    >>> plugin_name(["plugin-b", {"x": 1}])
    'plugin-b'
    """
    if isinstance(entry, (list, tuple)):
        return entry[0] if entry else None
    return entry


def merge_plugins(
    base: list[PluginEntry], override: list[PluginEntry]
) -> list[PluginEntry]:
    """
    Reconcile a base plugin list with override entries.

    An override entry whose identifier already exists replaces that entry at
    its position. Other override entries are appended in override order, so
    the result never holds two entries with the same identifier unless the
    base list already did. Neither input is modified.

    Parameters
    ----------
    base
        Base plugin list.
    override
        Plugin entries declared by a mode.

    Returns
    -------
    list[PluginEntry]
        Reconciled plugin list.

    Examples
    --------
    >>> merge_plugins(["a", ["b", {"x": 1}]], [["b", {"x": 2}], "c"])
    ['a', ['b', {'x': 2}], 'c']
    """
    result = list(base)
    keys = [plugin_name(entry) for entry in result]
    for entry in override:
        name = plugin_name(entry)
        if name in keys:
            result[keys.index(name)] = entry
        else:
            result.append(entry)
            keys.append(name)
    return result


def merge_mode_config(mode: str, config: UserConfig) -> UserConfig:
    """
    Merge the override declared for ``mode`` into a configuration.

    Fields of the override replace top-level fields of ``config`` (no
    recursion). ``plugins`` is reconciled with :func:`merge_plugins` instead of
    being replaced. The ``modeConfig`` field itself is carried into the result.

    Parameters
    ----------
    mode
        Mode name, e.g. ``"production"``. Empty means no mode.
    config
        Loaded user configuration.

    Returns
    -------
    UserConfig
        ``config`` itself when there is nothing to merge, otherwise a new dict.

    Examples
    --------
    >>> config = {
    ...     "plugins": ["a"],
    ...     "outputDir": "build",
    ...     "modeConfig": {"prod": {"outputDir": "dist", "plugins": ["b"]}},
    ... }
    >>> merged = merge_mode_config("prod", config)
    >>> merged["plugins"], merged["outputDir"]
    (['a', 'b'], 'dist')
    """
    if not mode or not isinstance(config, Mapping):
        return config

    mode_config = config.get(MODE_CONFIG_KEY)
    if not isinstance(mode_config, Mapping):
        return config

    override = mode_config.get(mode)
    if not isinstance(override, Mapping):
        return config

    basic_config = {k: v for k, v in override.items() if k != PLUGINS_KEY}
    plugins = list(config.get(PLUGINS_KEY) or [])
    override_plugins = override.get(PLUGINS_KEY)
    if isinstance(override_plugins, (list, tuple)):
        plugins = merge_plugins(plugins, list(override_plugins))

    return {**config, **basic_config, PLUGINS_KEY: plugins}
