"""
Config file resolution.

Turns an explicit config path, or a set of search patterns, into the single
absolute path of the config file to load.
"""

from __future__ import annotations

import asyncio
import glob
import logging
import os
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

__all__ = ["SearchFunction", "glob_search", "resolve_config_file"]

#: ``search(patterns, root_dir=..., absolute=...)`` returning matches in order
SearchFunction = Callable[..., Awaitable[list[Path]]]


def _glob_all(patterns: Sequence[str], root_dir: Path, absolute: bool) -> list[Path]:
    matches: list[Path] = []
    for pattern in patterns:
        for match in sorted(glob.glob(pattern, root_dir=root_dir)):
            path = root_dir / match if absolute else Path(match)
            if path not in matches:
                matches.append(path)
    return matches


async def glob_search(
    patterns: str | Sequence[str], *, root_dir: str | Path, absolute: bool = True
) -> list[Path]:
    """
    Find files matching glob patterns below a directory.

    Patterns are searched in order; matches of a single pattern are sorted.

    Parameters
    ----------
    patterns
        One pattern or a sequence of patterns, relative to ``root_dir``.
    root_dir
        Directory the search is rooted at.
    absolute
        Return absolute paths instead of paths relative to ``root_dir``.

    Returns
    -------
    list[Path]
        Matching paths without duplicates.
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    root = Path(root_dir).resolve()
    return await asyncio.to_thread(_glob_all, list(patterns), root, absolute)


async def resolve_config_file(
    patterns: str | Sequence[str],
    root_dir: str | Path,
    explicit: str | Path | None = None,
    *,
    search: SearchFunction = glob_search,
) -> Path | None:
    """
    Resolve the config file to load.

    Parameters
    ----------
    patterns
        Search patterns used when no explicit path is given.
    root_dir
        Project root directory.
    explicit
        Config path supplied by the caller. Relative paths are resolved
        against ``root_dir``. Existence is not checked.
    search
        Search collaborator, ``glob_search`` by default.

    Returns
    -------
    Path | None
        Absolute config path, or None when no explicit path was given and
        nothing matched.

    Examples
    --------
    >>> asyncio.run(resolve_config_file([], "/proj", "cfg.pyt"))
    PosixPath('/proj/cfg.pyt')
    """
    if explicit:
        path = Path(explicit)
        if path.is_absolute():
            return path
        return Path(os.path.abspath(Path(root_dir) / path))

    matches = await search(patterns, root_dir=root_dir, absolute=True)
    if not matches:
        logger.debug(f"No config file matching {patterns!r} in {root_dir}")
        return None
    return Path(matches[0])
