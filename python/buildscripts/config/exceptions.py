"""
Custom exceptions for buildscripts configuration.

This module defines the exception hierarchy for configuration errors:
- ConfigError: Base exception for all config errors
- UnsupportedConfigFormatError: File suffix maps to no known source format
- ModuleNotRegisteredError: Module not in the module registry
- ConfigLoadError: Failure to produce a configuration object from a file,
  specialised by kind (missing path, parse, execution, compile)

Load errors keep the temporary artifact path and the original source path
apart. Rendering an error (``str(err)`` or ``err.format_trace()``) substitutes
the former with the latter, so diagnostics always point at the real file.
"""

from __future__ import annotations

import enum
import traceback
from pathlib import Path

__all__ = [
    "ConfigCompileError",
    "ConfigError",
    "ConfigExecutionError",
    "ConfigFileNotFoundError",
    "ConfigLoadError",
    "ConfigParseError",
    "ErrorKind",
    "ModuleNotRegisteredError",
    "UnsupportedConfigFormatError",
]


class ErrorKind(enum.Enum):
    """Category of a configuration load failure."""

    PATH_NOT_FOUND = "path-not-found"
    PARSE_FAILURE = "parse-failure"
    EXECUTION_FAILURE = "execution-failure"
    COMPILE_FAILURE = "compile-failure"


class ConfigError(Exception):
    """Base exception for all configuration errors."""

    pass


class UnsupportedConfigFormatError(ConfigError):
    """
    Raised when a config file suffix does not map to any known source format.

    Parameters
    ----------
    path
        The config file path.
    supported
        Suffixes that are understood by the loader.
    """

    def __init__(self, path: str | Path, supported: list[str]) -> None:
        """
        Initialize the exception.

        Parameters
        ----------
        path
            The config file path.
        supported
            Supported suffixes.
        """
        supported_str = ", ".join(f"'{s}'" for s in supported)
        message = (
            f"Unsupported config file format: {path}. "
            f"Supported suffixes: {supported_str}"
        )
        super().__init__(message)
        self.path = Path(path)
        self.supported = supported


class ModuleNotRegisteredError(ConfigError):
    """
    Raised when a module is looked up in a registry that does not hold it.

    Parameters
    ----------
    path
        The module path that was not found.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"Module '{path}' is not registered")
        self.path = path


class ConfigLoadError(ConfigError):
    """
    Raised when a configuration file cannot be turned into a config object.

    The error is a structured value. ``message`` is kept exactly as produced by
    the failing step; substitution of ``temp_path`` with ``original_path``
    happens only when the error is rendered.

    Parameters
    ----------
    original_path
        The user's config file.
    message
        Raw diagnostic message. Defaults to ``str(cause)``.
    temp_path
        Temporary artifact the failing code was executed from, if any.
    cause
        The underlying exception, if any.
    """

    kind: ErrorKind = ErrorKind.EXECUTION_FAILURE

    def __init__(
        self,
        original_path: str | Path,
        message: str | None = None,
        *,
        temp_path: str | Path | None = None,
        cause: BaseException | None = None,
    ) -> None:
        if message is None:
            message = str(cause) if cause is not None else ""
        self.original_path = Path(original_path)
        self.temp_path = Path(temp_path) if temp_path is not None else None
        self.message = message
        self.cause = cause
        super().__init__(self.render(message))

    @property
    def substitutions(self) -> dict[str, str]:
        """
        Text replacements applied when the error is rendered.

        Returns
        -------
        dict[str, str]
            Mapping from temporary artifact path to original source path,
            followed by the same mapping for the bare file names (as used in
            ``SyntaxError`` messages). Empty when the failure did not involve
            an artifact.
        """
        if self.temp_path is None:
            return {}
        return {
            str(self.temp_path): str(self.original_path),
            self.temp_path.name: self.original_path.name,
        }

    def render(self, text: str) -> str:
        """
        Apply the substitution table to a piece of diagnostic text.

        Parameters
        ----------
        text
            Message or trace text.

        Returns
        -------
        str
            Text referencing the original source path only.
        """
        for old, new in self.substitutions.items():
            text = text.replace(old, new)
        return text

    def format_trace(self) -> str:
        """
        Format the traceback of the underlying cause for display.

        Returns
        -------
        str
            The rendered traceback of ``cause`` (or of this error when there is
            no cause), with the temporary artifact path rewritten.
        """
        exc: BaseException = self.cause if self.cause is not None else self
        lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        return self.render("".join(lines))

    def __str__(self) -> str:
        return self.render(self.message)


class ConfigFileNotFoundError(ConfigLoadError):
    """Raised when an explicitly supplied config path does not exist."""

    kind = ErrorKind.PATH_NOT_FOUND

    def __init__(self, original_path: str | Path) -> None:
        super().__init__(original_path, f"Config file ({original_path}) does not exist")


class ConfigParseError(ConfigLoadError):
    """Raised when structured config data is not valid JSON5."""

    kind = ErrorKind.PARSE_FAILURE


class ConfigExecutionError(ConfigLoadError):
    """Raised when a config script fails while being loaded."""

    kind = ErrorKind.EXECUTION_FAILURE


class ConfigCompileError(ConfigLoadError):
    """Raised when a typed config script cannot be compiled."""

    kind = ErrorKind.COMPILE_FAILURE
