"""Exception hierarchy for the optimization pipeline.

Every failure raised by buildopt derives from :class:`OptimizeError` so the
CLI can report it with a single handler. None of these are retried.
"""

from __future__ import annotations

from pathlib import Path


class OptimizeError(RuntimeError):
    """Base class for all buildopt failures."""


class BundlerError(OptimizeError):
    """The bundling engine rejected a build (syntax error, unresolved import)."""

    def __init__(self, message: str, *, entry: str | None = None) -> None:
        super().__init__(message)
        self.entry = entry


class AssetReadError(OptimizeError):
    """A banner, prepend, or resource file is missing or unreadable."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Unable to read {path}: {reason}")
        self.path = path


class ExternalToolError(OptimizeError):
    """An external minifier exited with an error."""


class UnsafeOutputError(OptimizeError):
    """Minified JavaScript contains characters outside the single-byte range."""

    def __init__(self, character: str, path: Path) -> None:
        super().__init__(
            f"Found non-ascii character {character} in the minified output of {path}. "
            "Non-ASCII characters in the output can cause performance problems when loading. "
            "Please review if you have introduced a regular expression that the bundler is not "
            "automatically converting and convert it to using unicode escape sequences."
        )
        self.character = character
        self.path = path


__all__ = [
    "AssetReadError",
    "BundlerError",
    "ExternalToolError",
    "OptimizeError",
    "UnsafeOutputError",
]
