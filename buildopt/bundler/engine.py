"""Narrow boundary around the external bundling engine.

The engine is an opaque compiler service: one :class:`BuildRequest` in, one
:class:`BuildResponse` out. Implementations must not write to the requested
``outdir``; output is always returned in memory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Sequence

LoadTransform = Callable[[str], str]

DEFAULT_TARGET = "es2022"


@dataclass(frozen=True)
class EngineEntry:
    """Maps one input file to an output base name below ``outdir``."""

    source: Path
    output: Optional[str] = None


@dataclass
class BuildRequest:
    """Everything the engine needs for a single, independent build."""

    entry: EngineEntry
    outdir: Path
    bundle: bool = False
    minify: bool = False
    packages: Optional[str] = None
    platform: str = "neutral"
    format: Optional[str] = None
    sourcemap: Optional[str] = "external"
    target: Sequence[str] = (DEFAULT_TARGET,)
    external: Sequence[str] = ()
    banner: Mapping[str, str] = field(default_factory=dict)
    loader: Mapping[str, str] = field(default_factory=dict)
    asset_names: Optional[str] = None
    load_transform: Optional[LoadTransform] = None
    working_dir: Optional[Path] = None


@dataclass
class EngineOutputFile:
    """A file produced by the engine, addressed as if written below ``outdir``."""

    path: Path
    contents: bytes

    @property
    def text(self) -> str:
        return self.contents.decode("utf-8")


@dataclass
class BuildResponse:
    """Output files in engine emission order plus the manifest of inputs.

    ``inputs`` maps each absolute input path to the engine's metadata for it;
    its keys are authoritative for which files fed the build.
    """

    output_files: List[EngineOutputFile]
    inputs: Dict[str, Dict[str, object]] = field(default_factory=dict)

    def find(self, suffix: str) -> Optional[EngineOutputFile]:
        for output in self.output_files:
            if output.path.name.endswith(suffix):
                return output
        return None


class BundlerEngine(Protocol):
    """Contract implemented by bundling engines."""

    async def build(self, request: BuildRequest) -> BuildResponse:
        """Run one build and return its in-memory output.

        Raises :class:`buildopt.errors.BundlerError` when the build is rejected.
        """


__all__ = [
    "BuildRequest",
    "BuildResponse",
    "BundlerEngine",
    "DEFAULT_TARGET",
    "EngineEntry",
    "EngineOutputFile",
    "LoadTransform",
]
