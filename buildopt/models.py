"""Core data models shared across buildopt components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, FrozenSet, List, Mapping, Optional


@dataclass(frozen=True)
class PrependItem:
    """A file, relative to the source root, inlined before a bundle."""

    path: str


@dataclass
class EntryPoint:
    """A named module whose compiled output forms one bundle.

    ``include`` and ``exclude`` are hints for the resolver; only ``exclude``
    reaches the bundler, as the list of externals. ``banner`` is False for
    entry points that must ship without the copyright header and shim.
    """

    name: str
    dest: Optional[str] = None
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    prepend: List[PrependItem] = field(default_factory=list)
    banner: bool = True

    @property
    def output_name(self) -> str:
        """Destination base name with any extension stripped."""
        if self.dest:
            return _strip_extension(self.dest)
        return self.name


@dataclass(frozen=True)
class MentionedModuleSet:
    """Module ids named anywhere in an entry point configuration."""

    modules: FrozenSet[str]

    def __contains__(self, module_id: object) -> bool:
        return module_id in self.modules

    def __iter__(self):
        return iter(sorted(self.modules))

    def __len__(self) -> int:
        return len(self.modules)


@dataclass
class OutputFile:
    """One emitted file: a bundled script, a copied resource, or a map."""

    path: Path
    contents: bytes
    base: Path
    source_map: Optional[Dict[str, Any]] = None

    @property
    def relative(self) -> str:
        """Location below ``base`` using forward slashes."""
        return self.path.relative_to(self.base).as_posix()

    @property
    def text(self) -> str:
        return self.contents.decode("utf-8")

    @property
    def suffix(self) -> str:
        return self.path.suffix.lower()


@dataclass
class BundleResult:
    """Output of one entry point build plus every input that fed it."""

    entry: str
    output_files: List[OutputFile]
    input_paths: List[str]


@dataclass(frozen=True)
class LocaleVariant:
    """Language tag plus the translated messages for that language."""

    tag: str
    messages: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ManualGroup:
    """Files concatenated verbatim, in glob order, into ``out``."""

    src: tuple[str, ...]
    out: str


def _strip_extension(value: str) -> str:
    path = PurePosixPath(value)
    if not path.suffix:
        return value
    return str(path.with_suffix(""))


__all__ = [
    "BundleResult",
    "EntryPoint",
    "LocaleVariant",
    "ManualGroup",
    "MentionedModuleSet",
    "OutputFile",
    "PrependItem",
]
