"""Normalisation of bundle targets into a canonical entry point list."""

from __future__ import annotations

from pathlib import PurePath
from typing import Iterable, List, Optional, Set, Tuple

from .config import CommonJSOptions, ConfigError
from .models import EntryPoint, MentionedModuleSet

# Virtual style-bundling marker; it has no file behind it.
STYLE_LOADER_MODULE = "vs/css"


def resolve_entry_points(
    entry_points: Iterable[EntryPoint],
    commonjs: Optional[CommonJSOptions] = None,
) -> Tuple[List[EntryPoint], MentionedModuleSet]:
    """Return the flat entry point list and every module id it mentions."""
    resolved = list(entry_points)
    if commonjs is not None:
        for module_path in commonjs.entry_points:
            resolved.append(EntryPoint(name=PurePath(module_path).stem))

    output_names: Set[str] = set()
    for entry in resolved:
        if not entry.name:
            raise ConfigError("Entry points require a non-empty name")
        output_name = entry.output_name
        if output_name in output_names:
            raise ConfigError(f"Duplicate entry point output '{output_name}'")
        output_names.add(output_name)

    return resolved, collect_mentioned_modules(resolved)


def collect_mentioned_modules(entry_points: Iterable[EntryPoint]) -> MentionedModuleSet:
    mentioned: Set[str] = set()
    for entry in entry_points:
        mentioned.add(entry.name)
        mentioned.update(entry.include)
        mentioned.update(entry.exclude)
    mentioned.discard(STYLE_LOADER_MODULE)
    return MentionedModuleSet(modules=frozenset(mentioned))


__all__ = ["STYLE_LOADER_MODULE", "collect_mentioned_modules", "resolve_entry_points"]
