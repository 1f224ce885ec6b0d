"""Glob-based source reading, stream merging, and destination writing."""

from __future__ import annotations

import asyncio
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Pattern, Sequence

from .errors import AssetReadError
from .logging import get_logger
from .models import OutputFile

logger = get_logger("streams")


def expand_globs(patterns: Sequence[str], root: Path) -> List[Path]:
    """Expand gulp-style globs below ``root`` in pattern order.

    ``*`` and ``?`` stay within one path segment, ``**`` spans segments and
    ``{a,b}`` expands to alternatives. Patterns prefixed with ``!`` exclude
    matches of every other pattern. Patterns that match nothing are allowed.
    Only files are returned and each file appears once, at the position of the
    first pattern that matched it.
    """
    negatives = [
        _compile_negation(expanded)
        for pattern in patterns
        if pattern.startswith("!")
        for expanded in _expand_braces(pattern[1:])
    ]
    matched: List[Path] = []
    seen = set()
    for pattern in patterns:
        if pattern.startswith("!"):
            continue
        for expanded in _expand_braces(pattern):
            for path in _walk_matches(expanded, root):
                if path in seen or _is_excluded(path, root, negatives):
                    continue
                seen.add(path)
                matched.append(path)
    return matched


async def read_files(paths: Iterable[Path], base: Path) -> List[OutputFile]:
    """Read files verbatim into :class:`OutputFile` records rooted at ``base``."""
    files: List[OutputFile] = []
    for path in paths:
        try:
            contents = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise AssetReadError(path, str(exc)) from exc
        files.append(OutputFile(path=path, contents=contents, base=base))
    return files


async def read_resources(patterns: Sequence[str], src: Path) -> List[OutputFile]:
    """Binary copies of every resource matched below the source root."""
    files = await read_files(expand_globs(patterns, src), src)
    logger.debug("Collected %d resources from %s", len(files), src)
    return files


def merge_streams(*streams: Iterable[OutputFile]) -> List[OutputFile]:
    """Concatenate streams; duplicates are kept and the later one wins on disk."""
    merged: List[OutputFile] = []
    for stream in streams:
        merged.extend(stream)
    return merged


async def write_files(files: Sequence[OutputFile], dest: Path) -> List[Path]:
    """Write each file to ``dest/<relative>`` in stream order."""
    written: List[Path] = []
    for file in files:
        target = dest / file.relative
        await asyncio.to_thread(_write_bytes, target, file.contents)
        written.append(target)
    logger.debug("Wrote %d files to %s", len(written), dest)
    return written


def _write_bytes(target: Path, contents: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(contents)


_GLOB_CHARACTERS = frozenset("*?")


def _walk_matches(pattern: str, root: Path) -> List[Path]:
    """Files matching one brace-free pattern, sorted, found by walking its fixed prefix."""
    path = Path(pattern)
    if path.is_absolute():
        base, relative_pattern = Path(path.anchor), path.relative_to(path.anchor).as_posix()
    else:
        base, relative_pattern = root, pattern

    segments = relative_pattern.split("/")
    if not any(_GLOB_CHARACTERS & set(segment) for segment in segments):
        candidate = base / relative_pattern
        return [candidate] if candidate.is_file() else []

    fixed: List[str] = []
    for segment in segments[:-1]:
        if _GLOB_CHARACTERS & set(segment):
            break
        fixed.append(segment)
    start = base.joinpath(*fixed)
    if not start.is_dir():
        return []

    regex = _compile_glob(relative_pattern)
    return [
        candidate
        for candidate in sorted(start.rglob("*"))
        if candidate.is_file() and regex.match(candidate.relative_to(base).as_posix())
    ]


def _compile_negation(pattern: str) -> tuple[bool, Pattern[str]]:
    path = Path(pattern)
    if path.is_absolute():
        return True, _compile_glob(path.relative_to(path.anchor).as_posix())
    return False, _compile_glob(pattern)


def _is_excluded(path: Path, root: Path, negatives: Sequence[tuple[bool, Pattern[str]]]) -> bool:
    for absolute, regex in negatives:
        if absolute:
            target = path.relative_to(path.anchor).as_posix()
        else:
            try:
                target = path.relative_to(root).as_posix()
            except ValueError:
                continue
        if regex.match(target):
            return True
    return False


def _expand_braces(pattern: str) -> List[str]:
    """Expand the first ``{a,b}`` set, recursively; unbalanced braces stay literal."""
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    depth = 0
    for end in range(start, len(pattern)):
        if pattern[end] == "{":
            depth += 1
        elif pattern[end] == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        return [pattern]

    prefix, body, suffix = pattern[:start], pattern[start + 1 : end], pattern[end + 1 :]
    alternatives: List[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "," and depth == 0:
            alternatives.append(current)
            current = ""
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current += char
    alternatives.append(current)

    expanded: List[str] = []
    for alternative in alternatives:
        expanded.extend(_expand_braces(prefix + alternative + suffix))
    return expanded


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> Pattern[str]:
    parts: List[str] = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("".join(parts) + r"\Z")


__all__ = ["expand_globs", "merge_streams", "read_files", "read_resources", "write_files"]
