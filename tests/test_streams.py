"""Tests for glob expansion, merging, and destination writes."""

from __future__ import annotations

import asyncio
from pathlib import Path

from buildopt.models import OutputFile
from buildopt.streams import expand_globs, merge_streams, read_resources, write_files
from tests._fixtures.source_tree import SourceTreeBuilder


def test_expand_globs_keeps_pattern_order_and_applies_negations(
    source_tree: SourceTreeBuilder,
) -> None:
    source_tree.write(
        {
            "vs/b.svg": "<svg/>",
            "vs/a.svg": "<svg/>",
            "vs/base/x.svg": "<svg/>",
            "vs/readme.txt": "text",
        }
    )
    root = source_tree.path()

    matched = expand_globs(["vs/*.txt", "vs/**/*.svg", "!vs/base/**"], root)

    assert [path.relative_to(root).as_posix() for path in matched] == [
        "vs/readme.txt",
        "vs/a.svg",
        "vs/b.svg",
    ]


def test_expand_globs_allows_missing_matches_and_deduplicates(
    source_tree: SourceTreeBuilder,
) -> None:
    source_tree.write({"vs/a.svg": "<svg/>"})

    matched = expand_globs(["vs/*.png", "vs/*.svg", "vs/a.svg"], source_tree.path())

    assert matched == [source_tree.path() / "vs/a.svg"]


def test_expand_globs_trailing_double_star_matches_nested_files(
    source_tree: SourceTreeBuilder,
) -> None:
    source_tree.write({"vs/base/a.svg": "<svg/>", "vs/b.png": b"\x89PNG", "other/c.svg": "<svg/>"})
    root = source_tree.path()

    matched = expand_globs(["vs/**"], root)

    assert [path.relative_to(root).as_posix() for path in matched] == ["vs/b.png", "vs/base/a.svg"]


def test_expand_globs_expands_brace_sets(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "vs/media/a.svg": "<svg/>",
            "vs/media/b.png": b"\x89PNG",
            "vs/media/c.ttf": b"\x00\x01",
            "vs/media/skip.svg": "<svg/>",
        }
    )
    root = source_tree.path()

    matched = expand_globs(["vs/**/*.{svg,png}", "!vs/media/{skip,none}.svg"], root)

    assert [path.relative_to(root).as_posix() for path in matched] == [
        "vs/media/a.svg",
        "vs/media/b.png",
    ]


def test_expand_globs_accepts_absolute_patterns(source_tree: SourceTreeBuilder, tmp_path: Path) -> None:
    source_tree.write({"vs/a.svg": "<svg/>"})
    shared = tmp_path / "shared"
    shared.mkdir()
    (shared / "loader.js").write_text("var loader;", encoding="utf-8")

    matched = expand_globs([f"{shared.as_posix()}/*.js", "vs/a.svg"], source_tree.path())

    assert matched == [shared / "loader.js", source_tree.path() / "vs/a.svg"]


def test_read_resources_copies_bytes_untouched(source_tree: SourceTreeBuilder) -> None:
    payload = bytes(range(256))
    source_tree.write({"vs/media/font.ttf": payload})

    (resource,) = asyncio.run(read_resources(["vs/**/*.ttf"], source_tree.path()))

    assert resource.contents == payload
    assert resource.relative == "vs/media/font.ttf"


def test_merge_streams_keeps_duplicates_and_later_write_wins(tmp_path: Path) -> None:
    base = tmp_path / "src"
    first = OutputFile(path=base / "vs/a.js", contents=b"bundle", base=base)
    second = OutputFile(path=base / "vs/a.js", contents=b"resource", base=base)

    merged = merge_streams([first], [second])
    asyncio.run(write_files(merged, tmp_path / "out"))

    assert merged == [first, second]
    assert (tmp_path / "out/vs/a.js").read_bytes() == b"resource"
