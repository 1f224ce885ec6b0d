"""Tests for the minification stage."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import List

import pytest

from buildopt.errors import UnsafeOutputError
from buildopt.minify import Minifier, find_unsafe_characters, minified_dir
from tests._fixtures.fake_engine import FakeEngine, recording_minifier, snapshot_tree
from tests._fixtures.source_tree import SourceTreeBuilder


def _minifier(engine: FakeEngine, css_calls: List[str], svg_calls: List[str]) -> Minifier:
    return Minifier(
        engine,
        css_minifier=recording_minifier(css_calls),
        svg_minifier=recording_minifier(svg_calls),
    )


def test_find_unsafe_characters() -> None:
    assert find_unsafe_characters("const a = '\xe9';") is None
    assert find_unsafe_characters('const a = "日本";') == "日本"


def test_minify_routes_each_file_type(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "vs/a.js": "export const a = 1;\n\n//# sourceMappingURL=a.js.map",
            "vs/a.js.map": "{}",
            "vs/style.css": ".a { color: red; }",
            "vs/icon.svg": "<svg></svg>",
            "vs/font.ttf": b"\x00\x01binary",
        }
    )
    css_calls: List[str] = []
    svg_calls: List[str] = []
    engine = FakeEngine()

    dest = asyncio.run(_minifier(engine, css_calls, svg_calls).minify(source_tree.path()))

    assert dest == minified_dir(source_tree.path().resolve())
    assert dest.name == "out-build-min"
    output = snapshot_tree(dest)
    assert set(output) == {"vs/a.js", "vs/a.js.map", "vs/style.css", "vs/icon.svg", "vs/font.ttf"}
    assert output["vs/a.js"] == b"export const a = 1;\n//# sourceMappingURL=a.js.map"
    assert json.loads(output["vs/a.js.map"])["mappings"] == "AAAA"
    assert output["vs/style.css"] == b".A { COLOR: RED; }"
    assert output["vs/icon.svg"] == b"<SVG></SVG>"
    assert output["vs/font.ttf"] == b"\x00\x01binary"
    assert css_calls == [".a { color: red; }"]
    assert svg_calls == ["<svg></svg>"]
    assert [request.platform for request in engine.requests] == ["node"]
    assert all(request.minify for request in engine.requests)
    assert all(byte <= 0xFF for byte in output["vs/a.js"])


def test_minify_rejects_non_ascii_output_and_writes_nothing(
    source_tree: SourceTreeBuilder,
) -> None:
    source_tree.write({"vs/a.js": 'const a = "x";', "vs/b.js": "const b = 1;"})
    engine = FakeEngine(minified_overrides={"a.js": 'const a="日";'})

    with pytest.raises(UnsafeOutputError) as excinfo:
        asyncio.run(_minifier(engine, [], []).minify(source_tree.path()))

    assert excinfo.value.character == "日"
    assert excinfo.value.path.name == "a.js"
    assert "日" in str(excinfo.value)
    assert "a.js" in str(excinfo.value)
    assert not minified_dir(source_tree.path().resolve()).exists()


def test_minify_uses_source_map_base_url(source_tree: SourceTreeBuilder) -> None:
    source_tree.write({"vs/a.js": "export const a = 1;"})

    dest = asyncio.run(
        _minifier(FakeEngine(), [], []).minify(
            source_tree.path(), source_map_base_url="https://cdn.test/sourcemaps"
        )
    )

    assert (dest / "vs/a.js").read_text(encoding="utf-8").endswith(
        "//# sourceMappingURL=https://cdn.test/sourcemaps/vs/a.js.map"
    )
