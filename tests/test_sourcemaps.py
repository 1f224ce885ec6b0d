"""Tests for external source map emission."""

from __future__ import annotations

import json
from pathlib import Path

from buildopt.models import OutputFile
from buildopt.sourcemaps import write_source_maps


def _mapped(tmp_path: Path, name: str = "vs/a.js", **map_fields: object) -> OutputFile:
    source_map = {"version": 3, "sources": ["a.ts"], "mappings": "AAAA", "sourceRoot": "/x"}
    source_map.update(map_fields)
    return OutputFile(
        path=tmp_path / name,
        contents=b"code();",
        base=tmp_path,
        source_map=source_map,
    )


def test_write_source_maps_emits_sibling_map_and_comment(tmp_path: Path) -> None:
    file = _mapped(tmp_path, sourcesContent=["let a = 1;"])

    script, source_map = write_source_maps([file])

    assert script.contents == b"code();\n//# sourceMappingURL=a.js.map"
    assert script.source_map is None
    assert source_map.path == tmp_path / "vs/a.js.map"
    payload = json.loads(source_map.contents)
    assert "sourceRoot" not in payload
    assert payload["file"] == "a.js"
    assert payload["sourcesContent"] == ["let a = 1;"]


def test_write_source_maps_embeds_missing_source_content(tmp_path: Path) -> None:
    (tmp_path / "vs").mkdir()
    (tmp_path / "vs/a.ts").write_text("const a: number = 1;\n", encoding="utf-8")

    _, source_map = write_source_maps([_mapped(tmp_path)])

    payload = json.loads(source_map.contents)
    assert payload["sourcesContent"] == ["const a: number = 1;\n"]


def test_write_source_maps_uses_base_url_and_css_comment(tmp_path: Path) -> None:
    file = _mapped(tmp_path, name="vs/style.css", sourcesContent=[".a{}"])

    style, _ = write_source_maps([file], source_map_base_url="https://cdn.test/maps/")

    assert style.contents.endswith(b"\n/*# sourceMappingURL=https://cdn.test/maps/vs/style.css.map */")


def test_write_source_maps_passes_unmapped_files_through(tmp_path: Path) -> None:
    plain = OutputFile(path=tmp_path / "icon.svg", contents=b"<svg/>", base=tmp_path)
    assert write_source_maps([plain]) == [plain]
