"""Tests for compiler boilerplate stripping."""

from __future__ import annotations

from buildopt.bundler.boilerplate import remove_all_ts_boilerplate, remove_duplicate_ts_boilerplate

SOURCE = "\n".join(
    [
        'import { x } from "./x.js";',
        "var __decorate = (this && this.__decorate) || function (decorators, target, key, desc) {",
        "    var c = arguments.length;",
        "    return c;",
        "};",
        "var __param = (this && this.__param) || function (paramIndex, decorator) {",
        "    return function (target, key) { decorator(target, key, paramIndex); }",
        "};",
        "export const value = x + 1;",
    ]
)


def test_remove_all_boilerplate_blanks_helpers_and_keeps_line_count() -> None:
    stripped = remove_all_ts_boilerplate(SOURCE)

    lines = stripped.split("\n")
    assert len(lines) == len(SOURCE.split("\n"))
    assert lines[0] == 'import { x } from "./x.js";'
    assert lines[1:8] == [""] * 7
    assert lines[8] == "export const value = x + 1;"
    assert "__decorate" not in stripped
    assert "__param" not in stripped


def test_remove_all_boilerplate_is_idempotent() -> None:
    once = remove_all_ts_boilerplate(SOURCE.replace("\n", "\r\n"))
    assert remove_all_ts_boilerplate(once) == once


def test_remove_all_boilerplate_leaves_plain_code_untouched() -> None:
    code = "export function f() {\n    return 1;\n}\n"
    assert remove_all_ts_boilerplate(code) == code


def test_remove_duplicate_boilerplate_keeps_first_occurrence() -> None:
    doubled = SOURCE + "\n" + SOURCE

    stripped = remove_duplicate_ts_boilerplate(doubled)

    assert stripped.count("var __decorate") == 1
    assert stripped.count("var __param") == 1
    assert stripped.count("export const value") == 2
