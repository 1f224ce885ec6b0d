"""Tests for buildopt logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from buildopt.logging import configure_logging, entry_logger, get_logger


@pytest.fixture(autouse=True)
def _reset_buildopt_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("buildopt")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_records_are_prefixed_with_their_entry_point(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    entry_logger(get_logger("bundle"), "vs/workbench/main").info("Bundling")
    get_logger("orchestrator").info("Wrote %d files", 3)

    lines = capsys.readouterr().err.splitlines()
    assert lines == [
        "[buildopt] INFO [vs/workbench/main] Bundling",
        "[buildopt] INFO Wrote 3 files",
    ]


def test_debug_records_need_verbose(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()
    get_logger("nls").debug("hidden")
    assert capsys.readouterr().err == ""

    configure_logging(verbose=True)
    get_logger("nls").debug("shown")
    assert capsys.readouterr().err == "[buildopt] DEBUG shown\n"


def test_log_file_receives_logger_name_and_entry(tmp_path: Path) -> None:
    log_file = tmp_path / "build.log"
    configure_logging(verbose=True, log_file=log_file)

    entry_logger(get_logger("minify"), "vs/a.js").debug("Minifying script")
    for handler in logging.getLogger("buildopt").handlers:
        handler.flush()

    assert log_file.read_text(encoding="utf-8").rstrip().endswith(
        "DEBUG buildopt.minify [vs/a.js] Minifying script"
    )
