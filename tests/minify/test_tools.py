"""Tests for the external stdin/stdout minifier wrapper."""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import pytest

from buildopt.errors import ExternalToolError
from buildopt.minify.tools import PipeMinifier


def test_pipe_minifier_returns_tool_stdout() -> None:
    minifier = PipeMinifier(
        [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"],
        name="CSS",
    )

    assert asyncio.run(minifier(".a { color: red; }")) == ".A { COLOR: RED; }"


def test_pipe_minifier_reports_tool_failure() -> None:
    minifier = PipeMinifier(
        [sys.executable, "-c", "import sys; sys.stderr.write('bad svg'); sys.exit(3)"],
        name="SVG",
    )

    with pytest.raises(ExternalToolError, match="exit code 3: bad svg"):
        asyncio.run(minifier("<svg/>"))


def test_cancelled_pipe_minifier_kills_the_tool(tmp_path: Path) -> None:
    pid_file = tmp_path / "tool.pid"
    script = (
        "import os, sys, time\n"
        f"with open({str(pid_file)!r}, 'w') as handle:\n"
        "    handle.write(str(os.getpid()))\n"
        "time.sleep(30)\n"
    )
    minifier = PipeMinifier([sys.executable, "-c", script], name="CSS")

    async def _cancel_once_started() -> None:
        task = asyncio.ensure_future(minifier(".a {}"))
        while not pid_file.exists() or not pid_file.read_text(encoding="utf-8"):
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_cancel_once_started())

    with pytest.raises(ProcessLookupError):
        os.kill(int(pid_file.read_text(encoding="utf-8")), 0)
