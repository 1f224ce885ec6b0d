"""Default CSS and SVG minifiers, run as external ``stdin -> stdout`` filters."""

from __future__ import annotations

import asyncio
import contextlib
import os
from typing import Awaitable, Callable, Sequence

from ..errors import ExternalToolError

TextMinifier = Callable[[str], Awaitable[str]]


class PipeMinifier:
    """Feeds text to an external command on stdin and returns its stdout."""

    def __init__(self, args: Sequence[str], *, name: str) -> None:
        self.args = list(args)
        self.name = name

    async def __call__(self, text: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise ExternalToolError(
                f"Unable to locate '{self.args[0]}' for {self.name} minification."
            ) from exc
        except OSError as exc:
            raise ExternalToolError(f"Unable to run '{self.args[0]}': {exc}") from exc
        try:
            stdout, stderr = await process.communicate(text.encode("utf-8"))
        except BaseException:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise ExternalToolError(
                f"{self.name} minifier failed with exit code {process.returncode}: {detail}"
            )
        return stdout.decode("utf-8")


def css_minifier(executable: str | None = None) -> TextMinifier:
    """CSS minification through the bundling engine's CSS minify mode."""
    binary = executable or os.getenv("ESBUILD_BINARY") or "esbuild"
    return PipeMinifier([binary, "--loader=css", "--minify", "--log-level=warning"], name="CSS")


def svg_minifier(executable: str | None = None) -> TextMinifier:
    """SVG minification through svgo with its default plugin preset."""
    binary = executable or os.getenv("SVGO_BINARY") or "svgo"
    return PipeMinifier([binary, "--input", "-", "--output", "-"], name="SVG")


__all__ = ["PipeMinifier", "TextMinifier", "css_minifier", "svg_minifier"]
