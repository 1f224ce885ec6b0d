"""Second-stage minification of an optimized output directory."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from ..bundler.engine import DEFAULT_TARGET, BuildRequest, BundlerEngine, EngineEntry
from ..concurrency import TaskRunner
from ..errors import BundlerError, UnsafeOutputError
from ..logging import entry_logger, get_logger
from ..models import OutputFile
from ..sourcemaps import write_source_maps
from ..streams import read_files, write_files
from .tools import TextMinifier

_UNSAFE_CHARACTERS = re.compile(r"[^\x00-\xFF]+")


def find_unsafe_characters(text: str) -> Optional[str]:
    """Return the first run of characters outside the single-byte range."""
    match = _UNSAFE_CHARACTERS.search(text)
    return match.group(0) if match else None


def minified_dir(src: Path) -> Path:
    return src.with_name(f"{src.name}-min")


class Minifier:
    """Minifies JS, CSS, and SVG files of ``src`` into a ``-min`` sibling.

    Each file takes exactly one path by extension; other files are copied
    unchanged. Nothing is written unless every file succeeded.
    """

    def __init__(
        self,
        engine: BundlerEngine,
        *,
        css_minifier: TextMinifier,
        svg_minifier: TextMinifier,
        runner: TaskRunner | None = None,
    ) -> None:
        self.engine = engine
        self.css_minifier = css_minifier
        self.svg_minifier = svg_minifier
        self.runner = runner or TaskRunner()
        self.logger = get_logger("minify")

    async def minify(self, src: Path, *, source_map_base_url: str | None = None) -> Path:
        src = src.resolve()
        paths = sorted(path for path in src.rglob("*") if path.is_file() and path.suffix != ".map")
        files = await read_files(paths, src)

        jobs: List[Callable[[], Awaitable[OutputFile]]] = []
        for file in files:
            jobs.append(lambda file=file: self._route(file))
        minified = await self.runner.run_all(jobs)

        finalized = write_source_maps(minified, source_map_base_url=source_map_base_url)
        dest = minified_dir(src)
        await write_files(finalized, dest)
        self.logger.info("Minified %d files into %s", len(files), dest)
        return dest

    async def _route(self, file: OutputFile) -> OutputFile:
        if file.suffix == ".js":
            return await self.minify_js(file)
        if file.suffix == ".css":
            file.contents = (await self.css_minifier(file.text)).encode("utf-8")
        elif file.suffix == ".svg":
            file.contents = (await self.svg_minifier(file.text)).encode("utf-8")
        return file

    async def minify_js(self, file: OutputFile) -> OutputFile:
        request = BuildRequest(
            entry=EngineEntry(source=file.path),
            outdir=file.path.parent,
            minify=True,
            platform="node",
            sourcemap="external",
            target=(DEFAULT_TARGET,),
        )
        entry_logger(self.logger, file.relative).debug("Minifying script")
        response = await self.engine.build(request)
        script = response.find(".js")
        if script is None:
            raise BundlerError(f"No minified output produced for {file.path}")

        unsafe = find_unsafe_characters(script.text)
        if unsafe is not None:
            raise UnsafeOutputError(unsafe[0], file.path)

        source_map = response.find(".js.map")
        file.contents = script.contents
        file.source_map = json.loads(source_map.text) if source_map is not None else None
        return file


__all__ = ["Minifier", "find_unsafe_characters", "minified_dir"]
