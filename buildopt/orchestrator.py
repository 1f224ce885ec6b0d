"""Pipeline orchestration for the optimize and minify tasks."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List

from .bundler import BundleExecutor, BundlerEngine, EsbuildEngine
from .concurrency import TaskRunner
from .config import DEFAULT_FILE_HEADER, OptimizeOptions
from .entrypoints import resolve_entry_points
from .logging import get_logger
from .manual import concatenate
from .minify import Minifier, TextMinifier, css_minifier, svg_minifier
from .models import OutputFile
from .nls import NlsProcessor
from .rewrite import ContentRewriter
from .sourcemaps import write_source_maps
from .streams import merge_streams, read_resources, write_files


class Optimizer:
    """Coordinates the bundling pipeline and the separate minify stage.

    Stages of :meth:`optimize`: resolve entry points, bundle them, rewrite
    bundle contents, merge with copied resources, add locale variants,
    finalize source maps, append manual concatenations, write to ``out``.
    Any failure aborts the run before anything is written.
    """

    def __init__(
        self,
        engine: BundlerEngine | None = None,
        *,
        css_minifier: TextMinifier | None = None,
        svg_minifier: TextMinifier | None = None,
    ) -> None:
        self._engine = engine
        self._css_minifier = css_minifier
        self._svg_minifier = svg_minifier
        self.logger = get_logger("orchestrator")

    async def optimize(self, options: OptimizeOptions) -> List[OutputFile]:
        bundle_options = options.bundle
        src = bundle_options.src
        self.logger.info("Optimizing %s into %s", src, options.out)

        entry_points, mentioned = resolve_entry_points(
            bundle_options.entry_points, options.commonjs
        )
        self.logger.debug(
            "Resolved %d entry points mentioning %d modules",
            len(entry_points),
            len(mentioned),
        )
        targets = [entry for entry in entry_points if entry.name in mentioned]
        for entry in entry_points:
            if entry.name not in mentioned:
                self.logger.debug("Skipping meta-module '%s'", entry.name)

        runner = TaskRunner(serial=options.serial)
        engine = self._engine or EsbuildEngine()
        try:
            executor = BundleExecutor(engine, src, shim=bundle_options.shim, runner=runner)
            results = await executor.bundle_all(targets)
        finally:
            if self._engine is None:
                engine.close()

        rewriter = ContentRewriter(bundle_options.file_content_mapper)
        bundled = [file for result in results for file in rewriter.apply(result).output_files]
        resources = await read_resources(bundle_options.resources, src)
        merged = merge_streams(bundled, resources)

        nls = NlsProcessor(
            out=src,
            file_header=bundle_options.header or DEFAULT_FILE_HEADER,
            languages=bundle_options.languages,
        )
        files = write_source_maps(nls.process(merged))

        if options.manual:
            files = merge_streams(files, await concatenate(options.manual, options.root))

        await write_files(files, options.out)
        self.logger.info("Wrote %d files to %s", len(files), options.out)
        return files

    async def minify(
        self,
        src: Path,
        *,
        source_map_base_url: str | None = None,
        serial: bool = False,
    ) -> Path:
        engine = self._engine or EsbuildEngine()
        minifier = Minifier(
            engine,
            css_minifier=self._css_minifier or css_minifier(),
            svg_minifier=self._svg_minifier or svg_minifier(),
            runner=TaskRunner(serial=serial),
        )
        try:
            return await minifier.minify(src, source_map_base_url=source_map_base_url)
        finally:
            if self._engine is None:
                engine.close()

    def run_optimize(self, options: OptimizeOptions) -> List[OutputFile]:
        return asyncio.run(self.optimize(options))

    def run_minify(
        self, src: Path, *, source_map_base_url: str | None = None, serial: bool = False
    ) -> Path:
        return asyncio.run(
            self.minify(src, source_map_base_url=source_map_base_url, serial=serial)
        )


__all__ = ["Optimizer"]
