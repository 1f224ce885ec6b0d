"""Per-entry-point bundling through the external engine."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..concurrency import TaskRunner
from ..config import DEFAULT_FILE_HEADER
from ..errors import AssetReadError, BundlerError
from ..logging import entry_logger, get_logger
from ..models import BundleResult, EntryPoint, OutputFile
from .boilerplate import remove_all_ts_boilerplate
from .engine import DEFAULT_TARGET, BuildRequest, BundlerEngine, EngineEntry

ASSET_LOADERS: Dict[str, str] = {
    ".ttf": "file",
    ".svg": "file",
    ".png": "file",
    ".sh": "file",
}

# Relocates file-loaded assets into a "media" sub-folder of the output.
ASSET_NAMES = "media/[name]"


class BundleExecutor:
    """Bundles every entry point into in-memory :class:`OutputFile` records."""

    def __init__(
        self,
        engine: BundlerEngine,
        src: Path,
        *,
        shim: Optional[Path] = None,
        header: str = DEFAULT_FILE_HEADER,
        runner: TaskRunner | None = None,
    ) -> None:
        self.engine = engine
        self.src = src
        self.shim = shim
        self.header = header
        self.runner = runner or TaskRunner()
        self.logger = get_logger("bundle")

    async def bundle_all(self, entry_points: Sequence[EntryPoint]) -> List[BundleResult]:
        """Bundle all entry points; any single failure fails the whole stage."""
        jobs = [lambda entry=entry: self.bundle(entry) for entry in entry_points]
        return await self.runner.run_all(jobs)

    async def bundle(self, entry: EntryPoint) -> BundleResult:
        log = entry_logger(self.logger, entry.name)
        log.info("Bundling")
        request = BuildRequest(
            entry=EngineEntry(source=self.src / f"{entry.name}.js", output=entry.output_name),
            outdir=self.src,
            bundle=True,
            packages="external",
            platform="neutral",
            format="esm",
            sourcemap="external",
            target=(DEFAULT_TARGET,),
            external=tuple(entry.exclude),
            banner=await self.build_banner(entry) if entry.banner else {},
            loader=ASSET_LOADERS,
            asset_names=ASSET_NAMES,
            load_transform=remove_all_ts_boilerplate,
        )
        try:
            response = await self.engine.build(request)
        except BundlerError as exc:
            raise BundlerError(f"Bundling '{entry.name}' failed: {exc}", entry=entry.name) from exc

        maps = {output.path: output for output in response.output_files if output.path.suffix == ".map"}
        attached = set()
        files: List[OutputFile] = []
        for output in response.output_files:
            source_map = None
            if output.path.suffix == ".js":
                map_output = maps.get(output.path.with_name(f"{output.path.name}.map"))
                if map_output is None:
                    log.debug("No source map produced for %s", output.path.name)
                else:
                    source_map = json.loads(map_output.text)
                    attached.add(map_output.path)
            files.append(
                OutputFile(
                    path=output.path,
                    contents=output.contents,
                    base=self.src,
                    source_map=source_map,
                )
            )

        # Attached maps are re-emitted by the source map finalizer.
        files = [file for file in files if file.path not in attached]
        log.debug("Produced %d files", len(files))
        return BundleResult(
            entry=entry.name,
            output_files=files,
            input_paths=list(response.inputs),
        )

    async def build_banner(self, entry: EntryPoint) -> Dict[str, str]:
        """Return the per-file-type banner: header, shim, then prepends in order."""
        js_banner = self.header
        if self.shim is not None:
            js_banner += await read_text(self.shim)
        for item in entry.prepend:
            js_banner += await read_text(self.src / item.path) + "\n"
        return {"js": js_banner, "css": self.header}


async def read_text(path: Path) -> str:
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise AssetReadError(path, str(exc)) from exc


__all__ = ["ASSET_LOADERS", "ASSET_NAMES", "BundleExecutor", "read_text"]
