"""Bundling engine backed by the esbuild command line."""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import BundlerError
from ..logging import get_logger
from .engine import BuildRequest, BuildResponse, EngineOutputFile, LoadTransform

# Linux rejects a single exec argument over 128 KiB; larger banners are
# prepended to the engine output instead of passed on the command line.
MAX_BANNER_ARGUMENT_BYTES = 64 * 1024


class EsbuildEngine:
    """Runs esbuild as a subprocess and captures its output in memory.

    esbuild writes into a private temporary directory and the results are read
    back, so the requested ``outdir`` is never touched. A ``load_transform``
    is applied by building from a transformed mirror of the source tree; the
    mirror is created once per source root and reused until :meth:`close`.
    """

    ENV_BINARY_KEYS = ("BUILDOPT_ESBUILD", "ESBUILD_BINARY")

    def __init__(self, executable: str | None = None) -> None:
        self.executable = executable or self._first_env_value(self.ENV_BINARY_KEYS) or "esbuild"
        self.logger = get_logger("esbuild")
        self._staging_dir: Optional[tempfile.TemporaryDirectory[str]] = None
        self._staged: Dict[Tuple[Path, int], Path] = {}
        self._stage_lock = asyncio.Lock()

    async def __aenter__(self) -> "EsbuildEngine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._staging_dir is not None:
            self._staging_dir.cleanup()
            self._staging_dir = None
        self._staged.clear()

    async def build(self, request: BuildRequest) -> BuildResponse:
        input_root = (request.working_dir or request.outdir).resolve()
        entry_source = request.entry.source.resolve()
        cwd = input_root
        if request.load_transform is not None:
            cwd = await self._stage(input_root, request.load_transform)
            entry_source = cwd / entry_source.relative_to(input_root)
        inline_banner, deferred_banner = split_banner(request.banner)

        with tempfile.TemporaryDirectory(prefix="buildopt-esbuild-") as tmp:
            tmp_root = Path(tmp).resolve()
            tmp_out = tmp_root / "out"
            metafile = tmp_root / "meta.json"
            args = self._build_args(request, entry_source, tmp_out, metafile, banner=inline_banner)
            await self._run(args, cwd)

            try:
                meta = json.loads(metafile.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise BundlerError(f"esbuild produced no readable metafile: {exc}") from exc

            inputs: Dict[str, Dict[str, object]] = {}
            for key, info in (meta.get("inputs") or {}).items():
                real = self._unstage(cwd / key, cwd, input_root)
                inputs[real.as_posix()] = info if isinstance(info, dict) else {}

            output_files: List[EngineOutputFile] = []
            for key in meta.get("outputs") or {}:
                produced = (cwd / key).resolve()
                relative = produced.relative_to(tmp_out)
                destination = request.outdir / relative
                contents = produced.read_bytes()
                if produced.name.endswith(".map"):
                    contents = self._relocate_map(
                        contents, produced.parent, destination.parent, cwd, input_root
                    )
                    banner = deferred_banner.get(_banner_kind(produced.name[: -len(".map")]))
                    if banner is not None:
                        contents = _shift_map(contents, banner.count("\n") + 1)
                else:
                    banner = deferred_banner.get(_banner_kind(produced.name))
                    if banner is not None:
                        contents = f"{banner}\n".encode("utf-8") + contents
                output_files.append(EngineOutputFile(path=destination, contents=contents))

        return BuildResponse(output_files=output_files, inputs=inputs)

    def _build_args(
        self,
        request: BuildRequest,
        entry_source: Path,
        outdir: Path,
        metafile: Path,
        *,
        banner: Optional[Mapping[str, str]] = None,
    ) -> List[str]:
        entry_arg = str(entry_source)
        if request.entry.output:
            entry_arg = f"{request.entry.output}={entry_source}"
        args = [
            self.executable,
            entry_arg,
            f"--outdir={outdir}",
            f"--metafile={metafile}",
            f"--platform={request.platform}",
            "--log-level=warning",
        ]
        if request.bundle:
            args.append("--bundle")
        if request.minify:
            args.append("--minify")
        if request.packages:
            args.append(f"--packages={request.packages}")
        if request.format:
            args.append(f"--format={request.format}")
        if request.sourcemap:
            args.append(f"--sourcemap={request.sourcemap}")
        if request.target:
            args.append(f"--target={','.join(request.target)}")
        if request.asset_names:
            args.append(f"--asset-names={request.asset_names}")
        args.extend(f"--external:{module}" for module in request.external)
        args.extend(f"--loader:{ext}={kind}" for ext, kind in request.loader.items())
        banner = request.banner if banner is None else banner
        args.extend(f"--banner:{kind}={text}" for kind, text in banner.items())
        return args

    async def _run(self, args: Sequence[str], cwd: Path) -> None:
        self.logger.debug("Running %s in %s", " ".join(args[:2]), cwd)
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise BundlerError(
                f"Unable to locate '{self.executable}'. Install esbuild or set ESBUILD_BINARY."
            ) from exc
        except OSError as exc:
            raise BundlerError(f"Unable to run '{self.executable}': {exc}") from exc
        try:
            _, stderr = await process.communicate()
        except BaseException:
            # Cancelled because a sibling build failed; the child must not outlive the stage.
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise BundlerError(f"esbuild failed with exit code {process.returncode}: {detail}")

    async def _stage(self, root: Path, transform: LoadTransform) -> Path:
        key = (root, id(transform))
        async with self._stage_lock:
            staged = self._staged.get(key)
            if staged is None:
                if self._staging_dir is None:
                    self._staging_dir = tempfile.TemporaryDirectory(prefix="buildopt-stage-")
                staged = Path(self._staging_dir.name).resolve() / str(len(self._staged))
                self.logger.debug("Staging transformed sources from %s", root)
                await asyncio.to_thread(_mirror_tree, root, staged, transform)
                self._staged[key] = staged
        return staged

    @staticmethod
    def _unstage(path: Path, staged_root: Path, input_root: Path) -> Path:
        resolved = path.resolve()
        try:
            return input_root / resolved.relative_to(staged_root)
        except ValueError:
            return resolved

    def _relocate_map(
        self,
        contents: bytes,
        produced_dir: Path,
        destination_dir: Path,
        staged_root: Path,
        input_root: Path,
    ) -> bytes:
        """Make map ``sources`` relative to the destination instead of the temp dir."""
        try:
            payload = json.loads(contents.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return contents
        sources = payload.get("sources")
        if not isinstance(sources, list):
            return contents
        relocated = []
        for source in sources:
            if not isinstance(source, str) or ":" in source:
                relocated.append(source)
                continue
            real = self._unstage(produced_dir / source, staged_root, input_root)
            relocated.append(Path(os.path.relpath(real, destination_dir)).as_posix())
        payload["sources"] = relocated
        return json.dumps(payload).encode("utf-8")

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


def _mirror_tree(root: Path, target: Path, transform: LoadTransform) -> None:
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        destination = target / path.relative_to(root)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix == ".js":
            destination.write_text(transform(path.read_text(encoding="utf-8")), encoding="utf-8")
        else:
            shutil.copy2(path, destination)


def split_banner(banner: Mapping[str, str]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Split banners into those safe to pass as arguments and those too large to."""
    inline: Dict[str, str] = {}
    deferred: Dict[str, str] = {}
    for kind, text in banner.items():
        if len(text.encode("utf-8")) > MAX_BANNER_ARGUMENT_BYTES:
            deferred[kind] = text
        else:
            inline[kind] = text
    return inline, deferred


def _banner_kind(name: str) -> str:
    return name.rpartition(".")[2]


def _shift_map(contents: bytes, lines: int) -> bytes:
    """Move every mapping down by ``lines`` generated lines."""
    try:
        payload = json.loads(contents.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return contents
    payload["mappings"] = ";" * lines + str(payload.get("mappings", ""))
    return json.dumps(payload).encode("utf-8")


__all__ = ["MAX_BANNER_ARGUMENT_BYTES", "EsbuildEngine", "split_banner"]
