"""Post-bundle text rewriting keyed by original input file."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from .config import FileContentMapper
from .models import BundleResult


class ContentRewriter:
    """Applies a ``(text, path) -> text`` mapper to bundled scripts.

    A bundle is one physical file built from many inputs, so the mapper is
    folded over the inputs: each call receives the whole accumulated bundle
    text and one absolute, forward-slash input path.
    """

    def __init__(self, mapper: Optional[FileContentMapper] = None) -> None:
        self.mapper = mapper

    def rewrite(self, text: str, input_paths: Iterable[str]) -> str:
        if self.mapper is None:
            return text
        for input_path in input_paths:
            text = self.mapper(text, _normalise(input_path))
        return text

    def apply(self, result: BundleResult) -> BundleResult:
        if self.mapper is None:
            return result
        for output in result.output_files:
            if output.suffix == ".js":
                output.contents = self.rewrite(output.text, result.input_paths).encode("utf-8")
        return result


def _normalise(input_path: str) -> str:
    return Path(input_path).absolute().as_posix()


__all__ = ["ContentRewriter"]
