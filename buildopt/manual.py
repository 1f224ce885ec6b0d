"""Verbatim concatenation for assets the bundler must not touch."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from .logging import get_logger
from .models import ManualGroup, OutputFile
from .streams import expand_globs, read_files

logger = get_logger("manual")


async def concatenate(groups: Iterable[ManualGroup], root: Path) -> List[OutputFile]:
    """Produce one file per group: matched files joined in glob order, no separator."""
    outputs: List[OutputFile] = []
    for group in groups:
        sources = await read_files(expand_globs(group.src, root), root)
        contents = b"".join(source.contents for source in sources)
        logger.debug("Concatenated %d files into %s", len(sources), group.out)
        outputs.append(OutputFile(path=root / group.out, contents=contents, base=root))
    return outputs


__all__ = ["concatenate"]
