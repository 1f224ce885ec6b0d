"""External source map emission for files carrying a parsed map."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .logging import get_logger
from .models import OutputFile

logger = get_logger("sourcemaps")


def write_source_maps(
    files: Iterable[OutputFile], *, source_map_base_url: Optional[str] = None
) -> List[OutputFile]:
    """Return the stream with a ``.map`` file emitted after every mapped file.

    Maps embed their sources and carry no ``sourceRoot``. The code file gets a
    trailing reference comment, pointing at ``<base-url>/<relative>.map`` when
    a base URL is given and at the sibling map otherwise.
    """
    result: List[OutputFile] = []
    emitted = 0
    for file in files:
        if file.source_map is None:
            result.append(file)
            continue
        map_path = file.path.with_name(f"{file.path.name}.map")
        payload = _finalise_map(file.source_map, file.path)
        comment = _reference_comment(file, map_path.name, source_map_base_url)
        result.append(replace(file, contents=file.contents + comment, source_map=None))
        result.append(
            OutputFile(
                path=map_path,
                contents=json.dumps(payload).encode("utf-8"),
                base=file.base,
            )
        )
        emitted += 1
    logger.debug("Emitted %d source maps", emitted)
    return result


def _finalise_map(source_map: Dict[str, Any], code_path: Path) -> Dict[str, Any]:
    payload = dict(source_map)
    payload.pop("sourceRoot", None)
    payload["file"] = code_path.name
    sources = payload.get("sources") or []
    contents = list(payload.get("sourcesContent") or [])
    contents.extend([None] * (len(sources) - len(contents)))
    for index, source in enumerate(sources):
        if contents[index] is None and isinstance(source, str):
            contents[index] = _read_source(code_path.parent / source)
    payload["sourcesContent"] = contents
    return payload


def _read_source(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Source content unavailable for %s", path)
        return None


def _reference_comment(file: OutputFile, map_name: str, base_url: Optional[str]) -> bytes:
    url = f"{base_url.rstrip('/')}/{file.relative}.map" if base_url else map_name
    if file.suffix == ".css":
        return f"\n/*# sourceMappingURL={url} */".encode("utf-8")
    return f"\n//# sourceMappingURL={url}".encode("utf-8")


__all__ = ["write_source_maps"]
