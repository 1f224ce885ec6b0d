"""Per-locale script variants and message side files."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence

from .errors import AssetReadError
from .logging import get_logger
from .models import LocaleVariant, OutputFile

NLS_SUFFIX = ".nls.json"


class NlsProcessor:
    """Replicates translatable scripts once per configured language.

    A script ``foo.js`` is translatable when the stream also carries
    ``foo.nls.json``, a JSON object of message key to default message. For
    each language the processor adds ``foo.<tag>.js`` with every JSON-quoted
    default message replaced by its translation, ``foo.nls.<tag>.json`` with
    the resolved messages, and one ``nls.messages.<tag>.js`` below ``out``
    holding the messages of all scripts. With no languages the stream is
    returned untouched.
    """

    def __init__(self, out: Path, file_header: str, languages: Sequence[LocaleVariant]) -> None:
        self.out = out
        self.file_header = file_header
        self.languages = list(languages)
        self.logger = get_logger("nls")

    def process(self, files: Iterable[OutputFile]) -> List[OutputFile]:
        files = list(files)
        if not self.languages:
            return files

        catalogs = {
            file.path: self._load_catalog(file)
            for file in files
            if file.path.name.endswith(NLS_SUFFIX)
        }
        result = list(files)
        bundles: Dict[str, Dict[str, Dict[str, str]]] = {lang.tag: {} for lang in self.languages}

        for file in files:
            if file.suffix != ".js":
                continue
            stem = file.path.name[: -len(".js")]
            defaults = catalogs.get(file.path.with_name(f"{stem}{NLS_SUFFIX}"))
            if defaults is None:
                continue
            module = file.relative[: -len(".js")]
            for language in self.languages:
                resolved = {key: language.messages.get(key, value) for key, value in defaults.items()}
                result.append(self._localised_script(file, stem, language.tag, defaults, resolved))
                result.append(
                    OutputFile(
                        path=file.path.with_name(f"{stem}.nls.{language.tag}.json"),
                        contents=json.dumps(resolved, indent=2).encode("utf-8"),
                        base=file.base,
                    )
                )
                bundles[language.tag][module] = resolved

        for language in self.languages:
            payload = json.dumps(bundles[language.tag], sort_keys=True)
            text = f"{self.file_header}\nglobalThis._NLS_MESSAGES={payload};\n"
            result.append(
                OutputFile(
                    path=self.out / f"nls.messages.{language.tag}.js",
                    contents=text.encode("utf-8"),
                    base=self.out,
                )
            )
            self.logger.debug(
                "Localised %d scripts for '%s'", len(bundles[language.tag]), language.tag
            )
        return result

    @staticmethod
    def _localised_script(
        file: OutputFile,
        stem: str,
        tag: str,
        defaults: Mapping[str, str],
        resolved: Mapping[str, str],
    ) -> OutputFile:
        text = file.text
        for key, default in defaults.items():
            localised = resolved[key]
            if localised == default:
                continue
            # Escaped so localized variants stay within the single-byte range.
            text = text.replace(
                json.dumps(default, ensure_ascii=False), json.dumps(localised, ensure_ascii=True)
            )
        path = file.path.with_name(f"{stem}.{tag}.js")
        source_map = copy.deepcopy(file.source_map) if file.source_map is not None else None
        if source_map is not None:
            source_map["file"] = path.name
        return OutputFile(path=path, contents=text.encode("utf-8"), base=file.base, source_map=source_map)

    @staticmethod
    def _load_catalog(file: OutputFile) -> Dict[str, str]:
        try:
            data = json.loads(file.text)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise AssetReadError(file.path, f"invalid message catalog: {exc}") from exc
        if not isinstance(data, dict):
            raise AssetReadError(file.path, "message catalog must be a JSON object")
        return {str(key): str(value) for key, value in data.items()}


__all__ = ["NLS_SUFFIX", "NlsProcessor"]
