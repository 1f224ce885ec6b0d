"""Configuration loading for buildopt (optimize.yml)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import yaml

from .errors import OptimizeError
from .models import EntryPoint, LocaleVariant, ManualGroup, PrependItem

CONFIG_FILENAME = "optimize.yml"

DEFAULT_FILE_HEADER = "\n".join(
    [
        "/*!--------------------------------------------------------",
        " * Copyright (C) Microsoft Corporation. All rights reserved.",
        " *--------------------------------------------------------*/",
    ]
)

FileContentMapper = Callable[[str, str], str]


class ConfigError(OptimizeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class CommonJSOptions:
    """Secondary list of plain module paths bundled like entry points."""

    entry_points: List[str] = field(default_factory=list)


@dataclass
class BundleOptions:
    """Settings for the bundling half of the optimize task."""

    src: Path
    entry_points: List[EntryPoint] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)
    header: Optional[str] = None
    shim: Optional[Path] = None
    languages: List[LocaleVariant] = field(default_factory=list)
    file_content_mapper: Optional[FileContentMapper] = None


@dataclass
class OptimizeOptions:
    """Represents the settings defined in optimize.yml."""

    root: Path
    out: Path
    bundle: BundleOptions
    commonjs: Optional[CommonJSOptions] = None
    manual: List[ManualGroup] = field(default_factory=list)
    serial: bool = False


def load_config(config_path: Path) -> OptimizeOptions:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    src_value = _as_str(data.get("src"))
    if not src_value:
        raise ConfigError("'src' is required")
    out_value = _as_str(data.get("out"))
    if not out_value:
        raise ConfigError("'out' is required")

    shim_value = _as_str(data.get("shim"))
    bundle = BundleOptions(
        src=(root / src_value).resolve(),
        entry_points=[_parse_entry_point(item) for item in _as_list(data.get("entry_points"))],
        resources=_as_str_list(data.get("resources")),
        header=_as_str(data.get("header")),
        shim=(root / shim_value).resolve() if shim_value else None,
        languages=[_parse_language(item, root) for item in _as_list(data.get("languages"))],
    )

    commonjs = None
    commonjs_data = _as_dict(data.get("commonjs"))
    if commonjs_data:
        commonjs = CommonJSOptions(entry_points=_as_str_list(commonjs_data.get("entry_points")))

    manual = [_parse_manual_group(item) for item in _as_list(data.get("manual"))]

    return OptimizeOptions(
        root=root,
        out=(root / out_value).resolve(),
        bundle=bundle,
        commonjs=commonjs,
        manual=manual,
        serial=bool(data.get("serial", False)),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _parse_entry_point(value: Any) -> EntryPoint:
    if isinstance(value, str):
        return EntryPoint(name=value)
    data = _as_dict(value)
    if not data:
        raise ConfigError(f"Invalid entry point: {value!r}")
    name = _as_str(data.get("name")) or ""
    prepend: List[PrependItem] = []
    for item in _as_list(data.get("prepend")):
        if isinstance(item, str):
            prepend.append(PrependItem(path=item))
        elif isinstance(item, dict) and isinstance(item.get("path"), str):
            prepend.append(PrependItem(path=item["path"]))
        else:
            raise ConfigError(f"Invalid prepend item for '{name}': {item!r}")
    banner = data.get("banner", True)
    if not isinstance(banner, bool):
        raise ConfigError(f"'banner' must be a boolean for '{name}'")
    return EntryPoint(
        name=name,
        dest=_as_str(data.get("dest")),
        include=_as_str_list(data.get("include")),
        exclude=_as_str_list(data.get("exclude")),
        prepend=prepend,
        banner=banner,
    )


def _parse_language(value: Any, root: Path) -> LocaleVariant:
    if isinstance(value, str):
        return LocaleVariant(tag=value)
    data = _as_dict(value)
    tag = _as_str(data.get("tag"))
    if not tag:
        raise ConfigError(f"Language entry requires a 'tag': {value!r}")
    messages: Dict[str, str] = {}
    messages_file = _as_str(data.get("messages_file"))
    if messages_file:
        path = root / messages_file
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Failed to load messages for '{tag}' from {path}: {exc}") from exc
        messages.update(_as_messages(loaded, tag))
    messages.update(_as_messages(data.get("messages"), tag))
    return LocaleVariant(tag=tag, messages=messages)


def _parse_manual_group(value: Any) -> ManualGroup:
    data = _as_dict(value)
    out = _as_str(data.get("out"))
    src = _as_str_list(data.get("src"))
    if not out or not src:
        raise ConfigError(f"Manual groups require 'src' and 'out': {value!r}")
    return ManualGroup(src=tuple(src), out=out)


def _as_messages(value: Any, tag: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Messages for '{tag}' must be a mapping")
    return {str(key): str(message) for key, message in value.items()}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    raise ConfigError(f"Expected a list, got {type(value).__name__}")


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "BundleOptions",
    "CommonJSOptions",
    "ConfigError",
    "DEFAULT_FILE_HEADER",
    "FileContentMapper",
    "OptimizeOptions",
    "load_config",
]
