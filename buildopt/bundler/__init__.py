"""Bundling engine boundary and the per-entry-point executor."""

from .boilerplate import remove_all_ts_boilerplate
from .engine import BuildRequest, BuildResponse, BundlerEngine, EngineEntry, EngineOutputFile
from .esbuild import EsbuildEngine
from .executor import BundleExecutor

__all__ = [
    "BuildRequest",
    "BuildResponse",
    "BundleExecutor",
    "BundlerEngine",
    "EngineEntry",
    "EngineOutputFile",
    "EsbuildEngine",
    "remove_all_ts_boilerplate",
]
