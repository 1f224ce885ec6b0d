"""Minification stage and its external CSS/SVG tools."""

from .minifier import Minifier, find_unsafe_characters, minified_dir
from .tools import PipeMinifier, TextMinifier, css_minifier, svg_minifier

__all__ = [
    "Minifier",
    "PipeMinifier",
    "TextMinifier",
    "css_minifier",
    "find_unsafe_characters",
    "minified_dir",
    "svg_minifier",
]
