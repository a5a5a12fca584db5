"""Gitignore pattern parsing and compilation.

Turns gitignore pattern lines into compiled rules and describes the
sources those lines come from.
"""

from .compiler import compile_pattern, expand_path_pattern
from .scanner import scan_line, split_segments, strip_trailing_whitespace
from .sources import PatternFormat, PatternSource

__all__ = [
    "compile_pattern",
    "expand_path_pattern",
    "scan_line",
    "split_segments",
    "strip_trailing_whitespace",
    "PatternFormat",
    "PatternSource",
]
