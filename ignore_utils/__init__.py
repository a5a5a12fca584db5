"""Utility modules for fast_ignore.

This package contains the thin I/O collaborators the rule engine relies
on: file reading, path resolution, git config parsing and the
exceptions raised at construction time.
"""

from .errors import FastIgnoreError, GitconfigParseError
from .file_utils import is_directory, is_probe_error, read_first_line, read_lines
from .gitconfig import GitconfigParser, global_gitignore_path
from .path_utils import PathResolver, as_dir, parent_dirs, posix_path

__all__ = [
    "FastIgnoreError",
    "GitconfigParseError",
    "is_directory",
    "is_probe_error",
    "read_first_line",
    "read_lines",
    "GitconfigParser",
    "global_gitignore_path",
    "PathResolver",
    "as_dir",
    "parent_dirs",
    "posix_path",
]
