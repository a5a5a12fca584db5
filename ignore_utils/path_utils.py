"""Path utility functions for root-relative matching.

This module provides root resolution and containment checks so that
every query is answered relative to one configured root directory.
"""

import os
from pathlib import Path
from typing import List, Optional, Union


def posix_path(path: str) -> str:
    """Convert an OS path to forward-slash form."""
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    return path


def as_dir(path: str) -> str:
    """Return an absolute directory path with exactly one trailing slash."""
    path = posix_path(path)
    return path if path.endswith("/") else path + "/"


def parent_dirs(relative_path: str) -> List[str]:
    """List the ancestor directories of a root-relative path.

    Ancestors are returned root-to-leaf, each with a trailing slash.
    The root itself (``""``) is not included.

    Example:
        >>> parent_dirs("a/b/c.txt")
        ['a/', 'a/b/']
    """
    parts = relative_path.rstrip("/").split("/")[:-1]
    dirs = []
    prefix = ""
    for part in parts:
        prefix = prefix + part + "/"
        dirs.append(prefix)
    return dirs


class PathResolver:
    """Path resolver with containment checks for a root directory.

    This class converts caller-supplied paths into absolute paths and
    root-relative paths, and rejects anything outside the root.

    Example:
        >>> resolver = PathResolver(Path("/workspace"))
        >>> resolver.resolve("subdir/../file.txt")
        PosixPath('/workspace/file.txt')
        >>> resolver.relative_to_root("../../../etc/passwd") is None
        True
    """

    def __init__(self, base_path: Optional[Union[str, os.PathLike]] = None):
        """Initialize the path resolver.

        Args:
            base_path: Root directory; defaults to the current working directory
        """
        base = Path(base_path).expanduser() if base_path is not None else Path.cwd()
        self.base_path = Path(os.path.abspath(base))
        self.root = as_dir(self.base_path.as_posix())

    def resolve(self, relative_path: Union[str, os.PathLike]) -> Path:
        """Convert a path to an absolute path, relative paths joining the root.

        Normalization is lexical (``..`` is collapsed, symlinks are not
        followed), so a symlink is matched under its own name.

        Args:
            relative_path: Absolute path or path relative to the root

        Returns:
            Normalized absolute path
        """
        rel_path = Path(relative_path).expanduser()
        if not rel_path.is_absolute():
            rel_path = self.base_path / rel_path
        return Path(os.path.normpath(rel_path))

    def relative_to_root(self, path: Union[str, os.PathLike]) -> Optional[str]:
        """Return the root-relative form of a path, or None if it is outside.

        The root itself is outside: it has no root-relative name.
        """
        try:
            relative = self.resolve(path).relative_to(self.base_path)
        except ValueError:
            return None
        if not relative.parts:
            return None
        return relative.as_posix()
