"""File utility functions for reading pattern files and probing paths.

This module provides the filesystem reader used by the rule engine:
reading pattern files line by line, reading the first line of a
candidate file for shebang rules, and classifying probe errors.
"""

import errno
import logging
import os
import stat
from typing import List, Optional

logger = logging.getLogger(__name__)

# Errors that mean "treat this path as nonexistent" rather than a failure.
PROBE_ERRNOS = frozenset({
    errno.ENOENT,
    errno.EACCES,
    errno.ENOTDIR,
    errno.ELOOP,
    errno.ENAMETOOLONG,
})

FIRST_LINE_LIMIT = 4096


def is_probe_error(error: OSError) -> bool:
    """Check whether an OSError is one the engine maps to "does not exist".

    Args:
        error: The error raised while probing a path

    Returns:
        True if the error is a missing file, permission, not-a-directory,
        symlink loop or name-too-long condition
    """
    return error.errno in PROBE_ERRNOS


def read_lines(path: str) -> List[str]:
    """Read a pattern file into a list of lines.

    A missing file is equivalent to an empty pattern list.

    Args:
        path: Absolute path of the pattern file

    Returns:
        Lines with their newline characters removed
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            lines = f.read().split("\n")
    except OSError as e:
        if not is_probe_error(e) and e.errno != errno.EISDIR:
            raise
        return []

    if lines and lines[-1] == "":
        lines.pop()
    logger.debug("Read %d pattern lines from %s", len(lines), path)
    return lines


def read_first_line(path: str) -> Optional[str]:
    """Read the first line of a file for content-based rules.

    Args:
        path: Absolute path to the file

    Returns:
        The first line without its newline, or None if unreadable
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            line = f.readline(FIRST_LINE_LIMIT)
    except OSError as e:
        if not is_probe_error(e) and e.errno != errno.EISDIR:
            raise
        return None

    return line.rstrip("\r\n")


def is_directory(path: str, follow_symlinks: bool = False) -> bool:
    """Check whether a path is a directory.

    Raises:
        OSError: If the path cannot be probed
    """
    st = os.stat(path) if follow_symlinks else os.lstat(path)
    return stat.S_ISDIR(st.st_mode)
