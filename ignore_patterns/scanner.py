"""Escape-aware scanning of a single gitignore pattern line.

The scanner only deals with line structure: trailing whitespace, comments,
negation, shebang markers, and splitting on unescaped slashes. Turning
segments into regular expressions is the compiler's job.
"""

from dataclasses import dataclass
from typing import List, Optional

SHEBANG_PREFIX = "#!:"


class MalformedPattern(Exception):
    """Raised internally when a pattern cannot be compiled."""


@dataclass
class ScannedLine:
    """Structure of one non-blank, non-comment pattern line.

    Attributes:
        body: Pattern text with ``!`` and surrounding slashes removed
        negated: Line started with an unescaped ``!``
        shebang: Line is a ``#!:interpreter`` content rule
        leading_slash: Body started with ``/``
        directory_only: Body ended with an unescaped ``/``
    """
    body: str
    negated: bool = False
    shebang: bool = False
    leading_slash: bool = False
    directory_only: bool = False


def _escaped(text: str, index: int) -> bool:
    # a character is escaped when preceded by an odd run of backslashes
    count = 0
    index -= 1
    while index >= 0 and text[index] == "\\":
        count += 1
        index -= 1
    return count % 2 == 1


def strip_trailing_whitespace(line: str) -> str:
    """Strip the newline and any unescaped trailing spaces or tabs."""
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]

    end = len(line)
    while end > 0 and line[end - 1] in " \t" and not _escaped(line, end - 1):
        end -= 1
    return line[:end]


def scan_line(line: str) -> Optional[ScannedLine]:
    """Scan a raw pattern line.

    Args:
        line: Raw line, possibly with its newline

    Returns:
        The scanned structure, or None for blank and comment lines
    """
    line = strip_trailing_whitespace(line)
    if not line:
        return None

    if line.startswith(SHEBANG_PREFIX):
        return ScannedLine(body=line[len(SHEBANG_PREFIX):].strip(), shebang=True)
    if line.startswith("#"):
        return None

    scanned = ScannedLine(body=line)
    if scanned.body.startswith("!"):
        scanned.negated = True
        scanned.body = scanned.body[1:]
        if scanned.body.startswith(SHEBANG_PREFIX):
            scanned.shebang = True
            scanned.body = scanned.body[len(SHEBANG_PREFIX):].strip()
            return scanned

    if scanned.body.endswith("/") and not _escaped(scanned.body, len(scanned.body) - 1):
        scanned.directory_only = True
        scanned.body = scanned.body.rstrip("/")
    if scanned.body.startswith("/"):
        scanned.leading_slash = True
        scanned.body = scanned.body.lstrip("/")
    return scanned


def split_segments(body: str) -> List[str]:
    """Split a pattern body on unescaped slashes, dropping empty segments.

    Escapes are kept in the returned segments.

    Raises:
        MalformedPattern: If the body ends with a lone backslash
    """
    segments: List[str] = []
    current: List[str] = []
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\":
            if index + 1 >= len(body):
                raise MalformedPattern("trailing backslash")
            current.append(body[index:index + 2])
            index += 2
            continue
        if char == "/":
            if current:
                segments.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1

    if current:
        segments.append("".join(current))
    return segments
