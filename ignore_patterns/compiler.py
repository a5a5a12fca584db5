"""Gitignore pattern compiler.

This module translates one gitignore pattern line into a compiled rule.
The glob dialect is exactly the one gitignore uses:

- ``*`` matches any run of characters except ``/``
- ``?`` matches one character except ``/``
- ``[...]`` is a character class (``!``/``^`` negation, ranges, POSIX classes)
- ``**/`` matches zero or more whole segments, a trailing ``/**`` matches
  everything inside, and ``**`` anywhere else behaves like ``*``
- a backslash makes the next character literal

Patterns that cannot be compiled never raise: they become ``Unmatchable``.

Example:
    >>> rule = compile_pattern("*.log", root="/repo/")
    >>> rule.regex.pattern
    '\\\\A(?:.*/)?[^/]*\\\\.log\\\\Z'
"""

import logging
import os
import re
from typing import List, Optional, Tuple

from ignore_rules.matchers import ContentMatcher, PathMatcher, Rule, Unmatchable
from ignore_utils.path_utils import as_dir, posix_path

from .scanner import MalformedPattern, ScannedLine, scan_line, split_segments

logger = logging.getLogger(__name__)

GLOBSTAR = "**"
ANY_SEGMENTS = "(?:.*/)?"

POSIX_CLASSES = {
    "alnum": "a-zA-Z0-9",
    "alpha": "a-zA-Z",
    "blank": " \\t",
    "cntrl": "\\x00-\\x1f\\x7f",
    "digit": "0-9",
    "graph": "!-~",
    "lower": "a-z",
    "print": " -~",
    "punct": "!-/:-@\\[-`{-~",
    "space": " \\t\\n\\r\\f\\v",
    "upper": "A-Z",
    "xdigit": "0-9A-Fa-f",
}


def _class_regex(segment: str, start: int) -> Tuple[str, int]:
    """Translate the bracket expression starting at ``segment[start] == '['``.

    Returns:
        Tuple of (regex, index after the closing bracket)

    Raises:
        MalformedPattern: For unterminated classes, unknown POSIX classes
            and reversed ranges
    """
    index = start + 1
    negate = False
    if index < len(segment) and segment[index] in "!^":
        negate = True
        index += 1

    items: List[str] = []
    first = True
    while True:
        if index >= len(segment):
            raise MalformedPattern("unterminated character class")
        char = segment[index]
        if char == "]" and not first:
            index += 1
            break
        first = False

        if segment.startswith("[:", index):
            end = segment.find(":]", index + 2)
            if end == -1:
                raise MalformedPattern("unterminated POSIX class")
            name = segment[index + 2:end]
            if name not in POSIX_CLASSES:
                raise MalformedPattern(f"unknown POSIX class {name!r}")
            items.append(POSIX_CLASSES[name])
            index = end + 2
            continue

        if char == "\\":
            index += 1
            char = segment[index]
        index += 1

        if index + 1 < len(segment) and segment[index] == "-" and segment[index + 1] != "]":
            index += 1
            high = segment[index]
            if high == "\\":
                index += 1
                if index >= len(segment):
                    raise MalformedPattern("unterminated character class")
                high = segment[index]
            index += 1
            if high < char:
                raise MalformedPattern(f"reversed range {char}-{high}")
            items.append(f"{re.escape(char)}-{re.escape(high)}")
        else:
            items.append(re.escape(char))

    body = "".join(items)
    if negate:
        return f"[^/{body}]", index
    return f"(?!/)[{body}]", index


def segment_regex(segment: str) -> str:
    """Translate one path segment of a glob into a regex fragment."""
    parts: List[str] = []
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == "\\":
            # split_segments guarantees an escaped character follows
            parts.append(re.escape(segment[index + 1]))
            index += 2
        elif char == "*":
            while index < len(segment) and segment[index] == "*":
                index += 1
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
            index += 1
        elif char == "[":
            fragment, index = _class_regex(segment, index)
            parts.append(fragment)
        else:
            parts.append(re.escape(char))
            index += 1
    return "".join(parts)


def _path_regex(segments: List[str]) -> str:
    parts: List[str] = []
    last = len(segments) - 1
    for index, segment in enumerate(segments):
        if segment == GLOBSTAR:
            parts.append(".+" if index == last else ANY_SEGMENTS)
            continue
        parts.append(segment_regex(segment))
        if index != last:
            parts.append("/")
    return "".join(parts)


def _parent_regex(segments: List[str]) -> Optional[str]:
    """Regex matching directories that could contain a match of ``segments``.

    ``a/b/*.rb`` gives a regex matching ``a`` and ``a/b``.
    """
    fragments: List[str] = []
    for segment in segments[:-1]:
        if segment == GLOBSTAR:
            fragments.append(".*")
            break
        fragments.append(segment_regex(segment))
    if not fragments:
        return None

    regex = ""
    for index, fragment in reversed(list(enumerate(fragments))):
        if index == len(fragments) - 1:
            regex = fragment
        else:
            regex = f"{fragment}(?:/{regex})?"
    return rf"\A{regex}\Z"


def _is_anchored(scanned: ScannedLine, segments: List[str]) -> bool:
    if scanned.leading_slash:
        return True
    core = list(segments)
    if core and core[0] == GLOBSTAR:
        core = core[1:]
    if len(core) > 1 and core[-1] == GLOBSTAR:
        core = core[:-1]
    return len(core) > 1


def expand_path_pattern(body: str, root: str) -> Optional[str]:
    """Rewrite a filesystem path given as a pattern into an anchored pattern.

    Globs starting with ``*`` are left alone. Paths outside ``root``
    return None.

    Example:
        >>> expand_path_pattern("./lib/", "/repo/")
        '/lib/'
    """
    if body.startswith("*"):
        return body

    directory_only = body.endswith("/")
    full_path = posix_path(os.path.normpath(os.path.join(root, os.path.expanduser(body))))
    if as_dir(full_path) == root:
        return GLOBSTAR
    if not full_path.startswith(root):
        return None
    return "/" + full_path[len(root):] + ("/" if directory_only else "")


def _shebang_rule(line: str, scanned: ScannedLine, root: str) -> Rule:
    if not scanned.body:
        return Unmatchable(pattern=line, negated=scanned.negated)
    regex = re.compile(rf"\A#!.*\b{re.escape(scanned.body)}\b", re.IGNORECASE)
    return ContentMatcher(pattern=line, regex=regex, root=root, negated=scanned.negated)


def compile_pattern(
    line: str,
    allow: bool = False,
    root: str = "/",
    expand_path: bool = False,
) -> Optional[Rule]:
    """Compile one pattern line into a rule.

    Args:
        line: Raw pattern line
        allow: Whether the owning group is an include list
        root: Absolute directory the pattern is relative to
        expand_path: Treat the pattern as a filesystem path (argv style)

    Returns:
        The compiled rule, or None for blank and comment lines
    """
    root = as_dir(root)
    if expand_path and line.strip():
        negated = line.startswith("!")
        expanded = expand_path_pattern(line[1:] if negated else line, root)
        if expanded is None:
            logger.debug("Pattern %r is outside %s", line, root)
            return Unmatchable(pattern=line, negated=negated)
        line = ("!" if negated else "") + expanded

    scanned = scan_line(line)
    if scanned is None:
        return None
    if scanned.shebang:
        return _shebang_rule(line, scanned, root)

    try:
        segments = split_segments(scanned.body)
        if not segments:
            raise MalformedPattern("empty pattern")
        if segments == [GLOBSTAR]:
            segments = ["*"]

        anchored = _is_anchored(scanned, segments)
        prefix = "" if anchored else ANY_SEGMENTS
        suffix = "(?P<inside>/.*)?" if allow else ""
        regex = re.compile(rf"\A{prefix}{_path_regex(segments)}{suffix}\Z", re.DOTALL)

        parent_regex = None
        if allow and anchored:
            parent_source = _parent_regex(segments)
            parent_regex = re.compile(parent_source, re.DOTALL) if parent_source else None
    except (MalformedPattern, re.error) as e:
        logger.debug("Pattern %r will never match: %s", line, e)
        return Unmatchable(pattern=line, negated=scanned.negated)

    return PathMatcher(
        pattern=line,
        regex=regex,
        root=root,
        negated=scanned.negated,
        directory_only=scanned.directory_only,
        anchored=anchored,
        allow=allow,
        parent_regex=parent_regex,
    )
