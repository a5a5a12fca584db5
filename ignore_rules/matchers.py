"""Compiled rule variants and their evaluation.

A rule is one of three immutable variants:

- ``PathMatcher``: a gitignore glob compiled to a regular expression over
  the path relative to the rule's root.
- ``ContentMatcher``: a shebang rule matched against a file's first line.
- ``Unmatchable``: stands in for a pattern that failed to compile.

The set of variants is closed; ``rule_matches`` is the single evaluation
operation and dispatches on the variant.
"""

from dataclasses import dataclass
from typing import Optional, Pattern, Union


@dataclass(frozen=True)
class Candidate:
    """A path being evaluated.

    Attributes:
        full_path: Absolute path in forward-slash form, no trailing slash
        is_dir: Whether the path is a directory
        basename: Final path component
        content: First line of the file, when known
    """
    full_path: str
    is_dir: bool
    basename: str
    content: Optional[str] = None


@dataclass(frozen=True)
class PathMatcher:
    """Glob pattern compiled to a regex over root-relative paths.

    Attributes:
        pattern: The source pattern line, for display
        regex: Compiled expression matched against the relative path
        root: Absolute directory the pattern is relative to (trailing slash)
        negated: Pattern started with ``!``
        directory_only: Pattern ended with ``/``
        anchored: Pattern only matches from its root
        allow: Pattern belongs to an include list; it then also matches
            everything inside a matched directory
        parent_regex: For anchored include patterns, matches directories
            that may contain a match
    """
    pattern: str
    regex: Pattern
    root: str
    negated: bool = False
    directory_only: bool = False
    anchored: bool = False
    allow: bool = False
    parent_regex: Optional[Pattern] = None


@dataclass(frozen=True)
class ContentMatcher:
    """Shebang rule matched against a file's first line."""
    pattern: str
    regex: Pattern
    root: str
    negated: bool = False


@dataclass(frozen=True)
class Unmatchable:
    """Rule that never matches anything."""
    pattern: str
    negated: bool = False


Rule = Union[PathMatcher, ContentMatcher, Unmatchable]


def _relative_to(root: str, full_path: str) -> Optional[str]:
    if not full_path.startswith(root) or len(full_path) <= len(root):
        return None
    return full_path[len(root):]


def _is_above(candidate: Candidate, root: str) -> bool:
    # candidate is a directory strictly containing root
    return candidate.is_dir and root.startswith(candidate.full_path.rstrip("/") + "/")


def reads_content(is_dir: bool, basename: str) -> bool:
    """Whether content rules can apply to a path: plain files without an extension."""
    return not is_dir and "." not in basename


def rule_matches(rule: Rule, candidate: Candidate) -> bool:
    """Check whether a rule matches a candidate path.

    Args:
        rule: Compiled rule
        candidate: Path under evaluation

    Returns:
        True if the rule matches; a content rule without content never does
    """
    if isinstance(rule, PathMatcher):
        relative_path = _relative_to(rule.root, candidate.full_path)
        if relative_path is None:
            return False
        match = rule.regex.match(relative_path)
        if match is None:
            return False
        if rule.directory_only and not candidate.is_dir:
            # inside a matched directory counts as a directory match
            return rule.allow and match.group("inside") is not None
        return True

    if isinstance(rule, ContentMatcher):
        if candidate.content is None or not reads_content(candidate.is_dir, candidate.basename):
            return False
        if _relative_to(rule.root, candidate.full_path) is None:
            return False
        return rule.regex.search(candidate.content) is not None

    return False


def rule_may_contain(rule: Rule, candidate: Candidate) -> bool:
    """Check whether a directory could hold a path an include rule matches.

    Only meaningful for include (allow-style) rules, where an unmatched
    directory must still be traversed if something inside it can match.
    """
    if not candidate.is_dir or rule.negated or isinstance(rule, Unmatchable):
        return False
    if _is_above(candidate, rule.root):
        return True

    relative_path = _relative_to(rule.root, candidate.full_path)
    if relative_path is None:
        return False
    if isinstance(rule, ContentMatcher) or not rule.anchored:
        return True
    return rule.parent_regex is not None and rule.parent_regex.match(relative_path) is not None
