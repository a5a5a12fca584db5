"""Pattern sources: where pattern lines come from.

A ``PatternSource`` is a list of raw pattern lines (given directly or read
from a file) plus the provenance needed to compile them: the directory the
patterns are relative to, whether they form an include list, and their
format.
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Iterable, List, Literal, Optional, Tuple, Union

from ignore_rules.matchers import Rule
from ignore_utils.errors import FastIgnoreError
from ignore_utils.file_utils import read_lines
from ignore_utils.path_utils import as_dir

from .compiler import compile_pattern

logger = logging.getLogger(__name__)

# Available pattern formats
PatternFormat = Literal[
    "gitignore",    # gitignore syntax relative to the source root
    "expand_path",  # filesystem paths (e.g. command line arguments)
]
PATTERN_FORMATS = ("gitignore", "expand_path")


@dataclass(frozen=True)
class PatternSource:
    """One origin of ignore or include patterns.

    Attributes:
        lines: Pattern lines given directly (ignored when ``from_file`` is set)
        from_file: Path of a pattern file to read instead
        root: Directory the patterns are relative to. Defaults to the
            directory of ``from_file``, or the caller's root for ``lines``
        allow: Whether this is an include (allow-style) list
        format: Pattern format, see ``PatternFormat``
        required: Whether a missing ``from_file`` is a configuration error

    Example:
        >>> PatternSource.from_rules(["*.rb", "!vendor/"], allow=True)
        >>> PatternSource.from_path(".ignore", required=True)
    """
    lines: Tuple[str, ...] = ()
    from_file: Optional[str] = None
    root: Optional[str] = None
    allow: bool = False
    format: PatternFormat = "gitignore"
    required: bool = False

    @classmethod
    def from_rules(
        cls,
        rules: Union[str, Iterable[str]],
        root: Optional[str] = None,
        allow: bool = False,
        format: PatternFormat = "gitignore",
    ) -> "PatternSource":
        """Create a source from pattern strings; strings may hold several lines."""
        if isinstance(rules, str):
            rules = [rules]
        lines: List[str] = []
        for rule in rules:
            lines.extend(str(rule).split("\n"))
        return cls(lines=tuple(lines), root=root, allow=allow, format=format)

    @classmethod
    def from_path(
        cls,
        path: Union[str, os.PathLike],
        root: Optional[str] = None,
        allow: bool = False,
        format: PatternFormat = "gitignore",
        required: bool = False,
    ) -> "PatternSource":
        """Create a source that reads its patterns from a file."""
        return cls(from_file=os.fspath(path), root=root, allow=allow, format=format, required=required)

    def resolve(self, default_root: str) -> "PatternSource":
        """Return a copy with absolute paths, validated.

        Relative ``from_file`` paths resolve against ``root`` when given,
        otherwise against ``default_root``.

        Raises:
            FastIgnoreError: For unknown formats and missing required files
        """
        if self.format not in PATTERN_FORMATS:
            raise FastIgnoreError(f"Unknown pattern format: {self.format!r}")

        root = None
        if self.root:
            root = as_dir(os.path.abspath(os.path.join(default_root, os.path.expanduser(self.root))))

        from_file = self.from_file
        if from_file is not None:
            from_file = os.path.abspath(os.path.join(root or default_root, os.path.expanduser(from_file)))
            if self.required and not os.path.isfile(from_file):
                raise FastIgnoreError(f"Pattern file does not exist: {from_file}")
            root = root or as_dir(os.path.dirname(from_file))

        return replace(self, from_file=from_file, root=root or as_dir(default_root))

    def read_patterns(self) -> List[str]:
        """Return the raw pattern lines; a missing file reads as empty."""
        if self.from_file is not None:
            return read_lines(self.from_file)
        return list(self.lines)

    def build_rules(self) -> List[Rule]:
        """Compile every pattern line of this source.

        Must be called on a resolved source.
        """
        rules: List[Rule] = []
        for line in self.read_patterns():
            rule = compile_pattern(
                line,
                allow=self.allow,
                root=self.root or "/",
                expand_path=self.format == "expand_path",
            )
            if rule is not None:
                rules.append(rule)

        logger.debug("Compiled %d rules from %s", len(rules), self.from_file or "inline patterns")
        return rules
