"""Composition of rule groups into one allowed/denied decision.

Every pattern source is its own group. Groups are evaluated in a fixed
order: the gitignore hierarchy, the caller's ignore sources, the caller's
include sources, then any extra sources. How their verdicts combine is set
by the precedence mode:

- ``"last_opinion"``: the last group with an opinion decides, the same
  "last match wins" rule used within a group, lifted to whole sources.
  Include lists only narrow: a path an include list denies stays denied.
  Paths no group has an opinion about are allowed.
- ``"all_allow"``: a path is allowed only if no group denies it.
"""

import logging
from typing import Iterable, List, Literal, Optional, Tuple

from ignore_patterns.sources import PatternSource
from ignore_utils.path_utils import as_dir, parent_dirs

from .gitignore_group import GitignoreRuleGroup
from .matchers import Candidate, reads_content
from .rule_group import RuleGroup, Verdict

logger = logging.getLogger(__name__)

# Available precedence modes
Precedence = Literal[
    "last_opinion",  # the last group with an opinion wins
    "all_allow",     # every group must allow
]
PRECEDENCE_MODES = ("last_opinion", "all_allow")


def _build_group(source: PatternSource, root: str, allow: bool) -> RuleGroup:
    return RuleGroup(source.resolve(root).build_rules(), allow=allow)


class RuleSets:
    """All rule groups for one root, evaluated as a whole.

    Example:
        >>> rule_sets = RuleSets("/repo/", include_sources=[PatternSource.from_rules("*.rb")])
        >>> rule_sets.allowed_recursive("lib/a.rb", False, "/repo/lib/a.rb", "a.rb")
        True
    """

    def __init__(
        self,
        root: str,
        gitignore: bool = True,
        require_gitignore: bool = False,
        precedence: Precedence = "last_opinion",
        ignore_sources: Iterable[PatternSource] = (),
        include_sources: Iterable[PatternSource] = (),
        extra_sources: Iterable[PatternSource] = (),
        global_ignore_path: Optional[str] = None,
    ):
        """Build every group.

        Args:
            root: Absolute root directory
            gitignore: Whether to consult the gitignore hierarchy at all
            require_gitignore: Whether a missing root ``.gitignore`` is an error
            precedence: How group verdicts combine, see ``Precedence``
            ignore_sources: Caller ignore lists, one group each
            include_sources: Caller include lists, one group each
            extra_sources: Additional sources, one group each, in order
            global_ignore_path: Override for the global ignore file

        Raises:
            FastIgnoreError: If a source cannot be resolved
        """
        self.root = as_dir(root)
        self.precedence = precedence

        self.gitignore: Optional[GitignoreRuleGroup] = None
        groups: List[RuleGroup] = []
        if gitignore:
            self.gitignore = GitignoreRuleGroup(
                self.root,
                global_ignore_path=global_ignore_path,
                require_gitignore=require_gitignore,
            )
            groups.append(self.gitignore)

        groups.extend(_build_group(source, self.root, allow=False) for source in ignore_sources)
        groups.extend(_build_group(source, self.root, allow=True) for source in include_sources)
        groups.extend(_build_group(source, self.root, allow=source.allow) for source in extra_sources)

        self.groups: Tuple[RuleGroup, ...] = tuple(groups)
        logger.debug("Rule sets for %s: %s", self.root, self.groups)

    @property
    def needs_content(self) -> bool:
        """Whether any group has content (shebang) rules."""
        return any(group.needs_content for group in self.groups)

    def content_needed(self, is_dir: bool, basename: str) -> bool:
        """Whether deciding this path requires reading its first line."""
        return reads_content(is_dir, basename) and self.needs_content

    def ensure_loaded(self, relative_path: str) -> None:
        """Load every ancestor ``.gitignore`` of a path before it is evaluated."""
        if self.gitignore is not None:
            self.gitignore.ensure_loaded(relative_path)

    def load_directory(self, relative_dir: str, exists: Optional[bool] = None) -> None:
        """Load one directory's ``.gitignore`` as traversal enters it."""
        if self.gitignore is not None:
            self.gitignore.load_directory(relative_dir, exists=exists)

    def _combine(self, candidate: Candidate) -> bool:
        if self.precedence == "all_allow":
            return all(group.verdict(candidate) is not Verdict.DENIED for group in self.groups)

        result = Verdict.NO_OPINION
        for group in self.groups:
            verdict = group.verdict(candidate)
            if verdict is Verdict.DENIED and group.allow:
                return False
            if verdict is not Verdict.NO_OPINION:
                result = verdict
        return result is not Verdict.DENIED

    def allowed_unrecursive(
        self,
        relative_path: str,
        is_dir: bool,
        full_path: str,
        basename: str,
        content: Optional[str] = None,
    ) -> bool:
        """Decide a path on its own, assuming its ancestors are allowed.

        Used by traversal, which only reaches a path through allowed
        ancestors. Directories never need content.
        """
        candidate = Candidate(full_path=full_path, is_dir=is_dir, basename=basename, content=content)
        return self._combine(candidate)

    def allowed_recursive(
        self,
        relative_path: str,
        is_dir: bool,
        full_path: str,
        basename: str,
        content: Optional[str] = None,
    ) -> bool:
        """Decide a path, also requiring every ancestor directory to be allowed.

        Loads the ancestors' ``.gitignore`` files first.
        """
        self.ensure_loaded(relative_path)

        for relative_dir in parent_dirs(relative_path):
            name = relative_dir.rstrip("/")
            if not self.allowed_unrecursive(
                name,
                True,
                self.root + name,
                name.rsplit("/", 1)[-1],
            ):
                return False

        return self.allowed_unrecursive(relative_path, is_dir, full_path, basename, content)
