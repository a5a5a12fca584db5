"""Ordered rule groups with last-match-wins evaluation."""

import logging
from enum import Enum
from typing import Iterable, List, Tuple

from .matchers import Candidate, ContentMatcher, Rule, rule_matches, rule_may_contain

logger = logging.getLogger(__name__)


class Verdict(Enum):
    """Outcome of evaluating one rule group for a path."""
    ALLOWED = "allowed"
    DENIED = "denied"
    NO_OPINION = "no_opinion"


class RuleGroup:
    """Ordered rules sharing one mode: ignore list or include list.

    Rules are scanned in declared order and every match overwrites the
    running verdict, so a later pattern overrides an earlier one for the
    paths they both match.

    In an ignore list (``allow=False``) a match denies the path and a
    negated match allows it; a group in which nothing matched has no
    opinion.

    In an include list (``allow=True``) a match allows the path and a
    negated match denies it. A path nothing matched is denied, except for
    directories that may still contain an included path, about which the
    group has no opinion. An empty include list has no opinion at all.

    Example:
        >>> group = RuleGroup([compile_pattern(p, root="/repo") for p in ["*.log", "!keep.log"]])
        >>> group.verdict(Candidate("/repo/keep.log", False, "keep.log"))
        <Verdict.ALLOWED: 'allowed'>
    """

    def __init__(self, rules: Iterable[Rule] = (), allow: bool = False):
        self._rules: List[Rule] = list(rules)
        self.allow = allow

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return tuple(self._rules)

    @property
    def needs_content(self) -> bool:
        """Whether any rule needs a file's first line to decide."""
        return any(isinstance(rule, ContentMatcher) for rule in self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rules={len(self._rules)}, allow={self.allow})"

    def verdict(self, candidate: Candidate) -> Verdict:
        """Evaluate the group for one path.

        Args:
            candidate: Path under evaluation

        Returns:
            The group's verdict
        """
        if not self._rules:
            return Verdict.NO_OPINION

        result = Verdict.NO_OPINION
        for rule in self._rules:
            if rule_matches(rule, candidate):
                # include lists invert the meaning of a match
                result = Verdict.ALLOWED if rule.negated != self.allow else Verdict.DENIED

        if result is not Verdict.NO_OPINION or not self.allow:
            return result
        if any(rule_may_contain(rule, candidate) for rule in self._rules):
            return Verdict.NO_OPINION
        return Verdict.DENIED
