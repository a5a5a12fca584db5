"""Compiled rules and their evaluation.

``matchers`` and ``rule_group`` are the building blocks exported here.
The gitignore group (``ignore_rules.gitignore_group``) and the group
composition (``ignore_rules.rule_sets``) depend on ``ignore_patterns`` and
are imported from their modules directly.
"""

from .matchers import Candidate, ContentMatcher, PathMatcher, Rule, Unmatchable, reads_content, rule_matches, rule_may_contain
from .rule_group import RuleGroup, Verdict

__all__ = [
    "Candidate",
    "ContentMatcher",
    "PathMatcher",
    "Rule",
    "Unmatchable",
    "rule_matches",
    "rule_may_contain",
    "reads_content",
    "RuleGroup",
    "Verdict",
]
