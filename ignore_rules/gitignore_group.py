"""The gitignore rule group and its lazy loading of nested ``.gitignore`` files.

The group starts with the sources git always consults (the implicit
``.git`` rule, the global ignore file, ``.git/info/exclude`` and the root
``.gitignore``). Nested ``.gitignore`` files are compiled and appended only
when a query or traversal reaches their directory. Ancestors are always
appended before descendants, so deeper files are scanned later and win.
"""

import logging
import os
from typing import FrozenSet, List, Optional, Set

from ignore_patterns.sources import PatternSource
from ignore_utils.errors import FastIgnoreError
from ignore_utils.gitconfig import global_gitignore_path
from ignore_utils.path_utils import as_dir, parent_dirs

from .matchers import Rule
from .rule_group import RuleGroup

logger = logging.getLogger(__name__)

GITIGNORE_FILENAME = ".gitignore"


class GitignoreRuleGroup(RuleGroup):
    """Ignore-list group fed by the gitignore hierarchy of one root.

    The set of directories whose ``.gitignore`` has been loaded is the only
    mutable state of an otherwise fixed rule engine. It is private to this
    group and changed only by ``load_directory`` (and ``ensure_loaded``,
    which calls it). It grows monotonically for the group's lifetime and is
    not synchronized: callers sharing one instance across threads must
    serialize queries themselves.

    Example:
        >>> group = GitignoreRuleGroup("/repo/")
        >>> group.ensure_loaded("src/lib/main.py")
        >>> sorted(group.loaded_dirs)
        ['', 'src/', 'src/lib/']
    """

    def __init__(
        self,
        root: str,
        global_ignore_path: Optional[str] = None,
        require_gitignore: bool = False,
    ):
        """Initialize the group and load the root-level sources.

        Args:
            root: Absolute root directory
            global_ignore_path: Global ignore file; resolved from git config
                when not given
            require_gitignore: Raise if the root ``.gitignore`` is missing

        Raises:
            FastIgnoreError: If ``require_gitignore`` and there is no root
                ``.gitignore``
        """
        self.root = as_dir(root)
        root_gitignore = os.path.join(self.root, GITIGNORE_FILENAME)
        if require_gitignore and not os.path.isfile(root_gitignore):
            raise FastIgnoreError(f"No {GITIGNORE_FILENAME} in {self.root}")

        if global_ignore_path is None:
            global_ignore_path = global_gitignore_path(self.root)

        sources = [
            PatternSource.from_rules(".git", root="/"),
            PatternSource.from_path(global_ignore_path, root=self.root),
            PatternSource.from_path(os.path.join(self.root, ".git", "info", "exclude"), root=self.root),
            PatternSource.from_path(root_gitignore, root=self.root),
        ]
        rules: List[Rule] = []
        for source in sources:
            rules.extend(source.resolve(self.root).build_rules())

        super().__init__(rules, allow=False)
        self._loaded_dirs: Set[str] = {""}
        logger.debug("Gitignore group for %s starts with %d rules", self.root, len(rules))

    @property
    def loaded_dirs(self) -> FrozenSet[str]:
        """Root-relative directories (``""`` for the root) already loaded."""
        return frozenset(self._loaded_dirs)

    def load_directory(self, relative_dir: str, exists: Optional[bool] = None) -> None:
        """Append the rules of one directory's ``.gitignore``, once.

        Args:
            relative_dir: Root-relative directory with a trailing slash
            exists: Whether the ``.gitignore`` exists, when already known
        """
        if relative_dir in self._loaded_dirs:
            return

        if exists is not False:
            path = os.path.join(self.root, relative_dir, GITIGNORE_FILENAME)
            source = PatternSource.from_path(path).resolve(self.root)
            rules = source.build_rules()
            if rules:
                self._rules.extend(rules)
                logger.debug("Loaded %d rules from %s", len(rules), path)

        self._loaded_dirs.add(relative_dir)

    def ensure_loaded(self, relative_path: str) -> None:
        """Load the ``.gitignore`` of every ancestor of a path, root first.

        Args:
            relative_path: Root-relative path about to be evaluated
        """
        for relative_dir in parent_dirs(relative_path):
            self.load_directory(relative_dir)
