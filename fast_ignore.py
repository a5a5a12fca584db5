import logging
import os
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

from ignore_config import IGNORE_CONFIG_DEFAULT, IgnoreConfig
from ignore_patterns import PatternSource
from ignore_rules import reads_content
from ignore_rules.gitignore_group import GITIGNORE_FILENAME
from ignore_rules.rule_sets import PRECEDENCE_MODES, RuleSets
from ignore_utils import FastIgnoreError, PathResolver, is_directory, is_probe_error, read_first_line

logger = logging.getLogger(__name__)

PathArg = Union[str, os.PathLike]
RulesArg = Optional[Union[str, Iterable[str]]]
FilesArg = Optional[Union[PathArg, Iterable[PathArg]]]


def _as_list(value) -> List:
    if value is None:
        return []
    if isinstance(value, (str, os.PathLike)):
        return [value]
    return list(value)


def _rules_source(rules: RulesArg, **kwargs) -> List[PatternSource]:
    rules = _as_list(rules)
    return [PatternSource.from_rules(rules, **kwargs)] if rules else []


class FastIgnore:
    """Gitignore-aware path filter for one root directory.

    Decides whether paths under the root are allowed (not ignored),
    combining:
    - the implicit ``.git`` rule, the global ignore file,
      ``.git/info/exclude`` and the root ``.gitignore``
    - nested ``.gitignore`` files, loaded as queries and traversal reach them
    - caller ignore lists and include lists (patterns or files)
    - shebang rules (``#!:ruby``) matched against a file's first line

    Instances are fixed after construction, apart from the record of which
    nested ``.gitignore`` files have been loaded. They are not thread-safe;
    serialize access when sharing one across threads.

    Example:
        >>> ignore = FastIgnore("/path/to/repo", include_rules=["*.py"])
        >>> ignore.is_allowed("src/main.py")
        True
        >>> list(ignore)
        ['/path/to/repo/src/main.py', ...]
    """

    def __init__(
        self,
        root: Optional[PathArg] = None,
        config: Optional[IgnoreConfig] = None,
        ignore_rules: RulesArg = None,
        ignore_files: FilesArg = None,
        include_rules: RulesArg = None,
        include_files: FilesArg = None,
        argv_rules: RulesArg = None,
        sources: Optional[Iterable[PatternSource]] = None,
    ):
        """Initialize the matcher.

        Args:
            root: Root directory (default: current working directory)
            config: Ignore configuration (uses default if not provided)
            ignore_rules: Gitignore-style patterns to ignore
            ignore_files: Files of patterns to ignore, each relative to its
                own directory
            include_rules: Gitignore-style patterns; when given, only
                matching paths are allowed
            include_files: Files of include patterns
            argv_rules: Include patterns given as filesystem paths, such as
                command line arguments (``./lib``, ``../repo/x.rb``)
            sources: Additional pattern sources, each evaluated as its own
                group after the ones above

        Raises:
            FastIgnoreError: If the root is not a directory, the config is
                invalid, or a pattern source cannot be used
        """
        self._config = config or IGNORE_CONFIG_DEFAULT
        self._validate_config()

        self._resolver = PathResolver(root)
        if not os.path.isdir(self._resolver.root):
            raise FastIgnoreError(f"Root is not a directory: {self._resolver.root}")

        ignore_sources = _rules_source(ignore_rules)
        ignore_sources += [PatternSource.from_path(f, required=True) for f in _as_list(ignore_files)]
        include_sources = _rules_source(include_rules, allow=True)
        include_sources += [PatternSource.from_path(f, allow=True, required=True) for f in _as_list(include_files)]
        include_sources += _rules_source(argv_rules, allow=True, format="expand_path")

        self._rule_sets = RuleSets(
            self.root,
            gitignore=self._config.gitignore is not False,
            require_gitignore=self._config.gitignore is True,
            precedence=self._config.precedence,
            ignore_sources=ignore_sources,
            include_sources=include_sources,
            extra_sources=list(sources or []),
            global_ignore_path=self._config.global_gitignore_path,
        )
        logger.info("Ignore rules ready for: %s", self.root)

    def _validate_config(self) -> None:
        """Validate the configuration values.

        Raises:
            FastIgnoreError: If a value is outside its allowed set
        """
        if self._config.gitignore not in ("auto", True, False):
            raise FastIgnoreError(f"gitignore must be 'auto', True or False, got {self._config.gitignore!r}")
        if self._config.precedence not in PRECEDENCE_MODES:
            raise FastIgnoreError(
                f"precedence must be one of {', '.join(PRECEDENCE_MODES)}, got {self._config.precedence!r}"
            )

    @property
    def root(self) -> str:
        """Absolute root directory, with a trailing slash."""
        return self._resolver.root

    @property
    def config(self) -> IgnoreConfig:
        return self._config

    def _probe_directory(self, full_path: str) -> bool:
        return is_directory(full_path, follow_symlinks=self._config.follow_symlinks)

    def is_allowed(
        self,
        path: PathArg,
        directory: Optional[bool] = None,
        content: Optional[str] = None,
        exists: Optional[bool] = None,
        include_directories: bool = False,
    ) -> bool:
        """Check whether a path is allowed.

        Any hint left as None is probed from the filesystem.

        Args:
            path: Absolute path, or path relative to the root
            directory: Whether the path is a directory, if known
            content: File content (only the first line is used), if known
            exists: Whether the path exists, if known
            include_directories: Allow directories instead of rejecting them

        Returns:
            True if the path exists under the root and no rule ignores it
        """
        relative_path = self._resolver.relative_to_root(path)
        if relative_path is None:
            return False
        full_path = self.root + relative_path

        if directory is None:
            try:
                directory = self._probe_directory(full_path)
            except OSError as e:
                if not is_probe_error(e):
                    raise
                if exists is None:
                    exists = False
                directory = False

        if directory and not include_directories:
            return False

        if exists is None:
            exists = os.path.exists(full_path)
        if not exists:
            return False

        self._rule_sets.ensure_loaded(relative_path)
        basename = relative_path.rsplit("/", 1)[-1]
        if content is not None:
            content = content.split("\n", 1)[0].rstrip("\r")
        elif self._rule_sets.content_needed(directory, basename):
            content = read_first_line(full_path)

        return self._rule_sets.allowed_recursive(relative_path, directory, full_path, basename, content)

    def __call__(self, path: PathArg, **kwargs) -> bool:
        """Use the instance as a predicate, e.g. ``filter(ignore, paths)``."""
        return self.is_allowed(path, **kwargs)

    def enumerate(self) -> Iterator[str]:
        """Yield every allowed file under the root.

        Traversal is depth-first and pre-order, children in name order.
        Denied directories are not entered. Paths that vanish or cannot be
        read while walking are skipped.

        Returns:
            Iterator of relative or absolute paths, per ``config.relative``
        """
        return self._walk(self.root, "", frozenset())

    def __iter__(self) -> Iterator[str]:
        return self.enumerate()

    def _walk(self, dir_full_path: str, dir_relative_path: str, ancestors: FrozenSet[Tuple[int, int]]) -> Iterator[str]:
        try:
            if self._config.follow_symlinks:
                st = os.stat(dir_full_path)
                key = (st.st_dev, st.st_ino)
                if key in ancestors:
                    logger.debug("Skipping symlink loop at %s", dir_full_path)
                    return
                ancestors = ancestors | {key}
            children = sorted(os.listdir(dir_full_path))
        except OSError as e:
            if not is_probe_error(e):
                raise
            return

        self._rule_sets.load_directory(dir_relative_path, exists=GITIGNORE_FILENAME in children)
        needs_content = self._rule_sets.needs_content

        for name in children:
            full_path = dir_full_path + name
            relative_path = dir_relative_path + name
            try:
                is_dir = self._probe_directory(full_path)
            except OSError as e:
                if not is_probe_error(e):
                    raise
                continue

            content = None
            if needs_content and reads_content(is_dir, name):
                content = read_first_line(full_path)
            if not self._rule_sets.allowed_unrecursive(relative_path, is_dir, full_path, name, content):
                continue

            if is_dir:
                yield from self._walk(full_path + "/", relative_path + "/", ancestors)
            elif self._config.relative:
                yield relative_path
            else:
                yield full_path
