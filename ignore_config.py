from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from ignore_rules.rule_sets import Precedence

# Gitignore handling modes
GitignoreMode = Union[
    Literal["auto"],  # use the gitignore sources that exist
    bool,             # True: also require a root .gitignore; False: skip them all
]


@dataclass(frozen=True)
class IgnoreConfig:
    """Ignore matcher configuration model.

    Attributes:
        relative: Report enumerated paths relative to the root instead of
            as absolute paths
        follow_symlinks: Treat symlinks to directories as directories
            (traversed) instead of as files
        gitignore: Whether to consult the gitignore sources.
            Options: "auto", True, False
        precedence: How rule groups combine.
            "last_opinion": the last group with an opinion decides, so an
            include list can re-include a gitignored file. A path any
            include list denies stays denied.
            "all_allow": every group must allow a path.
        global_gitignore_path: Global ignore file to use instead of the one
            resolved from git config (None = resolve)

    Example:
        >>> config = IgnoreConfig(
        ...     relative=True,
        ...     follow_symlinks=False,
        ...     gitignore="auto",
        ...     precedence="all_allow",
        ...     global_gitignore_path=None,
        ... )
    """
    relative: bool = field(default=False)
    follow_symlinks: bool = field(default=False)
    gitignore: GitignoreMode = field(default="auto")
    precedence: Precedence = field(default="last_opinion")
    global_gitignore_path: Optional[str] = field(default=None)


IGNORE_CONFIG_DEFAULT = IgnoreConfig()

# Every source must allow a path: include lists only narrow what gitignore allows
IGNORE_CONFIG_STRICT = IgnoreConfig(
    precedence="all_allow",
)

# Caller-supplied rules only
IGNORE_CONFIG_NO_GITIGNORE = IgnoreConfig(
    gitignore=False,
)
