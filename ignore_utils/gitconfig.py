"""Git config parsing and global ignore file resolution.

Git keeps the location of the global ignore file in the ``core.excludesfile``
setting, which may live in the repository config, the user config, the XDG
config or the system config. When none of them sets it, git falls back to
``$XDG_CONFIG_HOME/git/ignore``.
"""

import logging
import os
import re
from typing import Dict, List, Optional, Tuple

from platformdirs.unix import Unix

from .errors import GitconfigParseError
from .file_utils import read_lines

logger = logging.getLogger(__name__)

MAX_INCLUDE_DEPTH = 10
SYSTEM_GITCONFIG = "/etc/gitconfig"

_SECTION_RE = re.compile(r'\[\s*([A-Za-z0-9.-]+)(?:\s+"((?:[^"\\]|\\.)*)")?\s*\]')
_KEY_RE = re.compile(r"([A-Za-z][A-Za-z0-9-]*)\s*(=)?\s*")
_ESCAPES = {"\\": "\\", '"': '"', "n": "\n", "t": "\t", "b": "\b"}


def xdg_git_dir() -> str:
    """Return git's XDG config directory (``$XDG_CONFIG_HOME/git``)."""
    return Unix(appname="git", appauthor=False).user_config_dir


class GitconfigParser:
    """Parser for git's ini-like config format.

    Keys are flattened to ``section.key`` or ``section.subsection.key``.
    Section and key names are case-insensitive and stored lowercased;
    subsection names keep their case. Later assignments override earlier
    ones, and ``[include] path`` pulls in another file at that point.

    Example:
        >>> GitconfigParser("~/.gitconfig").parse().get("core.excludesfile")
        '~/.gitignore_global'
    """

    def __init__(self, path: str, depth: int = 0):
        """Initialize the parser.

        Args:
            path: Path of the config file (``~`` is expanded)
            depth: Include nesting depth of this file
        """
        self.path = os.path.abspath(os.path.expanduser(path))
        self.depth = depth

    def parse(self) -> Dict[str, str]:
        """Parse the file. A missing file parses to an empty mapping.

        Raises:
            GitconfigParseError: If the file is malformed or includes nest
                deeper than git allows
        """
        if self.depth > MAX_INCLUDE_DEPTH:
            raise GitconfigParseError("Include depth exceeded", self.path, 0)

        values: Dict[str, str] = {}
        lines = read_lines(self.path)
        section: Optional[str] = None
        index = 0

        while index < len(lines):
            lineno = index + 1
            line = lines[index].strip()
            index += 1
            if not line or line[0] in "#;":
                continue

            if line.startswith("["):
                section, line = self._parse_section(line, lineno)
                if not line or line[0] in "#;":
                    continue

            match = _KEY_RE.match(line)
            if not match:
                raise GitconfigParseError("Invalid key", self.path, lineno)
            if section is None:
                raise GitconfigParseError("Key outside of a section", self.path, lineno)

            key = f"{section}.{match.group(1).lower()}"
            if match.group(2) is None:
                rest = line[match.end():]
                if rest and rest[0] not in "#;":
                    raise GitconfigParseError("Expected '='", self.path, lineno)
                value = "true"
            else:
                value, index = self._parse_value(line[match.end():], lines, index, lineno)

            if key == "include.path":
                values.update(self._parse_include(value))
            else:
                values[key] = value

        return values

    def _parse_section(self, line: str, lineno: int) -> Tuple[str, str]:
        match = _SECTION_RE.match(line)
        if not match:
            raise GitconfigParseError("Invalid section header", self.path, lineno)

        name = match.group(1).lower()
        subsection = match.group(2)
        if subsection is not None:
            subsection = re.sub(r"\\(.)", r"\1", subsection)
            name = f"{name}.{subsection}"
        return name, line[match.end():].strip()

    def _parse_value(self, raw: str, lines: List[str], index: int, lineno: int) -> Tuple[str, int]:
        chars: List[str] = []
        pending_space = ""
        quoted = False
        pos = 0

        while True:
            if pos >= len(raw):
                if quoted:
                    raise GitconfigParseError("Unterminated quote", self.path, lineno)
                break

            char = raw[pos]
            pos += 1

            if char == "\\":
                if pos >= len(raw):
                    # line continuation
                    if index >= len(lines):
                        break
                    raw = lines[index]
                    index += 1
                    lineno += 1
                    pos = 0
                    continue
                escaped = raw[pos]
                pos += 1
                if escaped not in _ESCAPES:
                    raise GitconfigParseError("Invalid escape", self.path, lineno)
                chars.append(pending_space + _ESCAPES[escaped])
                pending_space = ""
            elif char == '"':
                quoted = not quoted
                chars.append(pending_space)
                pending_space = ""
            elif not quoted and char in "#;":
                break
            elif not quoted and char in " \t":
                if chars:
                    pending_space += char
            else:
                chars.append(pending_space + char)
                pending_space = ""

        return "".join(chars), index

    def _parse_include(self, include_path: str) -> Dict[str, str]:
        include_path = os.path.expanduser(include_path)
        if not os.path.isabs(include_path):
            include_path = os.path.join(os.path.dirname(self.path), include_path)
        logger.debug("Following gitconfig include %s from %s", include_path, self.path)
        return GitconfigParser(include_path, self.depth + 1).parse()


def excludes_file_from(config_path: str, root: str) -> Optional[str]:
    """Return the absolute ``core.excludesfile`` set in one config file, if any."""
    value = GitconfigParser(config_path).parse().get("core.excludesfile")
    if not value:
        return None
    return os.path.abspath(os.path.join(root, os.path.expanduser(value)))


def global_gitignore_path(root: str) -> str:
    """Resolve the global ignore file git would use for a repository root.

    Args:
        root: Absolute repository root

    Returns:
        Absolute path of the global ignore file (which may not exist)
    """
    candidates = [
        os.path.join(root, ".git", "config"),
        os.path.expanduser("~/.gitconfig"),
        os.path.join(xdg_git_dir(), "config"),
        SYSTEM_GITCONFIG,
    ]
    for config_path in candidates:
        path = excludes_file_from(config_path, root)
        if path:
            logger.debug("Global ignore file %s set in %s", path, config_path)
            return path

    return os.path.join(xdg_git_dir(), "ignore")
