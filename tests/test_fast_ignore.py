"""Tests for the FastIgnore facade: queries and enumeration."""

import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

import fast_ignore
from fast_ignore import FastIgnore
from ignore_config import IGNORE_CONFIG_NO_GITIGNORE, IGNORE_CONFIG_STRICT, IgnoreConfig
from ignore_patterns import PatternSource
from ignore_utils import FastIgnoreError, gitconfig, read_first_line

RELATIVE = IgnoreConfig(relative=True)


def write(root: Path, relative_path: str, text: str = "") -> Path:
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Keep the user's and the system's git configuration out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setattr(gitconfig, "SYSTEM_GITCONFIG", str(tmp_path / "etc-gitconfig"))
    return home


@pytest.fixture
def repo(tmp_path, home):
    root = tmp_path / "repo"
    root.mkdir()
    return root


class TestGitignoreSemantics:
    """Test cases for gitignore behaviour seen through the facade."""

    def test_last_match_wins(self, repo):
        write(repo, ".gitignore", "*.log\n!keep.log\n")
        write(repo, "debug.log")
        write(repo, "keep.log")
        ignore = FastIgnore(repo, config=RELATIVE)

        assert ignore.is_allowed("keep.log")
        assert not ignore.is_allowed("debug.log")
        assert list(ignore) == [".gitignore", "keep.log"]

    def test_directory_only_pattern(self, repo):
        write(repo, ".gitignore", "build/\n")
        write(repo, "a/build")
        write(repo, "b/build/x")
        ignore = FastIgnore(repo, config=RELATIVE)

        assert ignore.is_allowed("a/build")
        assert not ignore.is_allowed("b/build/x")
        assert list(ignore) == [".gitignore", "a/build"]

    def test_anchoring(self, repo):
        write(repo, ".gitignore", "/foo\n")
        write(repo, "foo")
        write(repo, "bar/foo")
        ignore = FastIgnore(repo)

        assert not ignore.is_allowed("foo")
        assert ignore.is_allowed("bar/foo")

    def test_globstar(self, repo):
        write(repo, ".gitignore", "**/node_modules/**\n")
        write(repo, "node_modules/x.js")
        write(repo, "a/node_modules/y.js")
        write(repo, "src/app.js")
        ignore = FastIgnore(repo, config=RELATIVE)

        assert list(ignore) == [".gitignore", "src/app.js"]

    def test_nested_gitignore(self, repo):
        write(repo, ".gitignore", "*.tmp\n")
        write(repo, "foo/.gitignore", "!keep.tmp\n")
        write(repo, "foo/keep.tmp")
        write(repo, "foo/other.tmp")
        write(repo, "a.tmp")

        # queries load the nested file on their own
        assert FastIgnore(repo).is_allowed("foo/keep.tmp")

        ignore = FastIgnore(repo, config=RELATIVE)
        assert list(ignore) == [".gitignore", "foo/.gitignore", "foo/keep.tmp"]

    def test_ignored_directory_hides_contents(self, repo):
        write(repo, ".gitignore", "build/\n!build/keep.txt\n")
        write(repo, "build/keep.txt")
        ignore = FastIgnore(repo, config=RELATIVE)

        assert not ignore.is_allowed("build/keep.txt")
        assert list(ignore) == [".gitignore"]

    def test_git_directory_is_never_listed(self, repo):
        write(repo, ".git/config")
        write(repo, "a.txt")
        ignore = FastIgnore(repo, config=RELATIVE)

        assert not ignore.is_allowed(".git/config")
        assert list(ignore) == ["a.txt"]

    def test_info_exclude(self, repo):
        write(repo, ".git/info/exclude", "*.bak\n")
        write(repo, "a.bak")
        assert not FastIgnore(repo).is_allowed("a.bak")

    def test_malformed_pattern_is_inert(self, repo):
        write(repo, ".gitignore", "[abc\n*.log\n")
        write(repo, "[abc")
        write(repo, "a.log")
        ignore = FastIgnore(repo)

        assert ignore.is_allowed("[abc")
        assert not ignore.is_allowed("a.log")

    def test_crlf_gitignore(self, repo):
        write(repo, ".gitignore", "*.log\r\n")
        write(repo, "a.log")
        assert not FastIgnore(repo).is_allowed("a.log")


class TestGlobalIgnore:
    """Test cases for the global ignore file."""

    def test_xdg_default_location(self, repo, home):
        write(home, ".config/git/ignore", "*.swp\n")
        write(repo, "x.swp")
        write(repo, "x.txt")
        ignore = FastIgnore(repo, config=RELATIVE)

        assert not ignore.is_allowed("x.swp")
        assert list(ignore) == ["x.txt"]

    def test_core_excludesfile(self, repo, home):
        write(home, ".gitconfig", "[core]\n\texcludesfile = ~/.gitignore_global\n")
        write(home, ".gitignore_global", "*.swp\n")
        write(repo, "x.swp")
        assert not FastIgnore(repo).is_allowed("x.swp")

    def test_global_and_repository_rules_combine(self, repo, home):
        write(home, ".config/git/ignore", "*.swp\n")
        write(repo, ".gitignore", "*.log\n")
        for name in ("notes.swp", "notes.log", "notes.txt"):
            write(repo, name)
        ignore = FastIgnore(repo, config=RELATIVE)

        assert not ignore.is_allowed("notes.swp")
        assert not ignore.is_allowed("notes.log")
        assert ignore.is_allowed("notes.txt")
        assert list(ignore) == [".gitignore", "notes.txt"]

    def test_repository_gitignore_overrides_global(self, repo, home):
        write(home, ".config/git/ignore", "*.swp\n")
        write(repo, ".gitignore", "!keep.swp\n")
        write(repo, "keep.swp")
        assert FastIgnore(repo).is_allowed("keep.swp")

    def test_explicit_global_path(self, repo, tmp_path):
        global_ignore = write(tmp_path, "my-global", "*.swp\n")
        write(repo, "x.swp")
        config = IgnoreConfig(global_gitignore_path=str(global_ignore))
        assert not FastIgnore(repo, config=config).is_allowed("x.swp")


class TestQueries:
    """Test cases for is_allowed arguments and edge cases."""

    def test_outside_root(self, repo, tmp_path):
        write(tmp_path, "outside.txt")
        ignore = FastIgnore(repo)

        assert not ignore.is_allowed("../outside.txt")
        assert not ignore.is_allowed(str(tmp_path / "outside.txt"))
        assert not ignore.is_allowed(str(repo), include_directories=True)

    def test_absolute_and_relative_paths_agree(self, repo):
        write(repo, "a.txt")
        ignore = FastIgnore(repo)
        assert ignore.is_allowed("a.txt")
        assert ignore.is_allowed(str(repo / "a.txt"))
        assert ignore.is_allowed(repo / "a.txt")

    def test_nonexistent_path(self, repo):
        ignore = FastIgnore(repo)
        assert not ignore.is_allowed("missing.txt")
        assert not ignore.is_allowed("missing/deeper.txt")

    def test_hints_skip_the_filesystem(self, repo):
        ignore = FastIgnore(repo, ignore_rules="*.log")
        assert ignore.is_allowed("virtual.txt", directory=False, exists=True)
        assert not ignore.is_allowed("virtual.log", directory=False, exists=True)
        assert not ignore.is_allowed("virtual.txt", directory=False, exists=False)

    def test_directories(self, repo):
        (repo / "lib").mkdir()
        ignore = FastIgnore(repo, ignore_rules="tmp/")

        assert not ignore.is_allowed("lib")
        assert ignore.is_allowed("lib", include_directories=True)
        assert not ignore.is_allowed("tmp", directory=True, exists=True, include_directories=True)

    def test_predicate(self, repo):
        write(repo, "a.rb")
        write(repo, "b.txt")
        ignore = FastIgnore(repo, include_rules="*.rb")
        assert list(filter(ignore, ["a.rb", "b.txt"])) == ["a.rb"]

    def test_repeated_queries_are_deterministic(self, repo):
        write(repo, ".gitignore", "*.log\n")
        write(repo, "sub/a.log")
        ignore = FastIgnore(repo)
        assert {ignore.is_allowed("sub/a.log") for _ in range(3)} == {False}


class TestCallerRules:
    """Test cases for caller supplied ignore and include lists."""

    def test_include_rules(self, repo):
        write(repo, "a.rb")
        write(repo, "b.txt")
        write(repo, "lib/c.rb")
        ignore = FastIgnore(repo, config=RELATIVE, include_rules="*.rb")

        assert ignore.is_allowed("a.rb")
        assert not ignore.is_allowed("b.txt")
        assert list(ignore) == ["a.rb", "lib/c.rb"]

    def test_include_rules_respect_gitignore(self, repo):
        write(repo, ".gitignore", "vendor/\n")
        write(repo, "vendor/a.rb")
        write(repo, "lib/b.rb")
        ignore = FastIgnore(repo, config=RELATIVE, include_rules=["*.rb"])
        assert list(ignore) == ["lib/b.rb"]

    def test_ignore_rules_and_files(self, repo):
        write(repo, "ignores", "*.bak\n")
        write(repo, "a.bak")
        write(repo, "a.tmp")
        write(repo, "a.txt")
        ignore = FastIgnore(repo, config=RELATIVE, ignore_rules="*.tmp\nignores", ignore_files="ignores")
        assert list(ignore) == ["a.txt"]

    def test_include_files(self, repo):
        write(repo, "includes", "*.rb\n")
        write(repo, "a.rb")
        write(repo, "b.py")
        ignore = FastIgnore(repo, config=RELATIVE, include_files=[repo / "includes"])
        assert list(ignore) == ["a.rb"]

    def test_argv_rules(self, repo):
        write(repo, "lib/a.rb")
        write(repo, "src/lib/b.rb")
        ignore = FastIgnore(repo, config=RELATIVE, argv_rules=["./lib"])
        assert list(ignore) == ["lib/a.rb"]

    @pytest.mark.parametrize("config", [RELATIVE, IgnoreConfig(relative=True, precedence="all_allow")])
    def test_include_rules_and_argv_rules_intersect(self, repo, config):
        write(repo, "b.rb")
        write(repo, "lib/a.rb")
        write(repo, "lib/c.txt")
        ignore = FastIgnore(repo, config=config, include_rules=["*.rb"], argv_rules=["./lib"])

        assert list(ignore) == ["lib/a.rb"]
        assert not ignore.is_allowed("b.rb")
        assert not ignore.is_allowed("lib/c.txt")

    def test_include_files_are_separate_lists(self, repo):
        write(repo, "only-lib", "lib/\n")
        write(repo, "b.rb")
        write(repo, "lib/a.rb")
        write(repo, "lib/c.txt")
        ignore = FastIgnore(repo, config=RELATIVE, include_rules="*.rb", include_files="only-lib")
        assert list(ignore) == ["lib/a.rb"]

    def test_argv_rules_outside_root_match_nothing(self, repo):
        write(repo, "a.rb")
        ignore = FastIgnore(repo, argv_rules=["../elsewhere"])
        assert not ignore.is_allowed("a.rb")

    def test_extra_sources(self, repo):
        write(repo, "a.log")
        write(repo, "keep.log")
        ignore = FastIgnore(
            repo,
            ignore_rules="*.log",
            sources=[PatternSource.from_rules("!keep.log")],
        )
        assert ignore.is_allowed("keep.log")
        assert not ignore.is_allowed("a.log")

    def test_shebang_include(self, repo):
        write(repo, "bin/tool", "#!/usr/bin/env ruby\nputs 1\n")
        write(repo, "bin/other", "#!/bin/sh\n")
        write(repo, "bin/tool.sh", "#!/usr/bin/env ruby\n")
        ignore = FastIgnore(repo, config=RELATIVE, include_rules="#!:ruby")

        assert ignore.is_allowed("bin/tool")
        assert not ignore.is_allowed("bin/other")
        assert list(ignore) == ["bin/tool"]

    def test_shebang_rules_only_open_extensionless_files(self, repo, monkeypatch):
        write(repo, "a.rb", "#!/usr/bin/env ruby\n")
        write(repo, "b.txt", "#!/usr/bin/env ruby\n")
        write(repo, "tool", "#!/usr/bin/env ruby\n")
        opened = []

        def recording_read_first_line(path):
            opened.append(os.path.basename(path))
            return read_first_line(path)

        monkeypatch.setattr(fast_ignore, "read_first_line", recording_read_first_line)
        ignore = FastIgnore(repo, config=RELATIVE, include_rules="#!:ruby")

        assert list(ignore) == ["tool"]
        assert not ignore.is_allowed("a.rb")
        assert not ignore.is_allowed("b.txt")
        assert opened == ["tool"]

    def test_shebang_from_supplied_content(self, repo):
        ignore = FastIgnore(repo, include_rules="#!:ruby")
        content = "#!/usr/bin/env ruby\r\nputs 1\n"
        assert ignore.is_allowed("script", directory=False, exists=True, content=content)
        assert not ignore.is_allowed("script", directory=False, exists=True, content="puts 1\n")


class TestConfig:
    """Test cases for configuration and construction errors."""

    def test_gitignore_disabled(self, repo):
        write(repo, ".gitignore", "*.log\n")
        write(repo, "a.log")
        assert FastIgnore(repo, config=IGNORE_CONFIG_NO_GITIGNORE).is_allowed("a.log")

    def test_gitignore_required(self, repo):
        with pytest.raises(FastIgnoreError):
            FastIgnore(repo, config=IgnoreConfig(gitignore=True))

        write(repo, ".gitignore", "*.log\n")
        FastIgnore(repo, config=IgnoreConfig(gitignore=True))

    def test_precedence_modes(self, repo):
        write(repo, ".gitignore", "*.log\n")
        write(repo, "a.log")

        assert FastIgnore(repo, include_rules="*.log").is_allowed("a.log")
        assert not FastIgnore(repo, config=IGNORE_CONFIG_STRICT, include_rules="*.log").is_allowed("a.log")

    def test_invalid_config(self, repo):
        with pytest.raises(FastIgnoreError):
            FastIgnore(repo, config=IgnoreConfig(precedence="nope"))
        with pytest.raises(FastIgnoreError):
            FastIgnore(repo, config=IgnoreConfig(gitignore="sometimes"))

    def test_bad_root(self, tmp_path, home):
        with pytest.raises(FastIgnoreError):
            FastIgnore(tmp_path / "missing")
        with pytest.raises(FastIgnoreError):
            FastIgnore(write(tmp_path, "file.txt"))

    def test_missing_ignore_file(self, repo):
        with pytest.raises(FastIgnoreError):
            FastIgnore(repo, ignore_files="no-such-file")

    def test_default_root_is_cwd(self, repo, monkeypatch):
        write(repo, "a.txt")
        monkeypatch.chdir(repo)
        ignore = FastIgnore()
        assert ignore.root == str(repo) + "/"
        assert ignore.is_allowed("a.txt")


class TestEnumerate:
    """Test cases for traversal."""

    def test_absolute_paths_by_default(self, repo):
        write(repo, "a.txt")
        write(repo, "sub/b.txt")
        ignore = FastIgnore(repo)
        assert list(ignore.enumerate()) == [str(repo / "a.txt"), str(repo / "sub" / "b.txt")]

    def test_restartable(self, repo):
        write(repo, "a.txt")
        write(repo, "b.txt")
        ignore = FastIgnore(repo, config=RELATIVE)

        partial = ignore.enumerate()
        assert next(partial) == "a.txt"
        assert list(ignore) == ["a.txt", "b.txt"]
        assert list(ignore) == list(ignore)

    def test_enumerated_paths_are_allowed(self, repo):
        write(repo, ".gitignore", "*.log\nsub/\n")
        write(repo, "a.txt")
        write(repo, "b.log")
        write(repo, "sub/c.txt")
        write(repo, "other/d.txt")
        ignore = FastIgnore(repo, config=RELATIVE)

        listed = list(ignore)
        assert all(ignore.is_allowed(path) for path in listed)
        assert listed == [".gitignore", "a.txt", "other/d.txt"]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlinks_are_files_by_default(self, repo):
        write(repo, "real/x.txt")
        os.symlink(repo / "real", repo / "link")

        assert list(FastIgnore(repo, config=RELATIVE)) == ["link", "real/x.txt"]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_followed_symlinks(self, repo):
        write(repo, "real/x.txt")
        os.symlink(repo / "real", repo / "link")
        os.symlink(repo, repo / "loop")
        config = IgnoreConfig(relative=True, follow_symlinks=True)

        # the loop back to the root is not entered again
        assert list(FastIgnore(repo, config=config)) == ["link/x.txt", "real/x.txt"]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_dangling_symlink_is_skipped_when_following(self, repo):
        write(repo, "a.txt")
        os.symlink(repo / "nowhere", repo / "broken")
        config = IgnoreConfig(relative=True, follow_symlinks=True)
        assert list(FastIgnore(repo, config=config)) == ["a.txt"]
