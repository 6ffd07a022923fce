"""
Unit tests for gitignore-style ignore pattern matching.

Tests wildcards, negation, directory-only and rooted patterns, character
classes, escapes and how patterns reach the configuration.
"""

import pytest

from tagfinder.models.config import FinderConfig
from tagfinder.tools.ignore import IgnoreMatcher, compile_pattern, glob_to_regex


class TestIgnorePatterns:
    """Test cases for gitignore-style ignore patterns."""

    def test_basic_wildcards(self):
        """Test basic wildcard patterns (* and ?)."""
        matcher = IgnoreMatcher(["*.pyc", "test?.txt", "temp*"])

        assert matcher.should_ignore("module.pyc")
        assert matcher.should_ignore("src/module.pyc")
        assert not matcher.should_ignore("module.py")

        assert matcher.should_ignore("test1.txt")
        assert not matcher.should_ignore("test12.txt")
        assert not matcher.should_ignore("test.txt")

        assert matcher.should_ignore("temporary")
        assert not matcher.should_ignore("mytemp")

    def test_star_does_not_cross_directories(self):
        matcher = IgnoreMatcher(["src/*.py"])
        assert matcher.should_ignore("src/main.py")
        assert not matcher.should_ignore("src/pkg/main.py")

    def test_double_star(self):
        """Test ** directory wildcard patterns."""
        matcher = IgnoreMatcher(["**/node_modules/**", "**/*.log", "build/**/temp"])

        assert matcher.should_ignore("node_modules", is_dir=True)
        assert matcher.should_ignore("node_modules/package/index.js")
        assert matcher.should_ignore("project/node_modules/lib/file.js")

        assert matcher.should_ignore("app.log")
        assert matcher.should_ignore("deep/path/debug.log")

        assert matcher.should_ignore("build/temp")
        assert matcher.should_ignore("build/release/obj/temp")
        assert not matcher.should_ignore("other/build/temp")

    def test_directory_only_patterns(self):
        """Test patterns that match directories only (trailing /)."""
        matcher = IgnoreMatcher(["build/", "**/cache/"])

        assert matcher.should_ignore("build", is_dir=True)
        assert matcher.should_ignore("build/")
        assert not matcher.should_ignore("build", is_dir=False)
        assert matcher.should_ignore("build/output.bin", is_dir=False)
        assert matcher.should_ignore("deep/path/cache", is_dir=True)

    def test_rooted_patterns(self):
        """Test patterns that are rooted (start with /)."""
        matcher = IgnoreMatcher(["/build", "/*.log"])

        assert matcher.should_ignore("build")
        assert matcher.should_ignore("error.log")
        assert not matcher.should_ignore("project/build")
        assert not matcher.should_ignore("logs/error.log")

    def test_negation_patterns(self):
        """Test that a later negation re-includes a path."""
        matcher = IgnoreMatcher([
            "*.log",
            "!important.log",
            "temp/*",
            "!temp/keep.txt",
            "**/build/**",
            "!**/build/assets/**",
        ])

        assert matcher.should_ignore("debug.log")
        assert not matcher.should_ignore("important.log")
        assert matcher.should_ignore("temp/delete.txt")
        assert not matcher.should_ignore("temp/keep.txt")
        assert matcher.should_ignore("project/build/obj/file.o")
        assert not matcher.should_ignore("project/build/assets/style.css")

    def test_last_match_wins(self):
        matcher = IgnoreMatcher(["!keep.log", "*.log"])
        assert matcher.should_ignore("keep.log")

    def test_character_classes(self):
        """Test character class patterns [abc] and [!abc]."""
        matcher = IgnoreMatcher(["test[0-9].txt", "file[!abc].py"])

        assert matcher.should_ignore("test1.txt")
        assert not matcher.should_ignore("testA.txt")
        assert matcher.should_ignore("filed.py")
        assert not matcher.should_ignore("filea.py")

    def test_escaped_characters(self):
        """Test escaped special characters are literal."""
        matcher = IgnoreMatcher([r"\*.txt", r"file\?.py", r"\!important", r"\#comment"])

        assert matcher.should_ignore("*.txt")
        assert not matcher.should_ignore("test.txt")
        assert matcher.should_ignore("file?.py")
        assert not matcher.should_ignore("file1.py")
        assert matcher.should_ignore("!important")
        assert matcher.should_ignore("#comment")

    def test_comments_and_blanks_skipped(self):
        matcher = IgnoreMatcher(["# a comment", "", "   ", "*.tmp"])
        assert len(matcher) == 1
        assert compile_pattern("# nope") is None
        assert compile_pattern("/") is None

    def test_paths_inside_ignored_directory(self):
        matcher = IgnoreMatcher(["**/.git/**"])
        assert matcher.should_ignore(".git/config")

    def test_root_itself_never_ignored(self):
        matcher = IgnoreMatcher(["*"])
        assert not matcher.should_ignore(".")
        assert not matcher.should_ignore("")

    def test_empty_matcher(self):
        matcher = IgnoreMatcher()
        assert not matcher
        assert not matcher.should_ignore("anything")

    def test_glob_to_regex(self):
        assert glob_to_regex("*.py") == r"[^/]*\.py"
        assert glob_to_regex("**/x") == r"(?:.*/)?x"
        assert glob_to_regex("[!ab]") == "[^ab]"


class TestConfigIgnore:
    """Test cases for ignore patterns held by FinderConfig."""

    def test_default_patterns(self):
        config = FinderConfig()
        assert config.should_ignore(".git", is_dir=True)
        assert config.should_ignore("src/__pycache__/mod.pyc")
        assert not config.should_ignore("src/main.py")

    def test_custom_patterns_replace_defaults(self):
        config = FinderConfig(ignore=["*.bak"])
        assert config.should_ignore("old.bak")
        assert not config.should_ignore(".git", is_dir=True)

    def test_blank_patterns_dropped(self):
        config = FinderConfig(ignore=["  *.bak  ", "", None])
        assert config.ignore == ["*.bak"]

    def test_ignored_extensions(self):
        config = FinderConfig(search={'ignored_extensions': ".LOG, tmp"})
        assert config.search.ignored_extensions == ["log", "tmp"]
        assert config.is_extension_ignored("trace.log")
        assert config.is_extension_ignored("x.TMP")
        assert not config.is_extension_ignored("notes.txt")
        assert not config.is_extension_ignored("Makefile")

    def test_invalid_pattern(self):
        with pytest.raises(ValueError):
            FinderConfig(ignore=["[z-a]"])
