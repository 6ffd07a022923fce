"""
Gitignore-style ignore patterns for Tag Finder.

Patterns are compiled once from configuration and matched against paths
relative to the directory being searched. Later patterns override earlier
ones, so a negation (``!pattern``) can re-include something a broader
pattern excluded.
"""

import re
from pathlib import Path
from typing import List, Optional
import logging


logger = logging.getLogger(__name__)


class IgnorePattern:
    """A single compiled gitignore-style pattern."""

    def __init__(self, original: str, self_regex: re.Pattern, inside_regex: re.Pattern,
                 is_negation: bool, directory_only: bool):
        self.original = original
        self.self_regex = self_regex
        self.inside_regex = inside_regex
        self.is_negation = is_negation
        self.directory_only = directory_only

    def matches(self, path: str, is_dir: Optional[bool] = None) -> bool:
        """Whether this pattern matches ``path`` itself or one of its parents."""
        if self.inside_regex.search(path):
            return True
        if self.self_regex.search(path):
            # A directory-only pattern never matches something known to be a file
            return not (self.directory_only and is_dir is False)
        return False

    def __repr__(self) -> str:
        return f"IgnorePattern({self.original!r})"


def glob_to_regex(glob: str) -> str:
    """
    Translate the body of a gitignore pattern to a regex fragment.

    Supports ``*`` and ``?`` (never crossing ``/``), ``**`` (any number of
    directories), character classes ``[abc]`` / ``[!abc]``, and backslash
    escapes for literal special characters.

    Args:
        glob: Pattern body with negation, rooting and trailing slash removed

    Returns:
        Unanchored regex fragment
    """
    parts = []
    i = 0
    n = len(glob)
    while i < n:
        c = glob[i]
        if c == '*':
            if glob.startswith('**', i):
                i += 2
                if i < n and glob[i] == '/':
                    # "**/" matches zero or more leading directories
                    parts.append(r'(?:.*/)?')
                    i += 1
                else:
                    parts.append(r'.*')
                continue
            parts.append(r'[^/]*')
        elif c == '\\' and i + 1 < n:
            i += 1
            parts.append(re.escape(glob[i]))
        elif c == '?':
            parts.append(r'[^/]')
        elif c == '[':
            end = glob.find(']', i + 2 if glob.startswith('[!', i) else i + 1)
            if end == -1:
                parts.append(re.escape(c))
            else:
                body = glob[i + 1:end]
                if body.startswith('!'):
                    body = '^' + body[1:]
                parts.append('[' + body.replace('\\', '\\\\') + ']')
                i = end
        else:
            parts.append(re.escape(c))
        i += 1
    return ''.join(parts)


def compile_pattern(pattern: str) -> Optional[IgnorePattern]:
    """
    Compile one gitignore-style pattern.

    Args:
        pattern: Raw pattern line

    Returns:
        Compiled pattern, or None for blank lines and comments

    Raises:
        ValueError: If the pattern does not produce a valid regex
    """
    original = pattern
    pattern = pattern.strip()
    if not pattern or pattern.startswith('#'):
        return None

    is_negation = pattern.startswith('!')
    if is_negation:
        pattern = pattern[1:]

    directory_only = pattern.endswith('/')
    pattern = pattern.rstrip('/')
    if pattern.endswith('/**'):
        # "dir/**" ignores the directory itself too, so traversal can prune it
        directory_only = True
        pattern = pattern[:-3]

    is_rooted = pattern.startswith('/')
    pattern = pattern.lstrip('/')
    if not pattern:
        return None

    # A slash anywhere but the end anchors the pattern to the search root
    anchored = is_rooted or '/' in pattern
    prefix = '^' if anchored else '(?:^|/)'
    body = glob_to_regex(pattern)

    try:
        self_regex = re.compile(f'{prefix}{body}$')
        inside_regex = re.compile(f'{prefix}{body}/.+$')
    except re.error as e:
        raise ValueError(f"Invalid ignore pattern '{original}': {e}")

    return IgnorePattern(original, self_regex, inside_regex, is_negation, directory_only)


class IgnoreMatcher:
    """
    Ordered set of gitignore-style patterns.

    Patterns are evaluated in order; the last matching pattern decides, so a
    negation pattern after a broader ignore re-includes the path.
    """

    def __init__(self, patterns: Optional[List[str]] = None):
        self.patterns: List[IgnorePattern] = []
        for pattern in patterns or []:
            compiled = compile_pattern(pattern)
            if compiled is not None:
                self.patterns.append(compiled)
        logger.debug(f"Compiled {len(self.patterns)} ignore patterns")

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def should_ignore(self, path: str, is_dir: Optional[bool] = None) -> bool:
        """
        Check whether a path is ignored.

        Args:
            path: Path relative to the search root (any separator style)
            is_dir: Whether the path is a directory, if known

        Returns:
            True if the path should be skipped
        """
        if not self.patterns:
            return False

        normalized = Path(path).as_posix().lstrip('/')
        if normalized in ('', '.'):
            return False

        ignored = False
        for pattern in self.patterns:
            if pattern.matches(normalized, is_dir):
                ignored = not pattern.is_negation
        return ignored
