"""
Tag data models for Tag Finder.

A tag is a named set of filesystem paths. Each entry either covers a single
path, or (when recursive) a directory and everything that is, or will later
be, beneath it. Recursive coverage is a prefix test on canonical paths, so
nothing below a tagged folder is ever listed up front.
"""

import os
from pathlib import Path
from typing import Dict, List, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_path(path) -> str:
    """Canonical absolute form used for every stored and compared path."""
    return str(Path(os.fspath(path)).expanduser().resolve())


def is_valid_tag_name(name: str) -> bool:
    return bool(name) and not any(ch.isspace() for ch in name)


class TagEntry(BaseModel):
    """
    One path attached to a tag.

    Attributes:
        path: Absolute, normalized path
        recursive: Whether the tag also covers all descendants of ``path``
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Absolute normalized path")
    recursive: bool = Field(False, description="Whether descendants are covered")

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Tag entry path cannot be empty")
        return normalize_path(v)

    def covers(self, path: str) -> bool:
        """
        Whether this entry covers ``path``.

        Args:
            path: Normalized absolute path to test

        Returns:
            True for the entry path itself, and for any descendant when recursive
        """
        if path == self.path:
            return True
        if not self.recursive:
            return False
        prefix = self.path if self.path.endswith(os.sep) else self.path + os.sep
        return path.startswith(prefix)

    def is_below(self, directory: str) -> bool:
        """Whether the entry path lies strictly beneath ``directory``."""
        prefix = directory if directory.endswith(os.sep) else directory + os.sep
        return self.path.startswith(prefix)

    def exists(self) -> bool:
        return os.path.lexists(self.path)

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'recursive': self.recursive}


class Tag(BaseModel):
    """
    A named set of tag entries.

    Attributes:
        name: Unique, case-sensitive name without whitespace
        entries: Paths attached to the tag, unique by path
        subtags: Names of tags whose entries this tag also covers
    """

    name: str = Field(..., description="Tag name")
    entries: List[TagEntry] = Field(default_factory=list, description="Tagged paths")
    subtags: List[str] = Field(default_factory=list, description="Included tags")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not is_valid_tag_name(v):
            raise ValueError(f"Invalid tag name {v!r}: names must be non-empty and contain no whitespace")
        return v

    @field_validator('entries')
    @classmethod
    def validate_entries(cls, v: List[TagEntry]) -> List[TagEntry]:
        """Keep the last entry for each path."""
        by_path = {}
        for entry in v:
            by_path.pop(entry.path, None)
            by_path[entry.path] = entry
        return list(by_path.values())

    @field_validator('subtags')
    @classmethod
    def validate_subtags(cls, v: List[str]) -> List[str]:
        unique = []
        for name in v:
            if not is_valid_tag_name(name):
                raise ValueError(f"Invalid subtag name {name!r}")
            if name not in unique:
                unique.append(name)
        return unique

    def get_entry(self, path: str):
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None

    def set_entry(self, entry: TagEntry) -> bool:
        """
        Add ``entry`` or replace the existing entry for the same path.

        Returns:
            True if the tag changed
        """
        existing = self.get_entry(entry.path)
        if existing == entry:
            return False
        if existing is not None:
            self.entries = [entry if e.path == entry.path else e for e in self.entries]
        else:
            self.entries.append(entry)
        return True

    def remove_entry(self, path: str) -> bool:
        """Remove the entry for ``path``; returns whether one was removed."""
        remaining = [e for e in self.entries if e.path != path]
        removed = len(remaining) != len(self.entries)
        self.entries = remaining
        return removed

    def covers(self, path: str) -> bool:
        """Whether a direct entry of this tag covers ``path`` (subtags excluded)."""
        return any(entry.covers(path) for entry in self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entries': [entry.to_dict() for entry in self.entries],
            'subtags': list(self.subtags),
        }

    def __str__(self) -> str:
        parts = [f"{self.name}: {len(self.entries)} entries"]
        if self.subtags:
            parts.append(f"subtags: {', '.join(self.subtags)}")
        return " | ".join(parts)
