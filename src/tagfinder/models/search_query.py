"""
Search query data models for Tag Finder.

This module defines the structured form of a query (the constraints parsed
from the search box) and the scope a search is restricted to.
"""

from typing import FrozenSet, Optional, Tuple
from enum import Enum
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TypeFilter(Enum):
    """Which kinds of filesystem entries a query accepts."""
    ANY = "any"
    FILE_ONLY = "file"
    DIR_ONLY = "dir"


class Constraints(BaseModel):
    """
    Structured constraints derived from a raw query string.

    Instances are immutable and compare equal when built from the same input,
    which lets the UI skip restarting a search when nothing changed.

    Attributes:
        raw: The query text exactly as typed
        type_filter: Restriction on entry kind (any, files, directories)
        extensions: Lowercase extensions without the leading dot
        exact_phrase: Case-folded substring that must be present, if any
        fuzzy_terms: Loosely matched words in input order
    """

    model_config = ConfigDict(frozen=True)

    raw: str = Field("", description="Raw query text")
    type_filter: TypeFilter = Field(TypeFilter.ANY, description="Entry kind restriction")
    extensions: FrozenSet[str] = Field(default_factory=frozenset, description="Extension filter")
    exact_phrase: Optional[str] = Field(None, description="Required case-folded substring")
    fuzzy_terms: Tuple[str, ...] = Field(default_factory=tuple, description="Fuzzy match words")

    @field_validator('extensions', mode='before')
    @classmethod
    def validate_extensions(cls, v) -> FrozenSet[str]:
        """Normalize extensions to lowercase without a leading dot."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = [v]
        return frozenset(ext.lower().lstrip('.') for ext in v if ext and ext.strip('.'))

    @field_validator('exact_phrase')
    @classmethod
    def validate_exact_phrase(cls, v: Optional[str]) -> Optional[str]:
        """Case-fold the exact phrase; an empty phrase means no phrase."""
        if not v:
            return None
        return v.casefold()

    @model_validator(mode='after')
    def validate_consistency(self):
        """Directories have no extension, so DirOnly cannot carry an extension filter."""
        if self.type_filter == TypeFilter.DIR_ONLY and self.extensions:
            raise ValueError("Extension filters cannot be combined with a directory-only filter")
        return self

    @property
    def fuzzy_text(self) -> str:
        """Fuzzy terms joined with single spaces."""
        return " ".join(self.fuzzy_terms)

    def has_fuzzy(self) -> bool:
        return bool(self.fuzzy_terms)

    def has_extensions(self) -> bool:
        return bool(self.extensions)

    def has_exact_phrase(self) -> bool:
        return self.exact_phrase is not None

    def is_empty(self) -> bool:
        """True when the constraints accept every entry."""
        return (
            self.type_filter == TypeFilter.ANY
            and not self.extensions
            and self.exact_phrase is None
            and not self.fuzzy_terms
        )

    def __str__(self) -> str:
        parts = [f"Type: {self.type_filter.value}"]
        if self.extensions:
            parts.append(f"Extensions: {', '.join(sorted(self.extensions))}")
        if self.exact_phrase is not None:
            parts.append(f"Exact: '{self.exact_phrase}'")
        if self.fuzzy_terms:
            parts.append(f"Fuzzy: '{self.fuzzy_text}'")
        return " | ".join(parts)


class ScopeKind(Enum):
    """The two ways a search can be scoped."""
    UNSCOPED = "unscoped"
    TAG_INTERSECTION = "tag_intersection"


class SearchScope(BaseModel):
    """
    The set of paths a search is restricted to.

    Either the whole tree below a root directory, or the intersection of one or
    more tags. Use the ``unscoped`` and ``tag_intersection`` constructors.

    Attributes:
        kind: Which scope variant this is
        root: Root directory for unscoped searches
        tags: Tag names whose intersection bounds a tag-scoped search
    """

    model_config = ConfigDict(frozen=True)

    kind: ScopeKind = Field(..., description="Scope variant")
    root: Optional[str] = Field(None, description="Root directory for unscoped searches")
    tags: FrozenSet[str] = Field(default_factory=frozenset, description="Tag names to intersect")

    @field_validator('root')
    @classmethod
    def validate_root(cls, v: Optional[str]) -> Optional[str]:
        """Normalize the root directory path."""
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Root directory cannot be empty")
        return str(Path(v).expanduser().resolve())

    @model_validator(mode='after')
    def validate_scope(self):
        """Check that each variant carries the data it needs."""
        if self.kind == ScopeKind.UNSCOPED and self.root is None:
            raise ValueError("Unscoped searches require a root directory")
        if self.kind == ScopeKind.TAG_INTERSECTION and not self.tags:
            raise ValueError("Tag-scoped searches require at least one tag")
        return self

    @classmethod
    def unscoped(cls, root: str) -> 'SearchScope':
        """Search the whole tree below ``root``."""
        return cls(kind=ScopeKind.UNSCOPED, root=str(root))

    @classmethod
    def tag_intersection(cls, tags) -> 'SearchScope':
        """Search only paths covered by every tag in ``tags``."""
        if isinstance(tags, str):
            tags = [tags]
        return cls(kind=ScopeKind.TAG_INTERSECTION, tags=frozenset(tags))

    @property
    def is_unscoped(self) -> bool:
        return self.kind == ScopeKind.UNSCOPED

    def __str__(self) -> str:
        if self.is_unscoped:
            return f"Unscoped({self.root})"
        return f"TagIntersection({', '.join(sorted(self.tags))})"
