"""
Search results data models for Tag Finder.

This module defines the scored results that the search engine streams to the
UI, and the summary of a finished (or cancelled) search.
"""

from typing import Dict, Any
from pathlib import Path
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator


class MatchKind(Enum):
    """How a result satisfied its query, in decreasing display priority."""
    EXACT = "exact"
    EXTENSION = "extension"
    FUZZY = "fuzzy"

    @property
    def priority(self) -> int:
        """Lower sorts first."""
        return _KIND_PRIORITY[self]


_KIND_PRIORITY = {
    MatchKind.EXACT: 0,
    MatchKind.EXTENSION: 1,
    MatchKind.FUZZY: 2,
}


class ScoredResult(BaseModel):
    """
    A single filesystem entry that satisfied a query.

    Attributes:
        path: Absolute path of the entry
        score: Match quality, higher is better
        match_kind: Which part of the query qualified the entry
        is_dir: Whether the entry is a directory
        display: The text the query was matched against (relative path)
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Absolute path of the entry")
    score: float = Field(0.0, description="Match quality, higher is better")
    match_kind: MatchKind = Field(MatchKind.FUZZY, description="Which part of the query matched")
    is_dir: bool = Field(False, description="Whether the entry is a directory")
    display: str = Field("", description="Text the query was matched against")

    @field_validator('match_kind', mode='before')
    @classmethod
    def validate_match_kind(cls, v) -> MatchKind:
        """Accept match kinds by value."""
        if isinstance(v, str):
            try:
                return MatchKind(v)
            except ValueError:
                raise ValueError(f"Invalid match kind: {v}")
        return v

    def get_name(self) -> str:
        """Get just the entry name without its directory."""
        return Path(self.path).name

    def get_extension(self) -> str:
        """Get the lowercase extension without the dot, or '' for none."""
        if self.is_dir:
            return ''
        return Path(self.path).suffix.lower().lstrip('.')

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data['match_kind'] = self.match_kind.value
        data['name'] = self.get_name()
        return data

    def __str__(self) -> str:
        kind = "dir" if self.is_dir else "file"
        return f"{self.display or self.path} ({kind}, {self.match_kind.value}, score: {self.score:.3f})"


class SearchSummary(BaseModel):
    """
    Counters and errors collected while a search ran.

    Per-path errors never abort a search; they are kept here so the UI can show
    degraded results with an explanation.
    """

    directories_traversed: int = Field(0, ge=0)
    entries_scanned: int = Field(0, ge=0)
    entries_matched: int = Field(0, ge=0)
    entries_ignored: int = Field(0, ge=0)
    cycles_skipped: int = Field(0, ge=0)
    stale_entries_skipped: int = Field(0, ge=0)
    errors: Dict[str, str] = Field(default_factory=dict, description="Error message per path")
    cancelled: bool = Field(False, description="Whether the search was cancelled")
    execution_time: float = Field(0.0, ge=0.0, description="Wall time in seconds")

    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data['error_count'] = len(self.errors)
        return data

    def __str__(self) -> str:
        parts = [f"Matched {self.entries_matched} of {self.entries_scanned} entries"]
        parts.append(f"Traversed {self.directories_traversed} directories")
        parts.append(f"Took {self.execution_time:.2f}s")
        if self.errors:
            parts.append(f"Errors: {len(self.errors)}")
        if self.cancelled:
            parts.append("Cancelled")
        return " | ".join(parts)
