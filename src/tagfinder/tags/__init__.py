"""
Tagging layer for Tag Finder.

Tags are named sets of paths; folder tags cover every descendant. The index
is persisted as YAML and resolved into lazily evaluated predicates.
"""

from .errors import (
    TagIndexError,
    TagIndexPersistenceError,
    InvalidTagNameError,
    InvalidTagPathError,
    UnknownTagError,
    TagExistsError,
    SelfReferringSubtagError,
)
from .index import TagIndex, TagPredicate, trim_entries
from .models import Tag, TagEntry, normalize_path

__all__ = [
    'TagIndex',
    'TagPredicate',
    'trim_entries',
    'Tag',
    'TagEntry',
    'normalize_path',
    'TagIndexError',
    'TagIndexPersistenceError',
    'InvalidTagNameError',
    'InvalidTagPathError',
    'UnknownTagError',
    'TagExistsError',
    'SelfReferringSubtagError',
]
