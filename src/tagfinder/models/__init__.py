"""
Data models for Tag Finder.

This module contains the core data structures used throughout the system.
"""

from .search_query import Constraints, SearchScope, ScopeKind, TypeFilter
from .search_results import MatchKind, ScoredResult, SearchSummary

__all__ = [
    'Constraints',
    'SearchScope',
    'ScopeKind',
    'TypeFilter',
    'MatchKind',
    'ScoredResult',
    'SearchSummary',
]
