"""
Search tools for Tag Finder.

This package contains the query parser, the fuzzy scorer, ignore pattern
matching, the concurrent filesystem walker, result ranking and the search
engine that ties them together.
"""
