"""
Tag Finder - Core Package

Tag-indexed query and concurrent search engine for a terminal file browser.
Files and directories are retrieved by meaning through named tags, and by a
compact query syntax layered over filesystem search.
"""

__version__ = "0.1.0"
__author__ = "Tag Finder Team"
