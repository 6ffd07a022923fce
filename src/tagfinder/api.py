"""
High-level entry point for Tag Finder.

``TagFinder`` is what a UI talks to: it parses query text, starts searches,
and manages tags. Configuration and the tag index are loaded once and shared
by every search.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Union
import logging

from .config.parser import ConfigParser
from .models.config import FinderConfig
from .models.search_query import SearchScope
from .tags.index import TagIndex
from .tools.query_parser import QueryParser
from .tools.search_engine import SearchEngine, SearchHandle


logger = logging.getLogger(__name__)


class TagFinder:
    """
    Facade over the query parser, search engine and tag index.

    Example:
        finder = TagFinder.from_config_file()
        with finder.submit_query('report .pdf') as handle:
            for result in handle:
                print(result)
    """

    def __init__(self, config: Optional[FinderConfig] = None, tag_index: Optional[TagIndex] = None):
        """
        Args:
            config: Configuration; defaults are used when omitted
            tag_index: Tag index; loaded from ``config.tags.index_path`` when omitted
        """
        self.config = config or FinderConfig()
        if tag_index is None:
            tag_index = TagIndex.load(self.config.tags.get_index_path())
        self.tag_index = tag_index
        self.parser = QueryParser()
        self.engine = SearchEngine(self.config, self.tag_index)

    @classmethod
    def from_config_file(cls, config_path: Optional[Union[str, Path]] = None,
                         strict_mode: bool = False) -> 'TagFinder':
        """
        Build a finder from a YAML configuration file.

        Args:
            config_path: Explicit file; the usual locations are searched if omitted
            strict_mode: Treat configuration warnings as errors

        Raises:
            ConfigurationError: If the configuration cannot be loaded
        """
        result = ConfigParser(strict_mode=strict_mode).load_config(config_path)
        for warning in result.warnings:
            logger.warning(f"Configuration: {warning}")
        return cls(result.config)

    def submit_query(self, text: str, scope: Optional[Union[SearchScope, Iterable[str]]] = None,
                     root: Optional[Union[str, os.PathLike]] = None) -> SearchHandle:
        """
        Parse ``text`` and start searching.

        Args:
            text: Raw query from the search box
            scope: A SearchScope, or tag names to intersect; None or no tags
                searches the tree below ``root``
            root: Root of an unscoped search (defaults to ``default_path``)

        Returns:
            Handle streaming results as they are found
        """
        constraints = self.parser.parse(text)
        if not isinstance(scope, SearchScope):
            tags = [scope] if isinstance(scope, str) else list(scope or [])
            if tags:
                scope = SearchScope.tag_intersection(tags)
            else:
                scope = SearchScope.unscoped(os.fspath(root) if root is not None else self.config.default_path)
        return self.engine.search(constraints, scope)

    def cancel(self, handle: SearchHandle) -> None:
        handle.cancel()

    def tag_path(self, path: Union[str, os.PathLike], tag_name: str, recursive: bool = False) -> bool:
        """Tag ``path``; returns True if the index changed."""
        return self.tag_index.tag(path, tag_name, recursive=recursive)

    def untag_path(self, path: Union[str, os.PathLike], tag_name: str) -> bool:
        """Remove ``path`` from ``tag_name``; returns True if it was tagged."""
        return self.tag_index.untag(path, tag_name)

    def list_tags(self) -> List[str]:
        return self.tag_index.list_tags()

    def tags_for(self, path: Union[str, os.PathLike]) -> List[str]:
        return self.tag_index.tags_for(path)

    def reload_config(self, config: FinderConfig) -> None:
        """
        Switch to ``config`` for searches started from now on.

        Running searches keep the configuration they started with. The tag
        index is reloaded when its location changes.
        """
        if config.tags.get_index_path() != self.config.tags.get_index_path():
            logger.info(f"Tag index moved to {config.tags.index_path}, reloading")
            self.tag_index = TagIndex.load(config.tags.get_index_path())
            self.engine.tag_index = self.tag_index
        self.config = config
        self.engine.update_config(config)

    def pop_index_notice(self) -> Optional[str]:
        """The one-time message about a corrupt tag index, if there was one."""
        return self.tag_index.pop_load_error()
