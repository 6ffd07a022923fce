"""
Query parser for Tag Finder.

Turns the text of the search box into structured constraints. The grammar is
small and forgiving: nothing the user types is an error.

    token        := flag | extension | exact-phrase | fuzzy-word
    flag         := "--file" | "-f" | "--dir" | "-d"
    extension    := "." <alnum+>
    exact-phrase := '"' <chars up to the next unescaped '"' or end of input>
    fuzzy-word   := any other whitespace-delimited token

An unterminated quote consumes the rest of the input as the phrase. Only the
first phrase is honored; later quoted segments become fuzzy words.
"""

from typing import List, Optional, Set, Tuple
import logging

from ..models.search_query import Constraints, TypeFilter


logger = logging.getLogger(__name__)

FILE_FLAGS = frozenset({'--file', '-f'})
DIR_FLAGS = frozenset({'--dir', '-d'})


def _is_extension_token(token: str) -> bool:
    return len(token) > 1 and token[0] == '.' and token[1:].isalnum()


class QueryParser:
    """Stateless parser from raw query text to Constraints."""

    def parse(self, raw: str) -> Constraints:
        """
        Parse a raw query string.

        Args:
            raw: Text from the search input

        Returns:
            Constraints describing the query; never raises for any input
        """
        if raw is None:
            raw = ''

        explicit: Optional[TypeFilter] = None
        extensions: Set[str] = set()
        exact_phrase: Optional[str] = None
        fuzzy_terms: List[str] = []

        i = 0
        n = len(raw)
        while i < n:
            if raw[i].isspace():
                i += 1
                continue

            if raw[i] == '"':
                phrase, i = self._read_quoted(raw, i + 1)
                if exact_phrase is None and phrase:
                    exact_phrase = phrase
                else:
                    fuzzy_terms.extend(phrase.split())
                continue

            start = i
            while i < n and not raw[i].isspace():
                i += 1
            token = raw[start:i]

            if token in FILE_FLAGS:
                explicit = TypeFilter.FILE_ONLY
            elif token in DIR_FLAGS:
                explicit = TypeFilter.DIR_ONLY
            elif _is_extension_token(token):
                extensions.add(token[1:].lower())
            else:
                fuzzy_terms.append(token)

        type_filter, extensions = self._resolve_type_filter(explicit, extensions)

        constraints = Constraints(
            raw=raw,
            type_filter=type_filter,
            extensions=frozenset(extensions),
            exact_phrase=exact_phrase,
            fuzzy_terms=tuple(fuzzy_terms),
        )
        logger.debug(f"Parsed query {raw!r} -> {constraints}")
        return constraints

    @staticmethod
    def _read_quoted(raw: str, start: int) -> Tuple[str, int]:
        """
        Read a quoted segment starting just after the opening quote.

        Returns:
            The unescaped content and the index just past the closing quote
            (or the end of input when the quote is never closed)
        """
        chars = []
        i = start
        n = len(raw)
        while i < n:
            c = raw[i]
            if c == '\\' and i + 1 < n and raw[i + 1] == '"':
                chars.append('"')
                i += 2
                continue
            if c == '"':
                return ''.join(chars), i + 1
            chars.append(c)
            i += 1
        return ''.join(chars), n

    @staticmethod
    def _resolve_type_filter(explicit: Optional[TypeFilter], extensions: Set[str]) -> Tuple[TypeFilter, Set[str]]:
        """
        Combine the last explicit flag with any extension filters.

        Extensions imply files, unless the user explicitly asked for
        directories, in which case the extensions are dropped.
        """
        if explicit == TypeFilter.DIR_ONLY:
            return TypeFilter.DIR_ONLY, set()
        if extensions:
            return TypeFilter.FILE_ONLY, extensions
        return explicit or TypeFilter.ANY, extensions


_default_parser = QueryParser()


def parse_query(raw: str) -> Constraints:
    """Convenience function to parse a raw query string."""
    return _default_parser.parse(raw)
