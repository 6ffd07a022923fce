"""
Result ranking for Tag Finder.

Results arrive from the search workers in no particular order. The UI only
shows the best few, so ranking is done incrementally into a bounded top-K
structure instead of sorting everything on every arrival.

Order: match kind (exact, then extension-qualified, then fuzzy), score
descending, shorter path, then path ascending.
"""

import bisect
from typing import Dict, Iterable, Iterator, List, Tuple

from ..models.search_results import ScoredResult


RankKey = Tuple[int, float, int, str]


def rank_key(result: ScoredResult) -> RankKey:
    """Sort key where smaller means better."""
    return (result.match_kind.priority, -result.score, len(result.path), result.path)


class ResultRanker:
    """Total order over scored results."""

    key = staticmethod(rank_key)

    @staticmethod
    def sort(results: Iterable[ScoredResult]) -> List[ScoredResult]:
        return sorted(results, key=rank_key)

    @staticmethod
    def better(a: ScoredResult, b: ScoredResult) -> bool:
        """Whether ``a`` ranks strictly before ``b``."""
        return rank_key(a) < rank_key(b)


class TopKResults:
    """
    The best ``k`` results seen so far, kept in rank order.

    Insertion is a binary search plus a list shift bounded by ``k``. A path
    seen twice keeps only its better-ranked result.
    """

    def __init__(self, k: int):
        if k < 1:
            raise ValueError("k must be at least 1")
        self.k = k
        self._keys: List[RankKey] = []
        self._results: List[ScoredResult] = []
        self._by_path: Dict[str, RankKey] = {}

    def add(self, result: ScoredResult) -> bool:
        """
        Offer a result.

        Returns:
            True if the result is now among the top ``k``
        """
        key = rank_key(result)
        existing = self._by_path.get(result.path)
        if existing is not None:
            if existing <= key:
                return False
            self._remove_key(existing)

        index = bisect.bisect_left(self._keys, key)
        if index >= self.k:
            return False

        self._keys.insert(index, key)
        self._results.insert(index, result)
        self._by_path[result.path] = key

        if len(self._keys) > self.k:
            self._keys.pop()
            dropped = self._results.pop()
            del self._by_path[dropped.path]
        return True

    def extend(self, results: Iterable[ScoredResult]) -> int:
        """Offer many results; returns how many entered the top ``k``."""
        return sum(1 for result in results if self.add(result))

    def _remove_key(self, key: RankKey) -> None:
        index = bisect.bisect_left(self._keys, key)
        del self._keys[index]
        removed = self._results.pop(index)
        del self._by_path[removed.path]

    def items(self) -> List[ScoredResult]:
        return list(self._results)

    def worst_key(self):
        """Key of the last kept result, or None while not full."""
        if len(self._keys) < self.k:
            return None
        return self._keys[-1]

    def clear(self) -> None:
        self._keys.clear()
        self._results.clear()
        self._by_path.clear()

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[ScoredResult]:
        return iter(list(self._results))

    def __contains__(self, path: str) -> bool:
        return path in self._by_path
