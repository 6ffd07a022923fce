"""
Search engine for Tag Finder.

Runs a query over either a directory tree or an intersection of tags and
streams scored results back to the caller as the workers find them. Each
search runs on its own background thread, which drives an FSWalker and
closes the result channel when the walk ends.
"""

import queue
import threading
import time
from pathlib import Path
from typing import Iterator, List, Optional
import logging

from ..models.config import FinderConfig
from ..models.search_query import Constraints, SearchScope, TypeFilter
from ..models.search_results import MatchKind, ScoredResult, SearchSummary
from ..tags.index import TagIndex
from .cancellation import CancellationToken
from .fs_walker import FSWalker
from .fuzzy import FuzzyMatcher
from .ranking import TopKResults


PUT_TIMEOUT = 0.05
GET_TIMEOUT = 0.05

_DONE = object()


class EntryMatcher:
    """
    Applies a query's constraints to one candidate.

    Filters run cheapest first: type, extension, exact phrase, then the fuzzy
    scorer.
    """

    def __init__(self, constraints: Constraints, fuzzy: Optional[FuzzyMatcher] = None):
        self.constraints = constraints
        self.fuzzy = fuzzy or FuzzyMatcher()
        self._fuzzy_text = constraints.fuzzy_text
        if constraints.has_exact_phrase():
            self.match_kind = MatchKind.EXACT
        elif constraints.has_extensions():
            self.match_kind = MatchKind.EXTENSION
        else:
            self.match_kind = MatchKind.FUZZY

    def match(self, path: str, display: str, is_dir: bool) -> Optional[ScoredResult]:
        """
        Test one candidate.

        Args:
            path: Absolute path of the entry
            display: Path text the query is matched against
            is_dir: Whether the entry is a directory

        Returns:
            A ScoredResult, or None when any constraint rejects the entry
        """
        constraints = self.constraints

        if constraints.type_filter == TypeFilter.FILE_ONLY and is_dir:
            return None
        if constraints.type_filter == TypeFilter.DIR_ONLY and not is_dir:
            return None

        if constraints.extensions:
            if is_dir:
                return None
            extension = Path(path).suffix.lower().lstrip('.')
            if extension not in constraints.extensions:
                return None

        phrase = constraints.exact_phrase
        if phrase is not None and phrase not in display.casefold():
            return None

        if self._fuzzy_text:
            score = self.fuzzy.score(display, self._fuzzy_text)
            if score is None:
                return None
        elif phrase is not None:
            score = self.fuzzy.score(display.casefold(), phrase) or 0.0
        else:
            score = 0.0

        return ScoredResult(
            path=path,
            score=score,
            match_kind=self.match_kind,
            is_dir=is_dir,
            display=display,
        )


class SearchHandle:
    """
    Live view of one running search.

    Iterate it to receive results in arrival order, or call ``poll`` from a UI
    tick to take what is ready without blocking. Results taken either way are
    also kept in a ranked top-K list available through ``ranked()``.
    """

    def __init__(self, constraints: Constraints, scope: SearchScope, token: CancellationToken,
                 channel: queue.Queue, max_results: int, results_per_tick: int = 64):
        self.constraints = constraints
        self.scope = scope
        self.token = token
        self._channel = channel
        self._finished = threading.Event()
        self._drained = False
        self._summary = SearchSummary()
        self._top = TopKResults(max_results)
        self.results_per_tick = results_per_tick
        self._lock = threading.Lock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def cancel(self) -> None:
        """Stop the search; workers exit at their next check."""
        if not self.token.is_cancelled:
            self.logger.debug(f"Cancelling search for {self.constraints.raw!r}")
        self.token.cancel()

    @property
    def is_done(self) -> bool:
        """True once the workers have stopped, whether finished or cancelled."""
        return self._finished.is_set()

    @property
    def summary(self) -> SearchSummary:
        """Counters and errors; final once ``is_done`` is True."""
        return self._summary

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the workers stop; returns ``is_done``."""
        return self._finished.wait(timeout)

    def _take(self, result: ScoredResult) -> ScoredResult:
        with self._lock:
            self._top.add(result)
        return result

    def __iter__(self) -> Iterator[ScoredResult]:
        while not self._drained:
            if self.token.is_cancelled:
                return
            try:
                item = self._channel.get(timeout=GET_TIMEOUT)
            except queue.Empty:
                continue
            if item is _DONE:
                self._drained = True
                return
            yield self._take(item)

    def poll(self, max_items: Optional[int] = None) -> List[ScoredResult]:
        """
        Take up to ``max_items`` ready results without blocking.

        ``max_items`` defaults to the configured ``results_per_tick``, the
        batch the UI drains per refresh.

        An empty list means nothing is ready right now; check ``is_done`` to
        tell whether more can come.
        """
        if max_items is None:
            max_items = self.results_per_tick
        batch = []
        while len(batch) < max_items and not self._drained:
            try:
                item = self._channel.get_nowait()
            except queue.Empty:
                break
            if item is _DONE:
                self._drained = True
                break
            batch.append(self._take(item))
        return batch

    def collect(self, limit: Optional[int] = None) -> List[ScoredResult]:
        """
        Drain the search and return the best results in rank order.

        Args:
            limit: How many results to return (defaults to the configured
                ``max_results``)
        """
        for _ in self:
            pass
        ranked = self.ranked()
        return ranked if limit is None else ranked[:limit]

    def ranked(self) -> List[ScoredResult]:
        """Best results received so far, in rank order."""
        with self._lock:
            return self._top.items()

    def _finish(self, summary: SearchSummary) -> None:
        self._summary = summary
        self._finished.set()

    def __enter__(self) -> 'SearchHandle':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = "done" if self.is_done else "running"
        return f"SearchHandle({self.constraints.raw!r}, {self.scope}, {state})"


class SearchEngine:
    """
    Starts searches and wires their workers to result channels.

    The engine itself holds no per-search state, so any number of searches may
    run at once; the UI normally cancels the previous one before starting the
    next.
    """

    def __init__(self, config: FinderConfig, tag_index: Optional[TagIndex] = None):
        """
        Initialize the search engine.

        Args:
            config: Search tunables and ignore patterns
            tag_index: Index used to resolve tag-scoped searches
        """
        self.config = config
        self.tag_index = tag_index if tag_index is not None else TagIndex()
        self.fuzzy = FuzzyMatcher()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def update_config(self, config: FinderConfig) -> None:
        """Use ``config`` for searches started from now on."""
        self.config = config

    def search(self, constraints: Constraints, scope: SearchScope,
               token: Optional[CancellationToken] = None) -> SearchHandle:
        """
        Start a search in the background.

        Args:
            constraints: Parsed query
            scope: Directory tree or tag intersection to search
            token: Cancellation token; a new one is created if omitted

        Returns:
            A handle streaming results as they are found
        """
        config = self.config
        token = token or CancellationToken()
        channel = queue.Queue(maxsize=config.search.channel_capacity)
        handle = SearchHandle(constraints, scope, token, channel,
                              config.search.max_results, config.search.results_per_tick)

        walker = FSWalker(config)
        if scope.is_unscoped:
            predicate = None
            seeds = walker.root_seeds(scope.root)
        else:
            predicate = self.tag_index.resolve(scope.tags)
            seeds = walker.tag_seeds(predicate)

        self.logger.info(f"Searching {scope} for {constraints}")
        thread = threading.Thread(
            target=self._run,
            args=(handle, walker, seeds, predicate, EntryMatcher(constraints, self.fuzzy)),
            name="tagfinder-search",
            daemon=True,
        )
        thread.start()
        return handle

    def _run(self, handle: SearchHandle, walker: FSWalker, seeds, predicate, matcher: EntryMatcher) -> None:
        token = handle.token
        channel = handle._channel
        matched = 0
        matched_lock = threading.Lock()
        started = time.time()

        def emit(path: str, display: str, is_dir: bool) -> bool:
            nonlocal matched
            result = matcher.match(path, display, is_dir)
            if result is None:
                return True
            with matched_lock:
                matched += 1
            return self._put(channel, result, token)

        try:
            walker.walk(seeds, emit, token, predicate)
        except Exception as e:
            # The handle must always finish, or the UI would wait forever
            self.logger.error(f"Search failed: {e!r}")
        finally:
            stats = walker.get_stats()
            summary = SearchSummary(
                directories_traversed=stats['directories_traversed'],
                entries_scanned=stats['entries_scanned'],
                entries_matched=matched,
                entries_ignored=stats['entries_ignored'],
                cycles_skipped=stats['cycles_skipped'],
                stale_entries_skipped=stats['stale_entries_skipped'],
                errors=walker.get_errors(),
                cancelled=token.is_cancelled,
                execution_time=time.time() - started,
            )
            handle._finish(summary)
            self._put(channel, _DONE, token)
            self.logger.info(f"Search finished: {summary}")

    @staticmethod
    def _put(channel: queue.Queue, item, token: CancellationToken) -> bool:
        """Blocking put that gives up once the search is cancelled."""
        while not token.is_cancelled:
            try:
                channel.put(item, timeout=PUT_TIMEOUT)
                return True
            except queue.Full:
                continue
        return False
