"""
Concurrent filesystem walker for Tag Finder.

A fixed pool of worker threads expands directories taken from a shared,
capped queue. Each entry found is offered to a callback (the search engine's
filter and scorer). The walker owns everything that does not depend on the
query: ignore patterns, depth limits, tag-scope pruning, symlink cycle
detection, and per-path error recording.
"""

import os
import threading
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional
import logging

from ..models.config import FinderConfig
from ..tags.index import TagPredicate
from .cancellation import CancellationToken


logger = logging.getLogger(__name__)

# emit(path, display, is_dir) -> whether the walker should keep going
EmitCallback = Callable[[str, str, bool], bool]

QUEUE_WAIT_INTERVAL = 0.05


@dataclass(frozen=True)
class WorkItem:
    """
    A path waiting to be processed.

    Attributes:
        path: Absolute path of the entry
        base: Directory that displayed (and matched) paths are relative to
        depth: Depth of ``path`` below ``base``
        emit_self: Whether ``path`` itself is a candidate (tag seeds)
        expand: Whether to list ``path`` as a directory
    """
    path: str
    base: str
    depth: int = 0
    emit_self: bool = False
    expand: bool = True


class DirectoryQueue:
    """
    Shared queue of directories pending expansion.

    ``try_put`` refuses new items once ``max_length`` are pending, which keeps
    memory bounded on very wide trees. ``get`` returns None once the queue is
    empty and no worker is still busy (so no more items can appear), or when
    the search is cancelled.
    """

    def __init__(self, max_length: int):
        self.max_length = max_length
        self._items = deque()
        self._cond = threading.Condition()
        self._active = 0

    def seed(self, items: Iterable[WorkItem]) -> None:
        """Add initial items regardless of the cap."""
        with self._cond:
            self._items.extend(items)
            self._cond.notify_all()

    def try_put(self, item: WorkItem) -> bool:
        with self._cond:
            if len(self._items) >= self.max_length:
                return False
            self._items.append(item)
            self._cond.notify()
            return True

    def get(self, token: CancellationToken) -> Optional[WorkItem]:
        with self._cond:
            while True:
                if token.is_cancelled:
                    return None
                if self._items:
                    self._active += 1
                    return self._items.popleft()
                if self._active == 0:
                    self._cond.notify_all()
                    return None
                self._cond.wait(QUEUE_WAIT_INTERVAL)

    def task_done(self) -> None:
        with self._cond:
            self._active -= 1
            if self._active == 0:
                self._cond.notify_all()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


class FSWalker:
    """
    Filesystem walker that traverses directories with a pool of workers.

    This class provides bounded-concurrency traversal with support for:
    - Ignore pattern matching (gitignore-style) and ignored extensions
    - A soft cap on pending directories and an optional depth limit
    - Pruning of subtrees a tag scope can never reach
    - Symlink cycle detection by device and inode
    - Per-path error recording without aborting the walk
    """

    def __init__(self, config: FinderConfig):
        """
        Initialize the filesystem walker.

        Args:
            config: Configuration providing search tunables and ignore patterns
        """
        self.config = config
        self._lock = threading.Lock()
        self._visited = set()
        self._errors: Dict[str, str] = {}
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'directories_traversed': 0,
            'entries_scanned': 0,
            'entries_ignored': 0,
            'cycles_skipped': 0,
            'stale_entries_skipped': 0,
            'errors': 0,
        }

    def _bump(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._stats[key] += amount

    def _record_error(self, path: str, error: Exception) -> None:
        message = f"{type(error).__name__}: {error.strerror or error}" if isinstance(error, OSError) else str(error)
        with self._lock:
            self._errors[path] = message
            self._stats['errors'] += 1
        logger.warning(f"Skipping {path}: {message}")

    def root_seeds(self, root: str) -> List[WorkItem]:
        """Seed an unscoped walk: the root is listed but not itself a candidate."""
        return [WorkItem(path=root, base=root)]

    def tag_seeds(self, predicate: TagPredicate) -> List[WorkItem]:
        """
        Seed a tag-scoped walk from the predicate's most selective group.

        Each tagged path is a candidate itself; recursive directory entries
        are also listed. Paths that no longer exist are skipped.
        """
        seeds = []
        for entry in predicate.seed_entries():
            if not entry.exists():
                logger.debug(f"Skipping stale tag entry: {entry.path}")
                self._bump('stale_entries_skipped')
                continue
            seeds.append(WorkItem(
                path=entry.path,
                base=os.path.dirname(entry.path) or entry.path,
                emit_self=True,
                expand=entry.recursive and os.path.isdir(entry.path),
            ))
        return seeds

    def walk(self, seeds: List[WorkItem], emit: EmitCallback, token: CancellationToken,
             predicate: Optional[TagPredicate] = None) -> None:
        """
        Walk from ``seeds`` until the tree is exhausted or ``token`` is cancelled.

        Blocks the calling thread; workers run on a thread pool sized by
        ``search.thread_count``.

        Args:
            seeds: Initial work items (search root, or tag entries)
            emit: Called for each candidate that passes ignore and scope checks
            token: Cancellation token checked between units of work
            predicate: Tag-scope membership test, or None for unscoped walks
        """
        work_queue = DirectoryQueue(self.config.search.max_queue_length)
        work_queue.seed(seeds)
        thread_count = self.config.search.thread_count

        started = time.monotonic()
        with ThreadPoolExecutor(max_workers=thread_count, thread_name_prefix="tagfinder-walk") as executor:
            futures = [
                executor.submit(self._worker, work_queue, emit, token, predicate)
                for _ in range(thread_count)
            ]
        for future in futures:
            error = future.exception()
            if error is not None:
                # A failing worker must not take the others down; its queue items are lost
                logger.error(f"Walker worker failed: {error!r}")
                self._bump('errors')

        logger.debug(
            f"Walk finished in {time.monotonic() - started:.3f}s "
            f"({self._stats['directories_traversed']} directories, cancelled={token.is_cancelled})"
        )

    def _worker(self, work_queue: DirectoryQueue, emit: EmitCallback, token: CancellationToken,
                predicate: Optional[TagPredicate]) -> None:
        while True:
            item = work_queue.get(token)
            if item is None:
                return
            try:
                self._process(item, work_queue, emit, token, predicate)
            finally:
                work_queue.task_done()

    def _process(self, item: WorkItem, work_queue: DirectoryQueue, emit: EmitCallback,
                 token: CancellationToken, predicate: Optional[TagPredicate]) -> None:
        """
        Handle one dequeued item, then any directories it could not queue.

        When the shared queue is full, new subdirectories go onto this
        worker's own depth-first stack instead of being dropped.
        """
        local_stack = [item]
        while local_stack:
            if token.is_cancelled:
                return
            current = local_stack.pop()

            if current.emit_self and not self._emit_seed(current, emit, predicate):
                return
            if not current.expand:
                continue

            for child in self._expand(current, emit, token, predicate):
                if child is None:
                    return
                if not work_queue.try_put(child):
                    local_stack.append(child)

    def _emit_seed(self, item: WorkItem, emit: EmitCallback, predicate: Optional[TagPredicate]) -> bool:
        try:
            is_dir = os.path.isdir(item.path)
        except OSError as e:
            self._record_error(item.path, e)
            return True
        if predicate is not None and not predicate.covers(item.path):
            return True
        self._bump('entries_scanned')
        display = os.path.relpath(item.path, item.base)
        if self.config.should_ignore(display, is_dir) or (not is_dir and self.config.is_extension_ignored(item.path)):
            self._bump('entries_ignored')
            return True
        return emit(item.path, display, is_dir)

    def _mark_visited(self, path: str) -> bool:
        """Remember a directory by identity; False if it was already walked."""
        st = os.stat(path)
        key = (st.st_dev, st.st_ino)
        with self._lock:
            if key in self._visited:
                self._stats['cycles_skipped'] += 1
                return False
            self._visited.add(key)
            return True

    def _expand(self, item: WorkItem, emit: EmitCallback, token: CancellationToken,
                predicate: Optional[TagPredicate]):
        """
        List one directory, emitting candidates and yielding subdirectories.

        Yields None when the walk must stop (cancelled, or ``emit`` said so).
        """
        try:
            if not self._mark_visited(item.path):
                logger.debug(f"Already visited, skipping: {item.path}")
                return
            with os.scandir(item.path) as scanner:
                entries = list(scanner)
        except OSError as e:
            self._record_error(item.path, e)
            return

        self._bump('directories_traversed')
        max_depth = self.config.search.max_depth
        child_depth = item.depth + 1
        follow_symlinks = self.config.search.follow_symlinks

        for entry in entries:
            if token.is_cancelled:
                yield None
                return

            path = entry.path
            try:
                is_dir = entry.is_dir(follow_symlinks=True)
                is_link = entry.is_symlink()
            except OSError as e:
                self._record_error(path, e)
                continue

            self._bump('entries_scanned')
            display = os.path.relpath(path, item.base)
            if self.config.should_ignore(display, is_dir):
                self._bump('entries_ignored')
                continue
            if not is_dir and self.config.is_extension_ignored(entry.name):
                self._bump('entries_ignored')
                continue

            if predicate is None or predicate.covers(path):
                if not emit(path, display, is_dir):
                    yield None
                    return

            if not is_dir or (is_link and not follow_symlinks):
                continue
            if max_depth is not None and child_depth >= max_depth:
                continue
            if predicate is not None and not predicate.could_contain(path):
                continue
            yield WorkItem(path=path, base=item.base, depth=child_depth)

    def get_stats(self) -> Dict[str, int]:
        """Get statistics about the walk so far."""
        with self._lock:
            return self._stats.copy()

    def get_errors(self) -> Dict[str, str]:
        """Get the error message recorded for each failing path."""
        with self._lock:
            return dict(self._errors)

    def reset_stats(self) -> None:
        """Reset counters, errors and the visited set."""
        with self._lock:
            self._stats = self._empty_stats()
            self._errors = {}
            self._visited = set()
