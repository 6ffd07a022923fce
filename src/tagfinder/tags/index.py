"""
Persistent tag index for Tag Finder.

The index maps tag names to sets of tagged paths and is the single source of
truth for tags across restarts. It is constructed once at startup and passed
to whatever needs it. Reads (``resolve``, ``list_tags``, ``tags_for``) run
concurrently; mutations are exclusive and are written to disk before they
return, by rewriting the whole YAML file through a temporary file and an
atomic replace.
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union
import logging

import yaml
from pydantic import ValidationError

from .errors import (
    InvalidTagNameError,
    InvalidTagPathError,
    SelfReferringSubtagError,
    TagExistsError,
    TagIndexPersistenceError,
    UnknownTagError,
)
from .locking import ReadWriteLock
from .models import Tag, TagEntry, is_valid_tag_name, normalize_path


logger = logging.getLogger(__name__)

INDEX_FORMAT_VERSION = 1


def trim_entries(entries: Iterable[TagEntry]) -> List[TagEntry]:
    """
    Drop entries already covered by another recursive entry.

    The result covers exactly the same paths, but walking it never visits a
    directory twice.
    """
    entries = sorted(set(entries), key=lambda e: (e.path, not e.recursive))
    trimmed: List[TagEntry] = []
    for entry in entries:
        if any(kept.recursive and kept.covers(entry.path) for kept in trimmed):
            continue
        # Same path listed both ways: the recursive one sorted first and wins
        trimmed.append(entry)
    return trimmed


class TagPredicate:
    """
    Lazily evaluated membership test for an intersection of tags.

    Holds an immutable snapshot of each tag's entries (subtags included) taken
    when the predicate was built, so later index mutations never change an
    in-flight search. A path is covered when, for every tag, at least one of
    that tag's entries covers it.
    """

    def __init__(self, groups: Dict[str, Tuple[TagEntry, ...]]):
        self._groups = dict(groups)

    @property
    def tag_names(self) -> List[str]:
        return sorted(self._groups)

    @property
    def matches_everything(self) -> bool:
        """True for the empty intersection, which covers every path."""
        return not self._groups

    @property
    def matches_nothing(self) -> bool:
        return any(not entries for entries in self._groups.values())

    def __call__(self, path: Union[str, os.PathLike]) -> bool:
        return self.covers(normalize_path(path))

    def covers(self, path: str) -> bool:
        """Membership test for an already normalized path."""
        for entries in self._groups.values():
            if not any(entry.covers(path) for entry in entries):
                return False
        return True

    def could_contain(self, directory: str) -> bool:
        """
        Whether anything at or below ``directory`` can satisfy the predicate.

        Used to prune traversal: for each tag there must be an entry that either
        covers the directory or lies beneath it.
        """
        for entries in self._groups.values():
            if not any(entry.covers(directory) or entry.is_below(directory) for entry in entries):
                return False
        return True

    def seed_entries(self) -> List[TagEntry]:
        """
        Entries to enumerate candidates from.

        Every covered path lies under an entry of every group, so enumerating
        the most selective group is enough: the one with the fewest recursive
        entries, then the fewest entries.
        """
        if not self._groups or self.matches_nothing:
            return []
        name = min(
            self._groups,
            key=lambda n: (sum(e.recursive for e in self._groups[n]), len(self._groups[n]), n)
        )
        return trim_entries(self._groups[name])

    def __repr__(self) -> str:
        return f"TagPredicate({', '.join(self.tag_names) or '*'})"


class TagIndex:
    """
    Process-wide tag index with readers-writer access and durable mutations.

    Attributes:
        index_path: File the index is persisted to, or None for in-memory only
        load_error: Message describing a corrupt index file found at load time
    """

    def __init__(self, index_path: Optional[Union[str, Path]] = None, tags: Optional[Iterable[Tag]] = None):
        self.index_path = Path(index_path).expanduser() if index_path else None
        self.load_error: Optional[str] = None
        self._tags: Dict[str, Tag] = {tag.name: tag for tag in tags or []}
        self._lock = ReadWriteLock()
        self._notice_lock = threading.Lock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # -- loading and saving -------------------------------------------------

    @classmethod
    def load(cls, index_path: Union[str, Path]) -> 'TagIndex':
        """
        Load an index from disk.

        A missing file yields an empty index. A corrupt file also yields an
        empty index rather than failing; the file is moved aside to
        ``<name>.corrupt`` so later saves cannot overwrite it, and the problem
        is logged and kept in ``load_error`` so the UI can show it once.
        """
        index = cls(index_path)
        path = index.index_path
        if not path.exists():
            logger.info(f"No tag index at {path}, starting empty")
            return index

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            index._tags = cls._tags_from_data(data)
        except (yaml.YAMLError, ValidationError, ValueError, TypeError) as e:
            index.load_error = f"Tag index {path} is corrupt and was not loaded: {e}"
        except OSError as e:
            index.load_error = f"Cannot read tag index {path}: {e}"
        else:
            logger.info(f"Loaded {len(index._tags)} tags from {path}")
            return index

        try:
            backup = cls._set_aside(path)
        except OSError as e:
            # Saving now would destroy the only copy
            index.index_path = None
            index.load_error += f". It could not be moved aside ({e}); tag changes will not be saved"
        else:
            index.load_error += f". The file was moved to {backup}"
        logger.error(index.load_error)
        return index

    @staticmethod
    def _set_aside(path: Path) -> Path:
        """Rename ``path`` to the first free ``<name>.corrupt[.N]`` beside it."""
        target = path.with_name(f"{path.name}.corrupt")
        counter = 1
        while target.exists():
            target = path.with_name(f"{path.name}.corrupt.{counter}")
            counter += 1
        os.replace(path, target)
        return target

    @staticmethod
    def _tags_from_data(data) -> Dict[str, Tag]:
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"expected a mapping, got {type(data).__name__}")

        version = data.get('version', INDEX_FORMAT_VERSION)
        if version != INDEX_FORMAT_VERSION:
            raise ValueError(f"unsupported index version {version!r}")

        raw_tags = data.get('tags') or {}
        if not isinstance(raw_tags, dict):
            raise ValueError("'tags' must be a mapping of tag name to entries")

        tags = {}
        for name, body in raw_tags.items():
            body = body or {}
            if not isinstance(body, dict):
                raise ValueError(f"tag {name!r} must be a mapping")
            tags[str(name)] = Tag(
                name=str(name),
                entries=body.get('entries') or [],
                subtags=body.get('subtags') or [],
            )
        return tags

    def to_dict(self) -> Dict:
        with self._lock.read_locked():
            return self._to_dict_unlocked()

    def _to_dict_unlocked(self) -> Dict:
        return {
            'version': INDEX_FORMAT_VERSION,
            'tags': {name: self._tags[name].to_dict() for name in sorted(self._tags)},
        }

    def save(self) -> None:
        """Write the whole index to disk."""
        with self._lock.read_locked():
            self._save_unlocked()

    def _save_unlocked(self) -> None:
        """
        Rewrite the index file atomically.

        The new content goes to a temporary file in the same directory, is
        flushed and fsynced, then replaces the old file in one rename. A crash at
        any point leaves either the old or the new file intact.

        Raises:
            TagIndexPersistenceError: If the file cannot be written
        """
        if self.index_path is None:
            return

        path = self.index_path
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            content = yaml.safe_dump(self._to_dict_unlocked(), default_flow_style=False, sort_keys=False)

            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write("# Tag Finder tag index\n")
                f.write(content)
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_name, path)
            tmp_name = None
            self.logger.debug(f"Saved {len(self._tags)} tags to {path}")

        except OSError as e:
            raise TagIndexPersistenceError(f"Cannot write tag index {path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError as e:
                    self.logger.warning(f"Cannot remove temporary index file {tmp_name}: {e}")

    def pop_load_error(self) -> Optional[str]:
        """Return the load error once, then forget it."""
        with self._notice_lock:
            message, self.load_error = self.load_error, None
            return message

    # -- mutations ----------------------------------------------------------

    def _mutate(self, action: Callable[[], bool]) -> bool:
        """Run ``action`` under the write lock and persist if it changed anything."""
        with self._lock.write_locked():
            changed = action()
            if changed:
                self._save_unlocked()
            return changed

    def _require_tag(self, name: str) -> Tag:
        tag = self._tags.get(name)
        if tag is None:
            raise UnknownTagError(f"Unknown tag: {name}")
        return tag

    @staticmethod
    def _check_name(name: str) -> None:
        if not isinstance(name, str) or not is_valid_tag_name(name):
            raise InvalidTagNameError(f"Invalid tag name {name!r}: names must be non-empty and contain no whitespace")

    def create_tag(self, name: str) -> bool:
        """
        Create an empty tag.

        Returns:
            True if the tag was created, False if it already existed
        """
        self._check_name(name)

        def action() -> bool:
            if name in self._tags:
                return False
            self._tags[name] = Tag(name=name)
            return True

        return self._mutate(action)

    def delete_tag(self, name: str) -> bool:
        """Delete a tag and every subtag link pointing at it."""
        def action() -> bool:
            if self._tags.pop(name, None) is None:
                return False
            for tag in self._tags.values():
                if name in tag.subtags:
                    tag.subtags = [s for s in tag.subtags if s != name]
            return True

        return self._mutate(action)

    def rename_tag(self, old_name: str, new_name: str) -> bool:
        """
        Rename a tag, updating subtag links that refer to it.

        Raises:
            UnknownTagError: If ``old_name`` does not exist
            TagExistsError: If ``new_name`` is already taken
        """
        self._check_name(new_name)

        def action() -> bool:
            tag = self._require_tag(old_name)
            if old_name == new_name:
                return False
            if new_name in self._tags:
                raise TagExistsError(f"Tag already exists: {new_name}")
            del self._tags[old_name]
            tag.name = new_name
            self._tags[new_name] = tag
            for other in self._tags.values():
                other.subtags = [new_name if s == old_name else s for s in other.subtags]
            return True

        return self._mutate(action)

    def tag(self, path: Union[str, os.PathLike], tag_name: str, recursive: bool = False) -> bool:
        """
        Attach ``path`` to ``tag_name``, creating the tag when needed.

        Tagging an already tagged path updates its ``recursive`` flag.

        Args:
            path: Existing file or directory
            tag_name: Tag to attach the path to
            recursive: Whether the tag also covers everything below ``path``

        Returns:
            True if the index changed

        Raises:
            InvalidTagNameError: If the tag name is not valid
            InvalidTagPathError: If ``path`` does not exist
            TagIndexPersistenceError: If the change could not be saved
        """
        self._check_name(tag_name)
        normalized = normalize_path(path)
        if not os.path.lexists(normalized):
            raise InvalidTagPathError(f"Path does not exist: {normalized}")
        entry = TagEntry(path=normalized, recursive=recursive)

        def action() -> bool:
            tag = self._tags.get(tag_name)
            if tag is None:
                tag = Tag(name=tag_name)
                self._tags[tag_name] = tag
                tag.set_entry(entry)
                return True
            return tag.set_entry(entry)

        changed = self._mutate(action)
        if changed:
            self.logger.debug(f"Tagged {normalized} with {tag_name} (recursive={recursive})")
        return changed

    def untag(self, path: Union[str, os.PathLike], tag_name: str) -> bool:
        """
        Detach ``path`` from ``tag_name``.

        The tag itself stays in the index even when it becomes empty.

        Returns:
            True if an entry was removed
        """
        normalized = normalize_path(path)

        def action() -> bool:
            tag = self._tags.get(tag_name)
            if tag is None:
                return False
            return tag.remove_entry(normalized)

        return self._mutate(action)

    def add_subtag(self, parent: str, child: str) -> bool:
        """
        Make ``parent`` also cover everything ``child`` covers.

        Raises:
            UnknownTagError: If either tag does not exist
            SelfReferringSubtagError: If the link would create a cycle
        """
        def action() -> bool:
            parent_tag = self._require_tag(parent)
            self._require_tag(child)
            if child in parent_tag.subtags:
                return False
            if parent == child or parent in self._expand_unlocked(child):
                raise SelfReferringSubtagError(f"Tag {parent} would include itself through {child}")
            parent_tag.subtags = parent_tag.subtags + [child]
            return True

        return self._mutate(action)

    def remove_subtag(self, parent: str, child: str) -> bool:
        def action() -> bool:
            parent_tag = self._require_tag(parent)
            if child not in parent_tag.subtags:
                return False
            parent_tag.subtags = [s for s in parent_tag.subtags if s != child]
            return True

        return self._mutate(action)

    def prune_missing(self) -> List[TagEntry]:
        """
        Remove entries whose paths no longer exist on disk.

        Returns:
            The removed entries
        """
        removed: List[TagEntry] = []

        def action() -> bool:
            for tag in self._tags.values():
                stale = [entry for entry in tag.entries if not entry.exists()]
                for entry in stale:
                    tag.remove_entry(entry.path)
                removed.extend(stale)
            return bool(removed)

        self._mutate(action)
        if removed:
            self.logger.info(f"Pruned {len(removed)} stale tag entries")
        return removed

    # -- queries ------------------------------------------------------------

    def _expand_unlocked(self, name: str) -> List[str]:
        """The tag and all of its transitive subtags, cycle-safe."""
        seen: List[str] = []
        stack = [name]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.append(current)
            tag = self._tags.get(current)
            if tag is not None:
                stack.extend(reversed(tag.subtags))
        return seen

    def _entries_unlocked(self, name: str) -> Tuple[TagEntry, ...]:
        entries: List[TagEntry] = []
        for tag_name in self._expand_unlocked(name):
            tag = self._tags.get(tag_name)
            if tag is not None:
                entries.extend(tag.entries)
        return tuple(dict.fromkeys(entries))

    def resolve(self, tag_names: Iterable[str]) -> TagPredicate:
        """
        Build a predicate for the intersection of ``tag_names``.

        The predicate answers lazily per path; nothing under a recursive entry
        is enumerated here. An empty set matches every path; an unknown tag
        matches none.
        """
        names = set(tag_names)
        with self._lock.read_locked():
            groups = {name: self._entries_unlocked(name) for name in names}
        return TagPredicate(groups)

    def list_tags(self) -> List[str]:
        with self._lock.read_locked():
            return sorted(self._tags)

    def get_tag(self, name: str) -> Optional[Tag]:
        """Return a copy of the named tag, or None."""
        with self._lock.read_locked():
            tag = self._tags.get(name)
            return tag.model_copy(deep=True) if tag is not None else None

    def entries(self, name: str) -> List[TagEntry]:
        """Direct entries of a tag (subtags excluded)."""
        with self._lock.read_locked():
            return list(self._require_tag(name).entries)

    def tags_for(self, path: Union[str, os.PathLike]) -> List[str]:
        """Names of every tag that covers ``path``, subtags included."""
        normalized = normalize_path(path)
        with self._lock.read_locked():
            return sorted(
                name for name in self._tags
                if any(entry.covers(normalized) for entry in self._entries_unlocked(name))
            )

    def __contains__(self, name: str) -> bool:
        with self._lock.read_locked():
            return name in self._tags

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._tags)

    def __str__(self) -> str:
        return f"TagIndex({len(self)} tags, path={self.index_path})"
