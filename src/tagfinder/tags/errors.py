"""Exceptions raised by the tag index."""


class TagIndexError(Exception):
    """Base class for tag index failures."""
    pass


class TagIndexPersistenceError(TagIndexError):
    """
    Raised when the index could not be written to disk.

    The in-memory index keeps the change and continues to serve reads; the
    caller decides whether to retry or warn the user.
    """
    pass


class InvalidTagNameError(TagIndexError, ValueError):
    """Raised for empty tag names or names containing whitespace."""
    pass


class InvalidTagPathError(TagIndexError):
    """Raised when tagging a path that does not exist."""
    pass


class UnknownTagError(TagIndexError, KeyError):
    """Raised when an operation names a tag that is not in the index."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class TagExistsError(TagIndexError):
    """Raised when renaming or creating a tag would clash with an existing one."""
    pass


class SelfReferringSubtagError(TagIndexError):
    """Raised when a subtag link would make a tag include itself."""
    pass
