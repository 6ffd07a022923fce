"""Cooperative cancellation shared between the UI and search workers."""

import threading


class CancellationToken:
    """
    A flag the UI sets to stop an in-flight search.

    Workers check it between units of work (one directory, one entry); nothing
    is ever interrupted forcibly.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout=None) -> bool:
        """Block until cancelled or ``timeout`` elapses; returns the flag."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
