"""
Write lock for the invoice store.

Writers never queue: a second writer fails immediately with
:class:`WriteInProgressError`.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from finboard.store.errors import WriteInProgressError


class WriteLock:
    """Non-blocking mutual exclusion for store writes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def try_acquire(self) -> bool:
        """Take the lock if it is free. Never blocks."""
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Hold the lock for the duration of the block.

        Raises:
            WriteInProgressError: If another writer already holds it.
        """
        if not self.try_acquire():
            raise WriteInProgressError()
        try:
            yield
        finally:
            self.release()
