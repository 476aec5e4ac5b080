"""Per-configuration locks for allocation sequences."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ConfigurationLocks:
    """Registry of re-entrant locks, one per configuration id.

    Every read-check-assign sequence against a configuration runs inside
    ``lock(config_id)`` so two concurrent adds cannot both observe the same
    free slot. Locks are re-entrant, so a service holding the lock may call
    allocator methods that take it again.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def get(self, config_id: str) -> threading.RLock:
        """Return the lock for ``config_id``, creating it on first use."""
        with self._registry_lock:
            lock = self._locks.get(config_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[config_id] = lock
            return lock

    @contextmanager
    def lock(self, config_id: str) -> Iterator[None]:
        with self.get(config_id):
            yield

    def discard(self, config_id: str) -> None:
        """Forget the lock of a deleted configuration."""
        with self._registry_lock:
            self._locks.pop(config_id, None)
