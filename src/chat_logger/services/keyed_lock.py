"""Per-key re-entrant locks for conversation-scoped critical sections."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock, RLock


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = RLock()
        self.holders = 0


class KeyedLock:
    """Hand out one re-entrant lock per key.

    Locks are created on first use and dropped once no thread holds or waits
    for them, so the registry only grows with the number of keys in flight.
    Different keys never contend with each other; the registry mutex is held
    only while looking an entry up.
    """

    def __init__(self) -> None:
        self._registry_lock = Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    def active_keys(self) -> int:
        """Return how many keys currently have a lock allocated."""
        with self._registry_lock:
            return len(self._entries)
