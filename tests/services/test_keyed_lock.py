"""Tests for per-key locking."""

import threading

from chat_logger.services.keyed_lock import KeyedLock


def _acquire_in_thread(locks: KeyedLock, key: str, acquired: threading.Event) -> threading.Thread:
    def _worker() -> None:
        with locks.hold(key):
            acquired.set()

    thread = threading.Thread(target=_worker)
    thread.start()
    return thread


def test_same_key_blocks_other_threads() -> None:
    locks = KeyedLock()
    acquired = threading.Event()
    with locks.hold("global"):
        thread = _acquire_in_thread(locks, "global", acquired)
        assert not acquired.wait(0.2)
    thread.join(timeout=5)
    assert acquired.is_set()


def test_different_keys_do_not_contend() -> None:
    locks = KeyedLock()
    acquired = threading.Event()
    with locks.hold("dm:one"):
        thread = _acquire_in_thread(locks, "dm:two", acquired)
        assert acquired.wait(5)
    thread.join(timeout=5)


def test_lock_is_reentrant() -> None:
    locks = KeyedLock()
    with locks.hold("global"):
        with locks.hold("global"):
            assert locks.active_keys() == 1


def test_unused_locks_are_released() -> None:
    locks = KeyedLock()
    with locks.hold("a"), locks.hold("b"):
        assert locks.active_keys() == 2
    assert locks.active_keys() == 0
