"""
Per-match mutual exclusion.

Every operation that mutates a match runs inside ``hold(match_id)`` so two
callers never interleave a read-modify-write on the same match. Different
match ids get different locks and proceed in parallel.
"""
import logging
import threading
import weakref
from contextlib import ExitStack, contextmanager
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)


class MatchLockRegistry:
    """
    Lazily creates one lock per match id.

    Entries are weak: a lock lives only while some caller holds or waits on
    it, so idle and finished matches do not accumulate.

    Usage:
        locks = MatchLockRegistry()
        with locks.hold(match_id):
            ...read, validate, write, publish...
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
        self._lock = threading.Lock()

    def lock_for(self, match_id: int) -> threading.Lock:
        """Return the lock guarding ``match_id``, creating it on first use."""
        with self._lock:
            lock = self._locks.get(match_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[match_id] = lock
                logger.debug("Created lock for match %s", match_id)
            return lock

    @contextmanager
    def hold(self, match_id: int) -> Iterator[None]:
        lock = self.lock_for(match_id)
        with lock:
            yield

    @contextmanager
    def hold_all(self, match_ids: Iterable[int]) -> Iterator[None]:
        """Hold several match locks at once, acquired in ascending id order."""
        with ExitStack() as stack:
            for match_id in sorted(set(match_ids)):
                stack.enter_context(self.hold(match_id))
            yield

    @property
    def active_locks(self) -> int:
        with self._lock:
            return len(self._locks)
