"""Per-key mutual exclusion."""
import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class _KeyLock:
    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks:
    """Hand out one lock per key while it is held or waited for.

    Used to serialize answer changes and submits on the same check, and
    check creation on the same vehicle. A key's lock is dropped once no
    thread holds or waits for it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, _KeyLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if not entry.users:
                    del self._locks[key]
