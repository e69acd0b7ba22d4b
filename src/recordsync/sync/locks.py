"""Per-record locks.

Reconciliation of one record is serialized on ``(entity, local_id)`` so a
direct sync and a delayed post-upload sync never interleave.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


@dataclass
class _Entry:
    lock: threading.RLock = field(default_factory=threading.RLock)
    users: int = 0


class RecordLocks:
    """Registry of re-entrant locks keyed by (entity, local_id).

    Entries are dropped once no thread holds or waits for them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[tuple[str, int], _Entry] = {}

    @contextmanager
    def hold(self, entity: str, local_id: int) -> Iterator[None]:
        """Hold the lock of one record for the duration of the block."""
        key = (entity, local_id)
        with self._guard:
            entry = self._entries.setdefault(key, _Entry())
            entry.users += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        """Number of records currently locked or awaited."""
        with self._guard:
            return len(self._entries)
