"""
In-memory world state backend.

Keys are kept in a sorted list next to the value map so range scans come
back in the same code-point order the SQLite backend produces.
"""

from __future__ import annotations

import bisect
import threading
from typing import Dict, Iterator, List, Optional, Sequence, Tuple


class MemoryStateBackend:
    """
    Sorted in-memory key-value store.

    Thread Safety:
        ``apply`` and ``range`` take a lock so a scan never observes half of
        a write set.
    """

    def __init__(self, initial: Optional[Dict[str, bytes]] = None) -> None:
        self._lock = threading.RLock()
        self._values: Dict[str, bytes] = {}
        self._keys: List[str] = []
        if initial:
            self.apply(list(initial.items()))

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._values.get(key)

    def range(self, start: str, end: str) -> Iterator[Tuple[str, bytes]]:
        with self._lock:
            lo = bisect.bisect_left(self._keys, start)
            hi = bisect.bisect_left(self._keys, end)
            snapshot = [(key, self._values[key]) for key in self._keys[lo:hi]]
        yield from snapshot

    def apply(self, writes: Sequence[Tuple[str, bytes]]) -> None:
        with self._lock:
            for key, value in writes:
                if key not in self._values:
                    bisect.insort(self._keys, key)
                self._values[key] = bytes(value)

    def items(self) -> List[Tuple[str, bytes]]:
        """All entries in key order."""
        with self._lock:
            return [(key, self._values[key]) for key in self._keys]

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values
