"""Eviction policies for the page cache.

Policies are only called while the cache lock is held.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import List, Optional, Protocol


class EvictionPolicy(Protocol):
    def admits(self, nbytes: int) -> bool: ...

    def on_insert(self, key: int, nbytes: int) -> None: ...

    def on_access(self, key: int) -> None: ...

    def on_remove(self, key: int) -> None: ...

    def victims(self, total_bytes: int, entries: int) -> List[int]: ...


class UnboundedPolicy:
    """Never evicts."""

    def admits(self, nbytes: int) -> bool:
        return True

    def on_insert(self, key: int, nbytes: int) -> None:
        pass

    def on_access(self, key: int) -> None:
        pass

    def on_remove(self, key: int) -> None:
        pass

    def victims(self, total_bytes: int, entries: int) -> List[int]:
        return []


class LRUPolicy:
    """Least-recently-used eviction under a byte and/or entry budget."""

    def __init__(self, max_bytes: Optional[int] = None, max_entries: Optional[int] = None):
        if max_bytes is not None and max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_bytes = max_bytes
        self.max_entries = max_entries
        self._order: "OrderedDict[int, int]" = OrderedDict()

    def admits(self, nbytes: int) -> bool:
        return self.max_bytes is None or nbytes <= self.max_bytes

    def on_insert(self, key: int, nbytes: int) -> None:
        self._order[key] = nbytes
        self._order.move_to_end(key, last=True)

    def on_access(self, key: int) -> None:
        if key in self._order:
            self._order.move_to_end(key, last=True)

    def on_remove(self, key: int) -> None:
        self._order.pop(key, None)

    def _over_budget(self, total_bytes: int, entries: int) -> bool:
        if self.max_bytes is not None and total_bytes > self.max_bytes:
            return True
        return self.max_entries is not None and entries > self.max_entries

    def victims(self, total_bytes: int, entries: int) -> List[int]:
        chosen: List[int] = []
        for key, nbytes in self._order.items():
            if not self._over_budget(total_bytes, entries):
                break
            chosen.append(key)
            total_bytes -= nbytes
            entries -= 1
        return chosen


__all__ = ["EvictionPolicy", "UnboundedPolicy", "LRUPolicy"]
