"""Thread-safe in-memory store of rendered page images."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from page_cache.cache.policy import EvictionPolicy, UnboundedPolicy
from page_cache.domain.models import RasterImage

logger = logging.getLogger(__name__)


class PageCache:
    """Page index -> RasterImage.

    Any entry may be evicted between a ``put`` and a later ``get``; a miss is
    a normal outcome.
    """

    def __init__(self, policy: Optional[EvictionPolicy] = None):
        self.policy = policy or UnboundedPolicy()
        self._store: Dict[int, RasterImage] = {}
        self._bytes = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._closed = False
        self._lock = threading.Lock()

    def get(self, index: int) -> Optional[RasterImage]:
        with self._lock:
            image = self._store.get(index)
            if image is None:
                self._misses += 1
                return None
            self._hits += 1
            self.policy.on_access(index)
            return image

    def put(self, index: int, image: RasterImage) -> bool:
        """Store ``image``. Returns False when the cache is closed or the policy refuses it."""
        with self._lock:
            if self._closed:
                return False
            if not self.policy.admits(image.nbytes):
                logger.debug("Image not admitted to cache", extra={"page": index, "bytes": image.nbytes})
                return False
            self._remove(index)
            self._store[index] = image
            self._bytes += image.nbytes
            self.policy.on_insert(index, image.nbytes)
            for victim in self.policy.victims(self._bytes, len(self._store)):
                self._remove(victim)
                self._evictions += 1
                logger.debug("Evicted page from cache", extra={"page": victim})
            return True

    def discard(self, index: int) -> None:
        with self._lock:
            self._remove(index)

    def clear(self) -> None:
        with self._lock:
            for index in list(self._store):
                self._remove(index)

    def close(self) -> None:
        """Drop every entry and refuse later puts."""
        with self._lock:
            self._closed = True
            for index in list(self._store):
                self._remove(index)

    @property
    def closed(self) -> bool:
        return self._closed

    def _remove(self, index: int) -> None:
        image = self._store.pop(index, None)
        if image is not None:
            self._bytes -= image.nbytes
            self.policy.on_remove(index)

    def __contains__(self, index: object) -> bool:
        with self._lock:
            return index in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._store),
                "bytes": self._bytes,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }


__all__ = ["PageCache"]
