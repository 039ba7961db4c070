"""Delivery contexts for asynchronous render results.

A delivery context is any callable that accepts a zero-argument function and
arranges for it to run somewhere.
"""

from __future__ import annotations

import queue
import time
from typing import Callable, Optional

Delivery = Callable[[Callable[[], None]], None]


def inline_delivery(fn: Callable[[], None]) -> None:
    """Run the callback on whichever thread completed the render."""
    fn()


class QueueDelivery:
    """Queues callbacks for an owning thread (typically a UI/event loop) to drain."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[Callable[[], None]]" = queue.Queue()

    def __call__(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self, timeout: Optional[float] = None) -> int:
        """Run every queued callback on the calling thread.

        With ``timeout``, waits up to that long for the first callback.
        Returns the number of callbacks run.
        """
        ran = 0
        while True:
            try:
                if ran == 0 and timeout is not None:
                    fn = self._queue.get(timeout=timeout)
                else:
                    fn = self._queue.get_nowait()
            except queue.Empty:
                return ran
            fn()
            ran += 1

    def run_until(self, predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while not predicate():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self.run_pending(timeout=min(remaining, 0.05))
        return True


__all__ = ["Delivery", "inline_delivery", "QueueDelivery"]
