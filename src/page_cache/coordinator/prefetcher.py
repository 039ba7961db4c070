"""Background cache warming for a whole document."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from page_cache.coordinator.render_coordinator import RenderCoordinator

logger = logging.getLogger(__name__)


class Prefetcher:
    """Walks pages 1..page_count once through the coordinator's blocking path."""

    def __init__(self, coordinator: RenderCoordinator, cancel_event: Optional[threading.Event] = None):
        self.coordinator = coordinator
        self.cancel_event = cancel_event or threading.Event()
        self.pages_warmed = 0
        self.failures = 0
        self._task: Optional["Future[None]"] = None

    def start(self) -> bool:
        if self._task is not None:
            return False
        try:
            self._task = self.coordinator.submit(self._run)
        except RuntimeError:
            logger.warning("Prefetch not started: render pool is closed")
            return False
        return True

    def _run(self) -> None:
        count = self.coordinator.page_count
        logger.info("Prefetch started", extra={"pages": count})
        for index in range(1, count + 1):
            if self.cancel_event.is_set():
                logger.info("Prefetch cancelled", extra={"warmed": self.pages_warmed, "next_page": index})
                return
            if self.coordinator.fetch(index).ok:
                self.pages_warmed += 1
            else:
                self.failures += 1
        logger.info("Prefetch finished", extra={"warmed": self.pages_warmed, "failures": self.failures})

    def cancel(self) -> None:
        self.cancel_event.set()
        if self._task is not None:
            self._task.cancel()

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the prefetch task ends. Returns False on timeout."""
        if self._task is None:
            return True
        try:
            self._task.result(timeout=timeout)
        except CancelledError:
            return True
        except FutureTimeoutError:
            return False
        return True


__all__ = ["Prefetcher"]
