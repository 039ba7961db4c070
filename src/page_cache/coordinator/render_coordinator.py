"""Cache-backed page rendering with blocking and callback access paths."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Iterator, Optional, Tuple

from page_cache.cache.page_cache import PageCache
from page_cache.coordinator.delivery import Delivery, inline_delivery
from page_cache.domain.errors import (
    PageOutOfRangeError,
    PageRenderError,
    RenderCancelledError,
    RenderFailureError,
)
from page_cache.domain.models import RasterImage, RenderResult
from page_cache.render.rasterizer import Rasterizer
from page_cache.source.base import PageSource

logger = logging.getLogger(__name__)

RenderCallback = Callable[[RenderResult], None]


class _InFlight:
    """One pending render. ``started`` is flipped exactly once, under the coordinator lock."""

    __slots__ = ("future", "started")

    def __init__(self) -> None:
        self.future: "Future[RenderResult]" = Future()
        self.started = False


class RenderCoordinator:
    """Serves page images from the cache, rendering misses at most once.

    Concurrent requests for a page that is already being rendered attach to
    the pending render instead of starting another one. A queued render that
    has not started yet is taken over by the first blocking caller that needs
    it, so blocking callers never wait on work stuck behind them in the pool.
    """

    def __init__(
        self,
        source: PageSource,
        cache: PageCache,
        rasterizer: Optional[Rasterizer] = None,
        *,
        workers: int = 3,
        delivery: Optional[Delivery] = None,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.source = source
        self.cache = cache
        self.rasterizer = rasterizer or Rasterizer()
        self.delivery = delivery or inline_delivery
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="page-render")
        self._inflight: Dict[int, _InFlight] = {}
        self._lock = threading.Lock()
        self._closed = False
        self.render_count = 0

    @property
    def page_count(self) -> int:
        return self.source.page_count

    @property
    def closed(self) -> bool:
        return self._closed

    def _out_of_range(self, index: int) -> Optional[PageOutOfRangeError]:
        count = self.page_count
        if index < 1 or index > count:
            return PageOutOfRangeError(index, count)
        return None

    # blocking path

    def fetch(self, index: int) -> RenderResult:
        """Return the page as a RenderResult. Never raises for per-page failures."""
        error = self._out_of_range(index)
        if error is not None:
            return RenderResult.failure(error)
        image = self.cache.get(index)
        if image is not None:
            return RenderResult.success(index, image)
        entry, _ = self._claim(index)
        if self._start(entry):
            self._produce(index, entry)
        return entry.future.result()

    def get_page(self, index: int) -> Optional[RasterImage]:
        """Return the page image, rendering it on the calling thread on a miss.

        Raises PageOutOfRangeError for an invalid index; returns None when the
        page cannot be rendered.
        """
        error = self._out_of_range(index)
        if error is not None:
            raise error
        return self.fetch(index).image

    def all_pages(self) -> Iterator[RasterImage]:
        """Yield every page that renders, in index order."""
        for index in range(1, self.page_count + 1):
            result = self.fetch(index)
            if result.image is not None:
                yield result.image

    # callback path

    def get_page_async(self, index: int, callback: RenderCallback) -> None:
        """Deliver the page to ``callback`` exactly once.

        Cache hits call back immediately on the calling thread; everything
        else is delivered through the delivery context.
        """
        error = self._out_of_range(index)
        if error is not None:
            self._deliver(callback, RenderResult.failure(error))
            return
        image = self.cache.get(index)
        if image is not None:
            self._invoke(callback, RenderResult.success(index, image))
            return
        entry, created = self._claim(index)
        if created:
            self._schedule(index, entry)
        entry.future.add_done_callback(lambda fut: self._deliver(callback, fut.result()))

    def submit(self, fn: Callable[[], None]) -> "Future[None]":
        """Run ``fn`` on the render pool. Raises RuntimeError once closed."""
        return self._executor.submit(fn)

    def close(self) -> None:
        """Cancel queued renders and release the worker pool without waiting."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pending = len(self._inflight)
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.debug("Render coordinator closed", extra={"pending": pending})

    # internals

    def _claim(self, index: int) -> Tuple[_InFlight, bool]:
        with self._lock:
            entry = self._inflight.get(index)
            if entry is not None:
                return entry, False
            entry = _InFlight()
            self._inflight[index] = entry
            return entry, True

    def _start(self, entry: _InFlight) -> bool:
        with self._lock:
            if entry.started:
                return False
            entry.started = True
            return True

    def _schedule(self, index: int, entry: _InFlight) -> None:
        def run() -> None:
            if self._start(entry):
                self._produce(index, entry)

        def on_done(task: "Future[None]") -> None:
            if task.cancelled() and self._start(entry):
                self._settle(index, entry, RenderResult.failure(RenderCancelledError(index, "document closed")))

        try:
            task = self._executor.submit(run)
        except RuntimeError:
            if self._start(entry):
                self._settle(index, entry, RenderResult.failure(RenderCancelledError(index, "document closed")))
            return
        task.add_done_callback(on_done)

    def _produce(self, index: int, entry: _InFlight) -> None:
        try:
            if self._closed:
                raise RenderCancelledError(index, "document closed")
            image = self.cache.get(index)
            if image is None:
                with self._lock:
                    self.render_count += 1
                image = self.rasterizer.render(self.source, index)
                if not self._closed:
                    self.cache.put(index, image)
            result = RenderResult.success(index, image)
        except PageRenderError as exc:
            logger.warning("Page render failed", extra={"page": index, "error": str(exc)})
            result = RenderResult.failure(exc)
        except Exception as exc:
            logger.exception("Unexpected error rendering page", extra={"page": index})
            result = RenderResult.failure(RenderFailureError(index, f"{type(exc).__name__}: {exc}"))
        self._settle(index, entry, result)

    def _settle(self, index: int, entry: _InFlight, result: RenderResult) -> None:
        with self._lock:
            if self._inflight.get(index) is entry:
                del self._inflight[index]
        entry.future.set_result(result)

    def _deliver(self, callback: RenderCallback, result: RenderResult) -> None:
        self.delivery(lambda: self._invoke(callback, result))

    @staticmethod
    def _invoke(callback: RenderCallback, result: RenderResult) -> None:
        try:
            callback(result)
        except Exception:
            logger.exception("Render callback raised", extra={"page": result.page_index})


__all__ = ["RenderCoordinator", "RenderCallback"]
