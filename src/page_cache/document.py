"""Document handle: one page source, one cache, one render pool."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterator, List, Optional

from page_cache.cache.page_cache import PageCache
from page_cache.cache.policy import EvictionPolicy, LRUPolicy, UnboundedPolicy
from page_cache.config import Settings, load_config
from page_cache.coordinator.delivery import Delivery
from page_cache.coordinator.prefetcher import Prefetcher
from page_cache.coordinator.render_coordinator import RenderCallback, RenderCoordinator
from page_cache.domain.models import RasterImage, RenderResult
from page_cache.render.rasterizer import Rasterizer
from page_cache.source.base import PageSource
from page_cache.source.fitz_source import open_page_source

logger = logging.getLogger(__name__)


def build_policy(cfg: Settings) -> EvictionPolicy:
    if cfg.cache.policy == "unbounded":
        return UnboundedPolicy()
    return LRUPolicy(max_bytes=cfg.cache.max_bytes, max_entries=cfg.cache.max_entries)


class Document:
    """An open document whose page thumbnails are rendered and cached on demand.

    Construction starts the prefetch task (unless disabled) and returns without
    waiting for it. The prefetch task gets a pool thread of its own on top of
    ``render.workers``, so interactive requests never queue behind it.
    ``close()`` stops prefetching, cancels queued renders, drops the cache and
    closes the page source.
    """

    def __init__(
        self,
        source: PageSource,
        *,
        path: Optional[Path] = None,
        config: Optional[Settings] = None,
        delivery: Optional[Delivery] = None,
        policy: Optional[EvictionPolicy] = None,
        rasterizer: Optional[Rasterizer] = None,
        prefetch: Optional[bool] = None,
    ):
        cfg = config or load_config()
        self.config = cfg
        self.source = source
        self.path = Path(path) if path is not None else getattr(source, "path", None)
        self.page_count = source.page_count
        should_prefetch = (cfg.prefetch.enabled if prefetch is None else prefetch) and self.page_count > 0
        self.cache = PageCache(policy or build_policy(cfg))
        # the prefetch walk holds one pool thread for its whole run
        self.coordinator = RenderCoordinator(
            source,
            self.cache,
            rasterizer or Rasterizer(cfg.render.box_width, cfg.render.box_height),
            workers=cfg.render.workers + (1 if should_prefetch else 0),
            delivery=delivery,
        )
        self._cancel = threading.Event()
        self.prefetcher = Prefetcher(self.coordinator, self._cancel)
        self._closed = False
        if should_prefetch:
            self.prefetcher.start()

    @property
    def file_name(self) -> Optional[str]:
        return self.path.name if self.path is not None else None

    @property
    def is_encrypted(self) -> bool:
        return bool(getattr(self.source, "is_encrypted", False))

    @property
    def closed(self) -> bool:
        return self._closed

    def get_page(self, index: int) -> Optional[RasterImage]:
        return self.coordinator.get_page(index)

    def fetch(self, index: int) -> RenderResult:
        return self.coordinator.fetch(index)

    def get_page_async(self, index: int, callback: RenderCallback) -> None:
        self.coordinator.get_page_async(index, callback)

    def all_pages(self) -> Iterator[RasterImage]:
        return self.coordinator.all_pages()

    def all_page_images(self) -> List[RasterImage]:
        return list(self.coordinator.all_pages())

    def wait_for_prefetch(self, timeout: Optional[float] = None) -> bool:
        return self.prefetcher.wait(timeout)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.prefetcher.cancel()
        self.coordinator.close()
        self.source.close()
        self.cache.close()
        logger.info("Document closed", extra={"file_name": self.file_name})

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_document(
    path: str | Path,
    password: Optional[str] = None,
    *,
    config: Optional[Settings] = None,
    delivery: Optional[Delivery] = None,
    prefetch: Optional[bool] = None,
) -> Document:
    """Open a PDF and return a Document.

    Raises DocumentUnreadableError or DocumentLockedError; neither is ever
    reported as an empty document.
    """
    source = open_page_source(path, password)
    try:
        doc = Document(source, path=Path(path), config=config, delivery=delivery, prefetch=prefetch)
    except BaseException:
        source.close()
        raise
    logger.info("Document opened", extra={"file_name": doc.file_name, "pages": doc.page_count, "encrypted": doc.is_encrypted})
    return doc


__all__ = ["Document", "open_document", "build_policy"]
