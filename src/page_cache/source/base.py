"""Page source interface consumed by the renderer."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from page_cache.domain.models import PageSize, PageTransform


class PageSource(Protocol):
    """Supplies page geometry and draws pages. Indices are 1-based.

    ``draw_page`` composites the page onto ``surface`` (HxWx3 uint8, already
    filled with the background) using ``transform`` to map page space into
    pixel space.
    """

    @property
    def page_count(self) -> int: ...

    def page_size(self, index: int) -> PageSize: ...

    def draw_page(self, index: int, surface: np.ndarray, transform: PageTransform) -> None: ...

    def close(self) -> None: ...
