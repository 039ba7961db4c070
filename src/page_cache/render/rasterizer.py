"""Page to thumbnail rasterization."""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from page_cache.domain.errors import PageOutOfRangeError, PageRenderError, RenderFailureError
from page_cache.domain.models import PageSize, PageTransform, RasterImage
from page_cache.source.base import PageSource

DEFAULT_BOX_SIZE = 240.0
BACKGROUND = (255, 255, 255)


def fit_scale(page: PageSize, box: Tuple[float, float]) -> float:
    """Uniform scale that fits ``page`` entirely inside ``box``."""
    box_width, box_height = box
    return min(box_width / page.width, box_height / page.height)


def output_size(page: PageSize, scale: float) -> Tuple[int, int]:
    width = max(1, int(round(page.width * scale)))
    height = max(1, int(round(page.height * scale)))
    return width, height


class Rasterizer:
    def __init__(self, box_width: float = DEFAULT_BOX_SIZE, box_height: float = DEFAULT_BOX_SIZE):
        if box_width <= 0 or box_height <= 0:
            raise ValueError(f"Target box must be positive, got {box_width}x{box_height}")
        self.box = (float(box_width), float(box_height))

    def render(self, source: PageSource, index: int) -> RasterImage:
        """Render page ``index`` of ``source`` scaled to fit the target box.

        Raises a PageRenderError subclass when the page cannot be rendered.
        """
        count = source.page_count
        if index < 1 or index > count:
            raise PageOutOfRangeError(index, count)

        page = source.page_size(index)
        if not (math.isfinite(page.width) and math.isfinite(page.height)) or page.width <= 0 or page.height <= 0:
            raise RenderFailureError(index, f"invalid page geometry {page.width}x{page.height}")

        scale = fit_scale(page, self.box)
        width, height = output_size(page, scale)
        surface = np.empty((height, width, 3), dtype=np.uint8)
        surface[...] = BACKGROUND

        try:
            source.draw_page(index, surface, PageTransform.scale_and_flip(scale, height))
        except PageRenderError:
            raise
        except Exception as exc:
            raise RenderFailureError(index, f"drawing failed: {exc}") from exc
        return RasterImage(surface)


__all__ = ["Rasterizer", "fit_scale", "output_size", "DEFAULT_BOX_SIZE"]
