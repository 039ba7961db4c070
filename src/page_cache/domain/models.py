"""Domain models for page rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np

from page_cache.domain.errors import PageRenderError


@dataclass(frozen=True)
class PageSize:
    width: float
    height: float


@dataclass(frozen=True)
class PageTransform:
    """Affine map from page space (y up) to image space (y down).

    Uses the PDF matrix convention: x' = a*x + c*y + e, y' = b*x + d*y + f.
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def scale_and_flip(cls, scale: float, image_height: float) -> "PageTransform":
        return cls(a=scale, b=0.0, c=0.0, d=-scale, e=0.0, f=float(image_height))

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        return self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)


@dataclass(frozen=True, eq=False)
class RasterImage:
    """RGB pixel buffer (height x width x 3, uint8). Read-only once constructed."""

    pixels: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        arr = np.array(self.pixels, dtype=np.uint8, copy=True)
        if arr.ndim != 3 or arr.shape[2] != 3:
            raise ValueError(f"Expected an HxWx3 pixel buffer, got shape {arr.shape}")
        arr.flags.writeable = False
        object.__setattr__(self, "pixels", arr)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def nbytes(self) -> int:
        return int(self.pixels.nbytes)

    def to_png_bytes(self) -> bytes:
        ok, buf = cv2.imencode(".png", cv2.cvtColor(self.pixels, cv2.COLOR_RGB2BGR))
        if not ok:
            raise ValueError("PNG encoding failed")
        return buf.tobytes()

    def save(self, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.to_png_bytes())
        return target

    def __repr__(self) -> str:
        return f"RasterImage(width={self.width}, height={self.height})"


@dataclass(frozen=True)
class RenderResult:
    page_index: int
    image: Optional[RasterImage] = None
    error: Optional[PageRenderError] = None

    @property
    def ok(self) -> bool:
        return self.image is not None

    @classmethod
    def success(cls, page_index: int, image: RasterImage) -> "RenderResult":
        return cls(page_index=page_index, image=image)

    @classmethod
    def failure(cls, error: PageRenderError) -> "RenderResult":
        return cls(page_index=error.page_index, error=error)


__all__ = ["PageSize", "PageTransform", "RasterImage", "RenderResult"]
