"""PyMuPDF-backed page source and document opener."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF
import numpy as np

from page_cache.domain.errors import (
    DocumentLockedError,
    DocumentUnreadableError,
    PageOutOfRangeError,
    RenderFailureError,
    SourceUnavailableError,
)
from page_cache.domain.models import PageSize, PageTransform

logger = logging.getLogger(__name__)


def _composite(surface: np.ndarray, pix) -> None:
    """Blend an RGBA pixmap over ``surface`` in place, clipped to its bounds."""
    samples = np.frombuffer(pix.samples, dtype=np.uint8).reshape(pix.height, pix.width, pix.n)
    height, width = surface.shape[:2]
    src_x, src_y = max(0, -pix.x), max(0, -pix.y)
    dst_x, dst_y = max(0, pix.x), max(0, pix.y)
    cw = min(pix.width - src_x, width - dst_x)
    ch = min(pix.height - src_y, height - dst_y)
    if cw <= 0 or ch <= 0:
        return
    src = samples[src_y : src_y + ch, src_x : src_x + cw].astype(np.float32)
    dst = surface[dst_y : dst_y + ch, dst_x : dst_x + cw].astype(np.float32)
    alpha = src[..., 3:4] / 255.0
    # MuPDF samples are premultiplied
    out = src[..., :3] + dst * (1.0 - alpha)
    surface[dst_y : dst_y + ch, dst_x : dst_x + cw] = np.clip(out + 0.5, 0, 255).astype(np.uint8)


def page_to_fitz(rect) -> "fitz.Matrix":
    """Map page space (y up, origin at the lower-left corner of ``rect``) into MuPDF space (y down)."""
    return fitz.Matrix(1, 0, 0, -1, rect.x0, rect.y1)


class FitzPageSource:
    """Page source over an open PyMuPDF document.

    PyMuPDF documents are not safe for concurrent use, so every call takes the
    source lock.
    """

    def __init__(self, doc, path: str | Path, *, encrypted: bool = False):
        self._doc = doc
        self.path = Path(path)
        self.is_encrypted = encrypted
        self._page_count = int(doc.page_count)
        self._lock = threading.RLock()
        self._closed = False

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def closed(self) -> bool:
        return self._closed

    def _load_page(self, index: int):
        if self._closed:
            raise SourceUnavailableError(index, "document is closed")
        if index < 1 or index > self._page_count:
            raise PageOutOfRangeError(index, self._page_count)
        try:
            return self._doc.load_page(index - 1)
        except Exception as exc:
            raise RenderFailureError(index, f"could not load page: {exc}") from exc

    def page_size(self, index: int) -> PageSize:
        with self._lock:
            rect = self._load_page(index).rect
            return PageSize(width=float(rect.width), height=float(rect.height))

    def draw_page(self, index: int, surface: np.ndarray, transform: PageTransform) -> None:
        with self._lock:
            page = self._load_page(index)
            matrix = ~page_to_fitz(page.rect) * fitz.Matrix(*transform.as_tuple())
            try:
                pix = page.get_pixmap(matrix=matrix, alpha=True)
            except Exception as exc:
                raise RenderFailureError(index, f"rasterization failed: {exc}") from exc
        _composite(surface, pix)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._doc.close()


def open_page_source(path: str | Path, password: Optional[str] = None) -> FitzPageSource:
    """Open a document, unlocking it if needed.

    Encrypted documents are tried with a blank password first, then with
    ``password``.
    """
    doc_path = Path(path)
    if not doc_path.exists():
        raise DocumentUnreadableError(str(path), "file not found")
    try:
        doc = fitz.open(doc_path)
    except Exception as exc:
        raise DocumentUnreadableError(str(path), f"could not open document: {exc}") from exc

    encrypted = bool(doc.needs_pass)
    if encrypted and not doc.authenticate(""):
        if password is None or not doc.authenticate(password):
            doc.close()
            reason = "password required" if password is None else "wrong password"
            logger.warning("Document locked", extra={"path": str(doc_path), "reason": reason})
            raise DocumentLockedError(str(path), reason)

    logger.info("Document source opened", extra={"path": str(doc_path), "pages": doc.page_count, "encrypted": encrypted})
    return FitzPageSource(doc, doc_path, encrypted=encrypted)


__all__ = ["FitzPageSource", "open_page_source", "page_to_fitz"]
