"""Shared test fixtures."""

import math
import threading
import time
from collections import Counter
from pathlib import Path

import fitz
import pytest

from page_cache.domain.errors import PageOutOfRangeError, RenderFailureError, SourceUnavailableError
from page_cache.domain.models import PageSize


class FakePageSource:
    """In-memory page source that paints a black band across the top tenth of each page."""

    def __init__(self, sizes, *, fail_pages=(), gates=None, delay=0.0):
        self.sizes = list(sizes)
        self.fail_pages = set(fail_pages)
        self.gates = dict(gates or {})
        self.delay = delay
        self.draw_calls = Counter()
        self.closed = False
        self._lock = threading.Lock()

    @property
    def page_count(self):
        return len(self.sizes)

    def page_size(self, index):
        if self.closed:
            raise SourceUnavailableError(index, "closed")
        if index < 1 or index > len(self.sizes):
            raise PageOutOfRangeError(index, len(self.sizes))
        width, height = self.sizes[index - 1]
        return PageSize(width, height)

    def draw_page(self, index, surface, transform):
        with self._lock:
            self.draw_calls[index] += 1
        gate = self.gates.get(index)
        if gate is not None:
            assert gate.wait(5), f"gate for page {index} never opened"
        if self.delay:
            time.sleep(self.delay)
        if index in self.fail_pages:
            raise RenderFailureError(index, "corrupt page")
        width, height = self.sizes[index - 1]
        x0, y0 = transform.apply(0, height * 0.9)
        x1, y1 = transform.apply(width, height)
        top, bottom = sorted((y0, y1))
        left, right = sorted((x0, x1))
        surface[int(top) : int(math.ceil(bottom)), int(left) : int(math.ceil(right))] = 0

    def close(self):
        self.closed = True


@pytest.fixture
def fake_source():
    return FakePageSource


@pytest.fixture
def make_pdf(tmp_path: Path):
    """Write a PDF whose pages have the given sizes and a black bar along the top edge."""

    def _make(sizes, name="sample.pdf", **save_kwargs):
        path = tmp_path / name
        doc = fitz.open()
        for width, height in sizes:
            page = doc.new_page(width=width, height=height)
            page.draw_rect(fitz.Rect(0, 0, width, height * 0.1), color=(0, 0, 0), fill=(0, 0, 0))
        doc.save(path, **save_kwargs)
        doc.close()
        return path

    return _make
