import fitz
import numpy as np
import pytest

from page_cache.domain.errors import (
    DocumentLockedError,
    DocumentUnreadableError,
    PageOutOfRangeError,
    SourceUnavailableError,
)
from page_cache.domain.models import PageSize, PageTransform
from page_cache.render.rasterizer import Rasterizer
from page_cache.source.fitz_source import open_page_source, page_to_fitz


def test_page_geometry(make_pdf):
    source = open_page_source(make_pdf([(200, 100), (300, 400)]))
    try:
        assert source.page_count == 2
        assert source.page_size(1) == PageSize(200.0, 100.0)
        assert source.page_size(2) == PageSize(300.0, 400.0)
        with pytest.raises(PageOutOfRangeError):
            source.page_size(3)
    finally:
        source.close()


def test_rendered_thumbnail_is_upright_on_white(make_pdf):
    source = open_page_source(make_pdf([(200, 100)]))
    try:
        image = Rasterizer(240, 240).render(source, 1)
    finally:
        source.close()
    assert image.size == (240, 120)
    top_band = image.pixels[1:10, 10:230]
    bottom = image.pixels[30:118, 10:230]
    assert top_band.mean() < 10
    assert bottom.min() == 255


def test_draw_page_composites_onto_surface(make_pdf):
    source = open_page_source(make_pdf([(100, 100)]))
    surface = np.full((50, 50, 3), 255, dtype=np.uint8)
    try:
        source.draw_page(1, surface, PageTransform.scale_and_flip(0.5, 50))
    finally:
        source.close()
    assert surface[1:4].mean() < 10
    assert surface[10:].min() == 255


def test_closed_source_is_unavailable(make_pdf):
    source = open_page_source(make_pdf([(100, 100)]))
    source.close()
    source.close()
    with pytest.raises(SourceUnavailableError):
        source.page_size(1)


def test_missing_file_is_unreadable(tmp_path):
    with pytest.raises(DocumentUnreadableError):
        open_page_source(tmp_path / "nope.pdf")


def test_empty_file_is_unreadable(tmp_path):
    path = tmp_path / "empty.pdf"
    path.write_bytes(b"")
    with pytest.raises(DocumentUnreadableError):
        open_page_source(path)


def test_encrypted_document_requires_password(make_pdf):
    path = make_pdf(
        [(100, 100)],
        name="locked.pdf",
        encryption=fitz.PDF_ENCRYPT_AES_256,
        user_pw="secret",
        owner_pw="owner-secret",
    )
    with pytest.raises(DocumentLockedError):
        open_page_source(path)
    with pytest.raises(DocumentLockedError):
        open_page_source(path, password="wrong")

    source = open_page_source(path, password="secret")
    try:
        assert source.is_encrypted
        assert source.page_count == 1
        assert Rasterizer().render(source, 1).size == (240, 240)
    finally:
        source.close()


def test_page_to_fitz_uses_lower_left_of_offset_rect():
    rect = fitz.Rect(10, 20, 110, 220)
    m = page_to_fitz(rect)

    origin = fitz.Point(0, 0) * m
    assert (origin.x, origin.y) == pytest.approx((10, 220))
    top_right = fitz.Point(100, 200) * m
    assert (top_right.x, top_right.y) == pytest.approx((110, 20))
    back = fitz.Point(10, 20) * ~m
    assert (back.x, back.y) == pytest.approx((0, 200))
