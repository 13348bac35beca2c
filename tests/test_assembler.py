import pytest

from docpager.core.assembler import append_raster, assemble
from docpager.core.config import A4, LETTER, RenderOptions
from docpager.core.pagination import Page
from docpager.core.pdf_parser import PDFParser
from docpager.core.measure import raster_height

import fitz


def page_of(raster, number=1):
    return Page(
        number=number,
        elements=("<p>x</p>",),
        block_heights=(raster_height(raster, A4),),
        raster=raster,
        composited_height=raster_height(raster, A4),
    )


class TestAssemble:
    def test_one_physical_page_per_page(self, raster_of, options):
        pages = [page_of(raster_of(200), 1), page_of(raster_of(100), 2)]
        document = assemble(pages, A4, options)
        try:
            data = document.tobytes()
        finally:
            document.close()

        assert PDFParser.page_count(data) == 2
        assert PDFParser.page_sizes(data) == [(210.0, 297.0), (210.0, 297.0)]
        assert PDFParser.image_counts(data) == [1, 1]

    def test_raster_placed_at_margin_and_content_width(self, raster_of, options):
        document = assemble([page_of(raster_of(100))], A4, options)
        try:
            page = document[0]
            xref = page.get_images(full=True)[0][0]
            rect = page.get_image_rects(xref)[0]
        finally:
            document.close()

        mm = 72 / 25.4
        assert rect.x0 == pytest.approx(20 * mm, abs=0.5)
        assert rect.y0 == pytest.approx(20 * mm, abs=0.5)
        assert rect.width == pytest.approx(170 * mm, abs=0.5)
        assert rect.height == pytest.approx(100 * mm, abs=0.5)

    def test_tall_raster_is_sliced_across_pages(self, raster_of, options):
        # 600mm at 257mm per page -> 3 physical pages
        document = assemble([page_of(raster_of(600))], A4, options)
        try:
            assert document.page_count == 3
        finally:
            document.close()

    def test_exactly_one_page_tall_raster_is_not_sliced(self, raster_of, options):
        document = fitz.open()
        try:
            assert append_raster(document, raster_of(A4.content_height), A4, options) == 1
            assert document.page_count == 1
        finally:
            document.close()

    def test_output_never_has_fewer_pages_than_planned(self, raster_of, options):
        pages = [page_of(raster_of(h), n) for n, h in enumerate([10, 300, 257, 520], start=1)]
        document = assemble(pages, A4, options)
        try:
            assert document.page_count >= len(pages)
            assert document.page_count == 1 + 2 + 1 + 3
        finally:
            document.close()

    def test_no_pages_gives_one_blank_page(self, options):
        document = assemble([], A4, options)
        try:
            assert document.page_count == 1
            assert document[0].get_images() == []
        finally:
            document.close()

    def test_page_size_follows_geometry(self, raster_of):
        document = assemble([page_of(raster_of(50))], LETTER, RenderOptions())
        try:
            data = document.tobytes()
        finally:
            document.close()

        assert PDFParser.page_sizes(data) == [(215.9, 279.4)]
