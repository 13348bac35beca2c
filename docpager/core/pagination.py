import logging
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from docpager.core import planner
from docpager.core.assembler import assemble
from docpager.core.blocks import extract_blocks, prepare_markup
from docpager.core.compositor import compose_group
from docpager.core.config import A4, RenderOptions
from docpager.core.measure import iter_measurements, raster_height
from docpager.core.raster import Raster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    """
    One finished page: the markup of its committed blocks and its raster.

    `estimated_height` is what the planner used (sum of the per-block
    measurements); `composited_height` comes from the page raster. They can
    disagree because the group is rendered again as a whole.
    """
    number: int
    elements: Tuple[str, ...]
    block_heights: Tuple[float, ...]
    raster: Raster
    composited_height: float

    @property
    def estimated_height(self) -> float:
        return sum(self.block_heights)

    @property
    def height_drift(self) -> float:
        return self.composited_height - self.estimated_height


@dataclass(frozen=True)
class PaginationResult:
    """
    Pages in order plus the assembled PDF.

    The caller owns `document` (a PyMuPDF document): use the result as a
    context manager or call `close()`.
    """
    pages: Tuple[Page, ...]
    document: object

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    @property
    def output_page_count(self) -> int:
        return self.document.page_count

    def to_bytes(self) -> bytes:
        return self.document.tobytes(garbage=3, deflate=True)

    def save(self, path) -> Path:
        target = Path(path)
        self.document.save(str(target), garbage=3, deflate=True)
        return target

    def close(self):
        self.document.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class Paginator:
    """
    Splits flowed HTML into A4 (or other) pages without cutting any block.

    Each block is rendered alone at the content width to learn its height,
    blocks are packed greedily onto pages, every finished page is rendered
    again as a whole, and the page rasters are assembled into a PDF.
    """

    # Composited vs. estimated page height difference worth reporting
    DRIFT_TOLERANCE_MM = 1.0

    def __init__(self, geometry=None, options=None, stylesheet=None, renderer=None):
        self.geometry = geometry or A4
        if isinstance(options, dict):
            options = RenderOptions.from_dict(options)
        self.options = options or RenderOptions()
        self.stylesheet = stylesheet or None
        self._renderer = renderer

    def _open_renderer(self):
        # An injected renderer belongs to the caller and is left open
        if self._renderer is not None:
            return nullcontext(self._renderer)
        from docpager.renderers.xhtml import XhtmlRenderer
        return XhtmlRenderer(self.options)

    def _finish_page(self, group, renderer) -> Page:
        raster = compose_group(group, self.geometry, self.options, renderer, self.stylesheet)
        page = Page(
            number=group.number,
            elements=group.elements,
            block_heights=tuple(block.height for block in group.blocks),
            raster=raster,
            composited_height=raster_height(raster, self.geometry),
        )

        if group.overflows:
            logger.warning(
                f"Pagination: page {page.number} holds a single block of "
                f"{page.estimated_height:.1f}mm, taller than the "
                f"{self.geometry.content_height:.1f}mm content area"
            )
        if abs(page.height_drift) > self.DRIFT_TOLERANCE_MM:
            logger.warning(
                f"Pagination: page {page.number} composited at {page.composited_height:.1f}mm "
                f"but was planned at {page.estimated_height:.1f}mm"
            )
        logger.info(f"Pagination: page {page.number} closed with {len(page.elements)} blocks")
        return page

    def _plan_and_compose(self, blocks, renderer):
        state = planner.start(self.geometry.content_height)
        pages = []
        measurements = iter_measurements(blocks, self.geometry, self.options, renderer, self.stylesheet)
        try:
            for rendered in measurements:
                state, closed = planner.place(state, rendered)
                if closed:
                    pages.append(self._finish_page(closed, renderer))
            state, closed = planner.finish(state)
            if closed:
                pages.append(self._finish_page(closed, renderer))
        finally:
            measurements.close()
        return pages

    def paginate(self, html) -> PaginationResult:
        """
        Paginate `html` and return the pages with the assembled PDF.

        Raises:
            RenderFailure: a block or page could not be rendered. Nothing is
                returned in that case.
        """
        blocks = extract_blocks(prepare_markup(html))
        if not blocks:
            logger.info("Pagination: no block-level content, producing zero pages")

        with self._open_renderer() as renderer:
            pages = self._plan_and_compose(blocks, renderer)

        document = assemble(pages, self.geometry, self.options)
        logger.info(f"Pagination: {len(blocks)} blocks on {len(pages)} pages")
        return PaginationResult(pages=tuple(pages), document=document)

    def generate_pdf(self, html, filename="document.pdf") -> Path:
        """Paginate `html` and save the PDF to `filename`."""
        with self.paginate(html) as result:
            target = result.save(filename)
            logger.info(f"PDFExport: saved {result.output_page_count} pages to {target}")
        return target


def generate_pagination_preview(html, options=None, stylesheet=None, geometry=None, renderer=None) -> PaginationResult:
    """Preview flow: pages with their rasters, plus the PDF (caller closes it)."""
    return Paginator(geometry, options, stylesheet, renderer).paginate(html)


def generate_pdf(html, filename="document.pdf", options=None, stylesheet=None, geometry=None, renderer=None) -> Path:
    """Download flow: paginate and save straight to `filename`."""
    return Paginator(geometry, options, stylesheet, renderer).generate_pdf(html, filename)
