import logging
import math

import fitz  # PyMuPDF

from docpager.core.config import PT_PER_MM
from docpager.core.raster import encode_jpeg

logger = logging.getLogger(__name__)

# Rows a raster may exceed the content area by (pixel rounding) before spilling over
SLICE_TOLERANCE_PX = 0.5


def _mm(value):
    return value * PT_PER_MM


def _new_page(document, geometry):
    return document.new_page(width=geometry.page_width_pt, height=geometry.page_height_pt)


def append_raster(document, raster, geometry, options) -> int:
    """
    Draw one page raster at the content width, starting a new physical page.

    A raster taller than the content area continues on further physical
    pages: each shows the next content-height window of the same image.

    Returns:
        int: number of physical pages used.
    """
    height_mm = raster.height * geometry.content_width / raster.width
    # Pixels per content-height window
    window_px = geometry.content_height * raster.width / geometry.content_width
    slices = max(1, math.ceil((raster.height - SLICE_TOLERANCE_PX) / window_px))
    if slices > 1:
        logger.warning(
            f"PDFExport: page raster is {height_mm:.1f}mm tall, "
            f"slicing across {slices} physical pages"
        )

    image = raster.to_image()
    x0 = _mm(geometry.margin)
    x1 = _mm(geometry.margin + geometry.content_width)
    y0 = _mm(geometry.margin)

    used = 0
    for k in range(slices):
        top = int(round(k * window_px))
        bottom = min(raster.height, int(round((k + 1) * window_px)))
        if bottom <= top:
            break
        piece = image if slices == 1 else image.crop((0, top, raster.width, bottom))
        piece_height_mm = (bottom - top) * geometry.content_width / raster.width

        page = _new_page(document, geometry)
        rect = fitz.Rect(x0, y0, x1, y0 + _mm(piece_height_mm))
        page.insert_image(rect, stream=encode_jpeg(piece, options.jpeg_quality))
        used += 1

    return used


def assemble(pages, geometry, options):
    """
    Build the output PDF from composited pages, in order.

    Returns:
        fitz.Document: owned by the caller, who must close it.
    """
    document = fitz.open()
    try:
        for page in pages:
            used = append_raster(document, page.raster, geometry, options)
            logger.debug(f"PDFExport: page {page.number} placed on {used} physical page(s)")

        if document.page_count == 0:
            # Nothing to draw, but a PDF still needs a page to be saved
            _new_page(document, geometry)
    except Exception:
        document.close()
        raise

    logger.info(f"PDFExport: assembled {len(pages)} pages into {document.page_count} physical pages")
    return document
