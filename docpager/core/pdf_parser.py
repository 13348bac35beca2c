import fitz  # PyMuPDF
import logging
from pathlib import Path

from docpager.core.config import PT_PER_MM

logger = logging.getLogger(__name__)

class PDFParser:
    """
    Reads back a generated PDF with PyMuPDF: page count, physical page
    sizes and how many rasters each page carries.
    """

    @staticmethod
    def _open(source):
        if isinstance(source, (bytes, bytearray)):
            return fitz.open(stream=bytes(source), filetype="pdf")
        return fitz.open(str(source))

    @staticmethod
    def page_count(source):
        """
        Args:
            source (str, Path or bytes): PDF file path or PDF bytes.

        Returns:
            int: number of physical pages.
        """
        with PDFParser._open(source) as doc:
            return doc.page_count

    @staticmethod
    def page_sizes(source):
        """Page sizes in millimetres, as (width, height) tuples."""
        with PDFParser._open(source) as doc:
            return [
                (round(page.rect.width / PT_PER_MM, 1), round(page.rect.height / PT_PER_MM, 1))
                for page in doc
            ]

    @staticmethod
    def image_counts(source):
        """Number of images drawn on each page."""
        with PDFParser._open(source) as doc:
            return [len(page.get_images(full=True)) for page in doc]

    @staticmethod
    def describe(source):
        """
        One-line summary used by the CLI after saving.
        """
        sizes = PDFParser.page_sizes(source)
        if not sizes:
            return "empty PDF"
        width, height = sizes[0]
        name = Path(source).name if not isinstance(source, (bytes, bytearray)) else "PDF"
        return f"{name}: {len(sizes)} page(s), {width:g}x{height:g}mm"
