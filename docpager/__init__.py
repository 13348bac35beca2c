"""
DocPager: block-aware pagination of flowed HTML/Markdown into fixed-size,
rasterized PDF pages.
"""

__version__ = "1.0.0"

from docpager.core.config import PageGeometry, RenderOptions, A4, LETTER
from docpager.core.errors import PaginationError, RenderFailure, StylesheetError
from docpager.core.pagination import (
    Paginator,
    PaginationResult,
    Page,
    generate_pagination_preview,
    generate_pdf,
)

__all__ = [
    "PageGeometry",
    "RenderOptions",
    "A4",
    "LETTER",
    "PaginationError",
    "RenderFailure",
    "StylesheetError",
    "Paginator",
    "PaginationResult",
    "Page",
    "generate_pagination_preview",
    "generate_pdf",
]
