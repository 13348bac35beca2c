import base64
import io
import logging
import re
import threading

import fitz  # PyMuPDF
import requests
from bs4 import BeautifulSoup
from PIL import Image, ImageChops

from docpager.core.config import CSS_PX_PER_MM
from docpager.core.raster import BaseRenderer, Raster, stack_images
from docpager.core.styles import sanitize_css

logger = logging.getLogger(__name__)

# Tall enough that typical blocks lay out on a single PDF page
RENDER_PAGE_HEIGHT_MM = 2000
# White space (CSS px) kept under the trimmed content to stand in for block margins
BLOCK_GAP_PX = 12
REMOTE_IMAGE_TIMEOUT = 5

_PAGE_RULE = re.compile(r'@page\s*\{[^}]*\}')


class XhtmlRenderer(BaseRenderer):
    """
    Default renderer: xhtml2pdf lays the container out as a PDF, PyMuPDF
    rasterizes it at the requested density and Pillow trims the blank tail.
    """

    def __init__(self, options=None, session=None):
        super().__init__(options)
        self._session = session or requests.Session()
        self._images = {}
        self._lock = threading.Lock()

    def close(self):
        self._session.close()
        self._images.clear()

    def _fetch_data_uri(self, src):
        with self._lock:
            cached = self._images.get(src)
        if cached:
            return cached

        logger.debug(f"XhtmlRenderer: fetching remote image {src[:80]}")
        try:
            response = self._session.get(src, timeout=REMOTE_IMAGE_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RuntimeError(f"could not fetch image {src}: {e}") from e

        content_type = response.headers.get('Content-Type', 'image/png').split(';')[0].strip()
        data_uri = f"data:{content_type};base64,{base64.b64encode(response.content).decode('ascii')}"
        with self._lock:
            self._images[src] = data_uri
        return data_uri

    def _prepare(self, markup, width):
        soup = BeautifulSoup(markup, 'html.parser')

        for img in soup.find_all('img', src=True):
            if img['src'].startswith(('http://', 'https://')):
                img['src'] = self._fetch_data_uri(img['src'])

        width_mm = width / CSS_PX_PER_MM
        page_rule = f"@page {{ size: {width_mm:.3f}mm {RENDER_PAGE_HEIGHT_MM}mm; margin: 0; }}"
        for style in soup.find_all('style'):
            css = sanitize_css(style.string or "")
            style.string = _PAGE_RULE.sub(page_rule, css)

        return str(soup)

    def _rasterize(self, pdf_bytes, target_px):
        frames = []
        with fitz.open(stream=pdf_bytes, filetype="pdf") as pdf:
            for pdf_page in pdf:
                zoom = target_px / pdf_page.rect.width
                pix = pdf_page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
                frames.append(Image.frombytes("RGB", (pix.width, pix.height), pix.samples))
        if not frames:
            raise RuntimeError("xhtml2pdf produced no pages")
        return frames

    def _trim(self, image):
        background = Image.new("RGB", image.size, (255, 255, 255))
        bbox = ImageChops.difference(image, background).getbbox()
        if bbox is None:
            raise RuntimeError("rendered content has no visible pixels")
        gap = int(round(BLOCK_GAP_PX * self.options.density))
        return image.crop((0, 0, image.width, min(image.height, bbox[3] + gap)))

    def render(self, markup, width):
        from xhtml2pdf import pisa

        document = self._prepare(markup, width)
        buffer = io.BytesIO()
        status = pisa.CreatePDF(document, dest=buffer, encoding="utf-8")
        if status.err:
            raise RuntimeError(f"xhtml2pdf reported {status.err} error(s)")

        frames = self._rasterize(buffer.getvalue(), width * self.options.density)
        image = frames[0] if len(frames) == 1 else stack_images(frames)
        return Raster.from_image(self._trim(image))
