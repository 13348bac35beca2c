"""
Headless Chromium renderer (Playwright).

Closest to what a user sees in a browser preview. Needs the `browser` extra
and a one-time browser download:

    pip install docpager[browser]
    python -m playwright install chromium
"""
import io
import logging
import threading

from PIL import Image

from docpager.core.raster import ROOT_ID, BaseRenderer, Raster

logger = logging.getLogger(__name__)

VIEWPORT_HEIGHT = 800


class BrowserRenderer(BaseRenderer):
    """
    Screenshots the container root in headless Chromium.

    One browser is launched lazily and kept for the renderer's lifetime;
    every render call gets its own page, closed on all paths.
    """

    def __init__(self, options=None):
        super().__init__(options)
        self._playwright = None
        self._browser = None
        self._thread = None
        self._lock = threading.Lock()

    def _ensure_browser(self):
        if self._browser is not None:
            # Playwright's sync API is bound to the thread that started it
            if threading.get_ident() != self._thread:
                raise RuntimeError("BrowserRenderer must be used from a single thread (set max_workers=1)")
            return self._browser
        try:
            from playwright.sync_api import sync_playwright
        except ImportError as e:
            raise RuntimeError(
                "playwright not installed. Run: pip install docpager[browser] && "
                "python -m playwright install chromium"
            ) from e

        logger.info("BrowserRenderer: launching headless Chromium")
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=True)
        self._thread = threading.get_ident()
        return self._browser

    def close(self):
        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None

    def render(self, markup, width):
        with self._lock:
            browser = self._ensure_browser()
            page = browser.new_page(
                viewport={"width": width, "height": VIEWPORT_HEIGHT},
                device_scale_factor=self.options.density,
            )
            try:
                page.set_content(markup, wait_until="load")
                page.evaluate("document.fonts ? document.fonts.ready.then(() => true) : true")
                root = page.query_selector(f"#{ROOT_ID}")
                if root is None:
                    raise RuntimeError("render container root not found in page")
                png = root.screenshot(type="png")
            finally:
                page.close()

        image = Image.open(io.BytesIO(png))
        image.load()
        return Raster.from_image(image)
