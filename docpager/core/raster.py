import io
import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Optional

from PIL import Image

from docpager.core.config import RenderOptions
from docpager.core.errors import RenderFailure
from docpager.core.styles import container_css

logger = logging.getLogger(__name__)

ROOT_ID = "render-root"

CONTAINER_DOCUMENT = """<html>
<head>
<meta charset="utf-8">
<style>{base_css}</style>
{custom_style}
</head>
<body><div id="{root_id}">{markup}</div></body>
</html>"""


@dataclass(frozen=True)
class Raster:
    """
    A rendered image: pixel size plus lossless PNG bytes.
    """
    width: int
    height: int
    data: bytes

    def to_image(self) -> Image.Image:
        image = Image.open(io.BytesIO(self.data))
        image.load()
        return image.convert("RGB")

    @classmethod
    def from_image(cls, image: Image.Image) -> "Raster":
        buffer = io.BytesIO()
        image.convert("RGB").save(buffer, format="PNG")
        return cls(width=image.width, height=image.height, data=buffer.getvalue())


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def stack_images(images: Iterable[Image.Image], background="#ffffff") -> Image.Image:
    """Stack images top to bottom on a canvas as wide as the widest one."""
    images = list(images)
    if not images:
        raise ValueError("Nothing to stack")
    width = max(img.width for img in images)
    height = sum(img.height for img in images)
    canvas = Image.new("RGB", (width, height), background)
    y = 0
    for img in images:
        canvas.paste(img.convert("RGB"), (0, y))
        y += img.height
    return canvas


class BaseRenderer:
    """
    Turns a container document into a raster.

    `render(markup, width)` receives the full container document produced by
    `render_container` and the logical (CSS px) content width; the device
    pixel density comes from the renderer's RenderOptions. Renderers are
    context managers so engines like a browser can be released.
    """

    def __init__(self, options=None):
        self.options = options or RenderOptions()

    def render(self, markup: str, width: int) -> Raster:
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class RenderContainer:
    """
    An isolated, fixed-width container document for one render call.

    Instances are only handed out by `render_container`, which releases them
    on every exit path.
    """
    _ids = itertools.count(1)
    _live = set()
    _lock = threading.Lock()

    def __init__(self, markup, geometry, options, stylesheet=None, label=""):
        self.id = next(self._ids)
        self.label = label
        self.width = geometry.content_width_px
        self.document = CONTAINER_DOCUMENT.format(
            base_css=container_css(geometry, options),
            custom_style=f"<style>{stylesheet}</style>" if stylesheet else "",
            root_id=ROOT_ID,
            markup=markup,
        )
        self.released = False

    def release(self):
        self.document = None
        self.released = True

    @classmethod
    def live_count(cls) -> int:
        with cls._lock:
            return len(cls._live)


@contextmanager
def render_container(markup, geometry, options, stylesheet: Optional[str] = None, label=""):
    container = RenderContainer(markup, geometry, options, stylesheet, label)
    with RenderContainer._lock:
        RenderContainer._live.add(container.id)
    level = logging.INFO if options.show_preview else logging.DEBUG
    logger.log(level, f"Pagination: container {container.id} opened for {label or 'markup'} ({container.width}px wide)")
    try:
        yield container
    finally:
        container.release()
        with RenderContainer._lock:
            RenderContainer._live.discard(container.id)
        logger.log(level, f"Pagination: container {container.id} released")


def render_unit(renderer, markup, geometry, options, stylesheet=None, unit="markup") -> Raster:
    """
    Render `markup` in its own container and validate the result.

    Any renderer error, or a raster with no pixels, becomes a RenderFailure
    naming `unit`. The container is released whether or not rendering worked.
    """
    with render_container(markup, geometry, options, stylesheet, label=unit) as container:
        try:
            raster = renderer.render(container.document, container.width)
        except RenderFailure:
            raise
        except Exception as e:
            raise RenderFailure(unit, e) from e

    if raster is None or raster.width <= 0 or raster.height <= 0:
        raise RenderFailure(unit, "renderer produced a zero-size raster")
    return raster
