from bs4 import BeautifulSoup
from PIL import Image

from docpager.core.blocks import BlockKind, ContentNode
from docpager.core.config import A4
from docpager.core.measure import RenderedBlock
from docpager.core.raster import ROOT_ID, BaseRenderer, Raster


class FakeRenderer(BaseRenderer):
    """
    Deterministic renderer for tests.

    Each top-level element in the container is `data-mm` millimetres tall
    (10mm when unset). Markup containing `fail_on` raises, like an
    unreachable image would.
    """
    DEFAULT_MM = 10.0

    def __init__(self, options=None, geometry=A4, fail_on=None):
        super().__init__(options)
        self.content_width = geometry.content_width
        self.fail_on = fail_on
        self.calls = []
        self.closed = False

    def render(self, markup, width):
        self.calls.append(markup)
        if self.fail_on and self.fail_on in markup:
            raise IOError(f"resource unreachable: {self.fail_on}")

        soup = BeautifulSoup(markup, 'html.parser')
        root = soup.find(id=ROOT_ID)
        total_mm = sum(
            float(child.get('data-mm', self.DEFAULT_MM))
            for child in root.find_all(recursive=False)
        )

        px_width = int(round(width * self.options.density))
        px_height = int(round(total_mm * px_width / self.content_width))
        if px_height <= 0:
            return Raster(width=px_width, height=0, data=b"")
        return Raster.from_image(Image.new("RGB", (px_width, px_height), "white"))

    def close(self):
        self.closed = True


def make_block(height, index=0, tag="p"):
    node = ContentNode(
        index=index,
        tag=tag,
        kind=BlockKind.PARAGRAPH,
        markup=f'<{tag} data-mm="{height}">block {index}</{tag}>',
    )
    return RenderedBlock(node=node, height=float(height))


def blocks_html(*heights):
    return "".join(f'<p data-mm="{h}">block {i}</p>' for i, h in enumerate(heights))


