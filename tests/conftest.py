import pytest
from PIL import Image

from docpager.core.config import A4, RenderOptions
from docpager.core.raster import Raster
from fakes import FakeRenderer


@pytest.fixture
def options():
    return RenderOptions()


@pytest.fixture
def fake_renderer(options):
    return FakeRenderer(options)


@pytest.fixture
def raster_of():
    """Build a blank raster `mm` tall at A4 content width."""
    def build(mm, width=1000):
        height = int(round(mm * width / A4.content_width))
        return Raster.from_image(Image.new("RGB", (width, height), "white"))
    return build
