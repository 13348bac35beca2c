import logging
from typing import Sequence

from docpager.core.raster import Raster, render_unit, stack_images

logger = logging.getLogger(__name__)


def compose(elements: Sequence[str], geometry, options, renderer, stylesheet=None, unit="page") -> Raster:
    """
    Render a page's committed blocks together as one raster.

    The group is re-rendered as a whole (not stitched from the measurement
    rasters) so margins, backgrounds and sibling selectors between adjacent
    blocks look the way they do in the flowed document.

    Raises:
        RenderFailure: the group could not be rendered.
    """
    return render_unit(renderer, "".join(elements), geometry, options, stylesheet, unit=unit)


def stitch(rasters: Sequence[Raster]) -> Raster:
    """Stack per-block rasters into one page raster, scaled to a common width."""
    images = [raster.to_image() for raster in rasters]
    width = max(img.width for img in images)
    resized = []
    for img in images:
        if img.width != width:
            height = max(1, int(round(img.height * width / img.width)))
            img = img.resize((width, height))
        resized.append(img)
    return Raster.from_image(stack_images(resized))


def compose_group(group, geometry, options, renderer, stylesheet=None) -> Raster:
    """
    Produce the raster for a closed page group.

    With `reuse_block_rasters` the measurement rasters are stitched instead of
    re-rendering the group.
    """
    unit = f"page {group.number}"
    level = logging.INFO if options.show_preview else logging.DEBUG

    if options.reuse_block_rasters and all(block.raster is not None for block in group.blocks):
        logger.log(level, f"Pagination: stitching {unit} from {len(group.blocks)} block rasters")
        return stitch([block.raster for block in group.blocks])

    logger.log(level, f"Pagination: compositing {unit} from {len(group.blocks)} blocks")
    return compose(group.elements, geometry, options, renderer, stylesheet, unit=unit)
