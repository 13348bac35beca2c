import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from docpager.core.blocks import ContentNode
from docpager.core.raster import Raster, render_unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedBlock:
    """A block plus its measured height in millimetres."""
    node: ContentNode
    height: float
    # Only retained when the compositing shortcut is enabled
    raster: Optional[Raster] = None


def raster_height(raster: Raster, geometry) -> float:
    """
    Physical height of a raster drawn at the content width.

    Derived from the raster's own aspect ratio so the result does not depend
    on the render density.
    """
    return raster.height * geometry.content_width / raster.width


def measure(block: ContentNode, geometry, options, renderer, stylesheet=None) -> RenderedBlock:
    """
    Render `block` alone at the content width and return its height.

    Raises:
        RenderFailure: the block could not be rendered (the block's label is
            carried in the error).
    """
    raster = render_unit(renderer, block.markup, geometry, options, stylesheet, unit=block.label)
    height = raster_height(raster, geometry)

    level = logging.INFO if options.show_preview else logging.DEBUG
    logger.log(level, f"Pagination: measured {block.label} at {height:.2f}mm ({raster.width}x{raster.height}px)")

    return RenderedBlock(
        node=block,
        height=height,
        raster=raster if options.reuse_block_rasters else None,
    )


def iter_measurements(blocks: Iterable[ContentNode], geometry, options, renderer, stylesheet=None) -> Iterator[RenderedBlock]:
    """
    Measure blocks, yielding results in document order.

    With `options.max_workers > 1` blocks are measured concurrently, but the
    results are still yielded in their original order.
    """
    blocks = list(blocks)

    if options.max_workers <= 1 or len(blocks) <= 1:
        for block in blocks:
            yield measure(block, geometry, options, renderer, stylesheet)
        return

    executor = ThreadPoolExecutor(max_workers=options.max_workers, thread_name_prefix="docpager-measure")
    try:
        yield from executor.map(
            lambda block: measure(block, geometry, options, renderer, stylesheet),
            blocks,
        )
    finally:
        executor.shutdown(wait=True, cancel_futures=True)
