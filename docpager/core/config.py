import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# CSS reference pixel: 96 per inch, 25.4mm per inch (~3.78 px/mm)
CSS_PX_PER_MM = 96 / 25.4
PT_PER_MM = 72 / 25.4


@dataclass(frozen=True)
class PageGeometry:
    """
    Physical page size and margins in millimetres, fixed for one run.
    """
    page_width: float = 210.0
    page_height: float = 297.0
    margin: float = 20.0

    def __post_init__(self):
        if self.page_width <= 0 or self.page_height <= 0:
            raise ValueError(f"Page size must be positive, got {self.page_width}x{self.page_height}mm")
        if self.margin < 0:
            raise ValueError(f"Margin must not be negative, got {self.margin}mm")
        if self.content_width <= 0 or self.content_height <= 0:
            raise ValueError(
                f"Margin of {self.margin}mm leaves no content area on a "
                f"{self.page_width}x{self.page_height}mm page"
            )

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def content_height(self) -> float:
        return self.page_height - 2 * self.margin

    @property
    def content_width_px(self) -> int:
        """Logical (CSS px) width of the render container."""
        return int(round(self.content_width * CSS_PX_PER_MM))

    @property
    def page_width_pt(self) -> float:
        return self.page_width * PT_PER_MM

    @property
    def page_height_pt(self) -> float:
        return self.page_height * PT_PER_MM

    @staticmethod
    def from_name(name, margin=20.0):
        sizes = {
            "a4": (210.0, 297.0),
            "letter": (215.9, 279.4),
        }
        key = (name or "").strip().lower()
        if key not in sizes:
            raise ValueError(f"Unknown page size '{name}'. Choose from: {', '.join(sorted(sizes))}")
        width, height = sizes[key]
        return PageGeometry(page_width=width, page_height=height, margin=margin)


A4 = PageGeometry()
LETTER = PageGeometry.from_name("letter")


@dataclass(frozen=True)
class RenderOptions:
    """
    Raster settings shared by measurement, compositing and assembly.

    `show_preview` only affects diagnostics (log verbosity), never the output.
    """
    scale: float = 2.0
    quality: float = 0.85
    dpi: Optional[int] = None
    letter_rendering: bool = False
    show_preview: bool = False
    reuse_block_rasters: bool = False
    max_workers: int = 1

    def __post_init__(self):
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if not 0 <= self.quality <= 1:
            raise ValueError(f"quality must be within [0, 1], got {self.quality}")
        if self.dpi is not None and self.dpi <= 0:
            raise ValueError(f"dpi must be positive, got {self.dpi}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    @property
    def density(self) -> float:
        """Device pixels per CSS pixel."""
        if self.dpi:
            return self.dpi / 96
        return self.scale

    @property
    def jpeg_quality(self) -> int:
        # Pillow's useful JPEG range is 1-95
        return max(1, min(95, int(round(self.quality * 100))))

    def merged(self, overrides):
        """Return a copy with `overrides` (any accepted key spelling) applied."""
        return replace(self, **_normalize_keys(overrides))

    @classmethod
    def from_dict(cls, data):
        return cls(**_normalize_keys(data))


_CAMEL_KEYS = {
    "letterRendering": "letter_rendering",
    "showPreview": "show_preview",
    "reuseBlockRasters": "reuse_block_rasters",
    "maxWorkers": "max_workers",
}


def _normalize_keys(data):
    known = {f.name for f in fields(RenderOptions)}
    normalized = {}
    for key, value in (data or {}).items():
        name = _CAMEL_KEYS.get(key, key)
        if name not in known:
            logger.warning(f"RenderOptions: ignoring unknown option '{key}'")
            continue
        normalized[name] = value
    return normalized


COMPACT = RenderOptions(scale=1.5, quality=0.7)
STANDARD = RenderOptions(scale=2.0, quality=0.85)
HIGH_QUALITY = RenderOptions(scale=3.0, quality=0.95, dpi=300, letter_rendering=True)

PRESETS = {
    "compact": COMPACT,
    "standard": STANDARD,
    "high": HIGH_QUALITY,
}


def get_preset(name):
    try:
        return PRESETS[name.lower()]
    except (KeyError, AttributeError):
        raise ValueError(f"Unknown preset '{name}'. Choose from: {', '.join(PRESETS)}")


def load_options(path):
    """
    Read render options from a JSON file.

    A "preset" key selects the starting preset; the remaining keys override it.

    Args:
        path (str or Path): JSON file location.

    Returns:
        RenderOptions
    """
    config_path = Path(path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read options file {config_path}: {e}")
        raise ValueError(f"Could not read options file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Options file {config_path} must contain a JSON object")

    data = dict(data)
    preset = data.pop("preset", None)
    base = get_preset(preset) if preset else RenderOptions()
    return base.merged(data)
