import json

import pytest

from docpager.core.config import (
    A4,
    HIGH_QUALITY,
    PageGeometry,
    RenderOptions,
    get_preset,
    load_options,
)
from docpager.core.errors import StylesheetError
from docpager.core.styles import (
    CSS_TEMPLATE,
    container_css,
    load_stylesheet,
    sanitize_css,
    write_stylesheet_template,
)


class TestPageGeometry:
    def test_a4_defaults(self):
        assert (A4.page_width, A4.page_height, A4.margin) == (210, 297, 20)
        assert A4.content_width == 170
        assert A4.content_height == 257

    def test_logical_width_uses_css_pixels(self):
        # 170mm at 96dpi
        assert A4.content_width_px == 643

    def test_named_sizes(self):
        letter = PageGeometry.from_name("Letter", margin=10)
        assert letter.page_width == pytest.approx(215.9)
        assert letter.content_height == pytest.approx(259.4)

        with pytest.raises(ValueError):
            PageGeometry.from_name("a3")

    def test_invalid_geometry(self):
        with pytest.raises(ValueError):
            PageGeometry(page_width=100, page_height=100, margin=50)
        with pytest.raises(ValueError):
            PageGeometry(page_width=-1)
        with pytest.raises(ValueError):
            PageGeometry(margin=-5)


class TestRenderOptions:
    def test_defaults(self):
        options = RenderOptions()
        assert options.scale == 2
        assert options.quality == 0.85
        assert options.density == 2
        assert options.jpeg_quality == 85

    def test_quality_range_is_inclusive(self):
        assert RenderOptions(quality=0).jpeg_quality == 1
        assert RenderOptions(quality=1).jpeg_quality == 95

    def test_dpi_overrides_scale(self):
        assert RenderOptions(scale=2, dpi=288).density == 3

    def test_validation(self):
        with pytest.raises(ValueError):
            RenderOptions(quality=-0.1)
        with pytest.raises(ValueError):
            RenderOptions(quality=1.5)
        with pytest.raises(ValueError):
            RenderOptions(scale=0)
        with pytest.raises(ValueError):
            RenderOptions(max_workers=0)

    def test_from_dict_accepts_camel_case(self):
        options = RenderOptions.from_dict({"scale": 3, "letterRendering": True, "showPreview": True, "bogus": 1})
        assert options.scale == 3
        assert options.letter_rendering is True
        assert options.show_preview is True

    def test_merged_keeps_unspecified_values(self):
        options = HIGH_QUALITY.merged({"quality": 0.5})
        assert options.quality == 0.5
        assert options.dpi == 300

    def test_presets(self):
        assert get_preset("compact").scale == 1.5
        assert get_preset("STANDARD").quality == 0.85
        assert get_preset("high") is HIGH_QUALITY
        with pytest.raises(ValueError):
            get_preset("ultra")


class TestLoadOptions:
    def test_preset_with_overrides(self, tmp_path):
        path = tmp_path / "options.json"
        path.write_text(json.dumps({"preset": "compact", "quality": 0.6, "maxWorkers": 2}))

        options = load_options(path)

        assert options.scale == 1.5
        assert options.quality == 0.6
        assert options.max_workers == 2

    def test_bad_file(self, tmp_path):
        path = tmp_path / "options.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_options(path)

        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            load_options(path)


class TestStyles:
    def test_container_css_sizes_to_content_area(self):
        css = container_css(A4, RenderOptions())
        assert "width: 643px" in css
        assert "size: 170.000mm 257.000mm" in css
        assert "text-rendering" not in css

    def test_letter_rendering_adds_text_rendering(self):
        css = container_css(A4, RenderOptions(letter_rendering=True))
        assert "text-rendering: optimizeLegibility" in css

    def test_sanitize_css(self):
        css = sanitize_css("a { color: var(--color-accent-fg); background: var(--custom); }")
        assert "var(" not in css
        assert "#0969da" in css
        assert "#888888" in css

    def test_load_stylesheet(self, tmp_path):
        path = tmp_path / "theme.css"
        path.write_text("p { margin: 0; }", encoding="utf-8")
        assert load_stylesheet(path) == "p { margin: 0; }"

    def test_rejects_non_css(self, tmp_path):
        path = tmp_path / "theme.txt"
        path.write_text("p { margin: 0; }")
        with pytest.raises(StylesheetError):
            load_stylesheet(path)

    def test_missing_stylesheet(self, tmp_path):
        with pytest.raises(StylesheetError):
            load_stylesheet(tmp_path / "missing.css")

    def test_template_round_trip(self, tmp_path):
        path = write_stylesheet_template(tmp_path / "template.css")
        assert load_stylesheet(path) == CSS_TEMPLATE
