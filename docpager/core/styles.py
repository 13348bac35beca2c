import logging
import mimetypes
import re
from pathlib import Path

from docpager.core.errors import StylesheetError

logger = logging.getLogger(__name__)

FONT_STACK = "system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif"

# Base look of every render container. Custom stylesheets are injected after it.
CONTAINER_CSS = """
@page {{ size: {page_width:.3f}mm {page_height:.3f}mm; margin: 0; }}
html, body {{ margin: 0; padding: 0; background-color: #ffffff; }}
#render-root {{
    width: {width}px;
    padding: 0;
    margin: 0;
    background-color: #ffffff;
    font-family: {font_stack};
    font-size: 14px;
    line-height: 1.6;
    color: #333333;
    box-sizing: border-box;
    overflow: visible;
    white-space: normal;
    word-wrap: break-word;{letter_rendering}
}}
"""

LETTER_RENDERING_CSS = """
    text-rendering: optimizeLegibility;
    -webkit-font-smoothing: antialiased;"""

CSS_TEMPLATE = """/* DocPager stylesheet template.
 * Rules here are applied on top of the base container styles, both when
 * measuring blocks and when rendering finished pages.
 */

h1, h2, h3, h4, h5, h6 {
    color: #24292e;
    margin-top: 16px;
    margin-bottom: 8px;
    font-weight: bold;
}
h1 { font-size: 24px; border-bottom: 1px solid #eaecef; padding-bottom: 4px; }
h2 { font-size: 20px; border-bottom: 1px solid #eaecef; padding-bottom: 4px; }
h3 { font-size: 17px; }

p {
    margin-top: 0;
    margin-bottom: 12px;
}

ul, ol {
    margin-top: 0;
    margin-bottom: 12px;
    padding-left: 24px;
}

table {
    width: 100%;
    border-collapse: collapse;
    margin-bottom: 12px;
}
th, td {
    border: 1px solid #dfe2e5;
    padding: 6px 10px;
}
th { background-color: #f6f8fa; font-weight: bold; }

blockquote {
    margin: 0 0 12px 0;
    padding: 0 12px;
    color: #6a737d;
    border-left: 4px solid #dfe2e5;
}

pre {
    background-color: #f6f8fa;
    border: 1px solid #e1e4e8;
    padding: 10px;
    font-size: 12px;
    line-height: 1.45;
}
code { font-family: Consolas, 'Courier New', monospace; }

hr {
    border: 0;
    border-top: 1px solid #e1e4e8;
    margin: 16px 0;
}
"""

_CSS_VAR_PATTERN = re.compile(r'var\s*\([^)]+\)')

_CSS_VAR_REPLACEMENTS = {
    'var(--color-fg-default)': '#000000',
    'var(--color-canvas-default)': '#ffffff',
    'var(--color-border-default)': '#cccccc',
    'var(--color-accent-fg)': '#0969da',
    'var(--color-neutral-muted)': '#afb8c1',
}


def container_css(geometry, options, page_height=None):
    """Base stylesheet for a render container sized to the content area."""
    return CONTAINER_CSS.format(
        page_width=geometry.content_width,
        page_height=page_height or geometry.content_height,
        width=geometry.content_width_px,
        font_stack=FONT_STACK,
        letter_rendering=LETTER_RENDERING_CSS if options.letter_rendering else "",
    )


def sanitize_css(text):
    """
    Replace CSS custom property references with concrete values.
    xhtml2pdf cannot resolve var(...) and aborts on some of them.
    """
    for k, v in _CSS_VAR_REPLACEMENTS.items():
        text = text.replace(k, v)
    return _CSS_VAR_PATTERN.sub('#888888', text)


def load_stylesheet(path) -> str:
    """
    Load a user stylesheet. Only CSS files are accepted.

    Raises:
        StylesheetError: wrong file type, missing or unreadable file.
    """
    css_path = Path(path)
    mime, _ = mimetypes.guess_type(css_path.name)
    if css_path.suffix.lower() != ".css" and mime != "text/css":
        raise StylesheetError(f"Not a CSS file: {css_path.name}")

    try:
        css = css_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StylesheetError(f"Could not read stylesheet {css_path}: {e}") from e

    logger.info(f"Stylesheet: loaded {css_path.name} ({len(css)} chars)")
    return css


def write_stylesheet_template(path) -> Path:
    """Write the starter stylesheet to `path` and return the path."""
    target = Path(path)
    target.write_text(CSS_TEMPLATE, encoding="utf-8")
    logger.info(f"Stylesheet: template written to {target}")
    return target
