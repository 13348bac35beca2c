import argparse
import logging
import sys
from pathlib import Path

from docpager import __version__
from docpager.core.config import PageGeometry, RenderOptions, get_preset, load_options
from docpager.core.errors import RenderFailure, StylesheetError
from docpager.core.pagination import Paginator
from docpager.core.pdf_parser import PDFParser
from docpager.core.renderer import render_baseline
from docpager.core.styles import load_stylesheet, write_stylesheet_template
from docpager.renderers import get_renderer

logger = logging.getLogger("docpager")

MARKDOWN_SUFFIXES = {".md", ".markdown", ".mdown"}


def build_parser():
    parser = argparse.ArgumentParser(
        prog="docpager",
        description="Paginate HTML or Markdown into a rasterized PDF without splitting blocks.",
    )
    parser.add_argument("input", nargs="?", help="HTML or Markdown file to paginate")
    parser.add_argument("-o", "--output", help="PDF to write (default: input name with .pdf)")
    parser.add_argument("--preset", choices=["compact", "standard", "high"], help="Quality preset")
    parser.add_argument("--options", help="JSON file with render options")
    parser.add_argument("--css", help="Custom stylesheet applied before measuring")
    parser.add_argument("--scale", type=float, help="Raster density multiplier")
    parser.add_argument("--quality", type=float, help="JPEG quality, 0-1")
    parser.add_argument("--dpi", type=int, help="Target raster density (overrides --scale)")
    parser.add_argument("--page-size", default="a4", help="a4 or letter")
    parser.add_argument("--margin", type=float, default=20.0, help="Page margin in mm")
    parser.add_argument("--renderer", default="xhtml", choices=["xhtml", "browser"])
    parser.add_argument("--workers", type=int, help="Threads used to measure blocks")
    parser.add_argument("--css-template", metavar="PATH", help="Write the starter stylesheet and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _resolve_options(args):
    if args.options:
        options = load_options(args.options)
    elif args.preset:
        options = get_preset(args.preset)
    else:
        options = RenderOptions()

    overrides = {
        "scale": args.scale,
        "quality": args.quality,
        "dpi": args.dpi,
        "max_workers": args.workers,
    }
    return options.merged({k: v for k, v in overrides.items() if v is not None})


def _read_input(path):
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in MARKDOWN_SUFFIXES:
        html, _ = render_baseline(text)
        return html
    return text


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
        stream=sys.stdout,
    )

    if args.css_template:
        write_stylesheet_template(args.css_template)
        return 0

    if not args.input:
        parser.error("an input file is required")

    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {input_path}")
        return 1
    output_path = Path(args.output) if args.output else input_path.with_suffix(".pdf")

    try:
        options = _resolve_options(args)
        geometry = PageGeometry.from_name(args.page_size, margin=args.margin)
        stylesheet = load_stylesheet(args.css) if args.css else None
    except (ValueError, StylesheetError) as e:
        logger.error(str(e))
        return 2

    html = _read_input(input_path)
    try:
        with get_renderer(args.renderer, options) as renderer:
            paginator = Paginator(geometry, options, stylesheet, renderer)
            paginator.generate_pdf(html, output_path)
    except RenderFailure as e:
        logger.error(f"PDF export failed: {e}")
        return 1

    logger.info(PDFParser.describe(output_path))
    return 0
