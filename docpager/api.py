import base64
import io
import logging

from flask import Blueprint, Flask, current_app, jsonify, request, send_file

from docpager.core.config import PageGeometry, get_preset, RenderOptions
from docpager.core.errors import RenderFailure
from docpager.core.pagination import Paginator
from docpager.core.renderer import render_baseline
from docpager.renderers import get_renderer

logger = logging.getLogger(__name__)

# Constants
MAX_EXPORT_HTML_SIZE = 50 * 1024 * 1024  # 50 MB

export_bp = Blueprint('pdf_export', __name__)
blueprint = export_bp


def _renderer_factory():
    factory = current_app.config.get("DOCPAGER_RENDERER_FACTORY")
    if factory is None:
        name = current_app.config.get("DOCPAGER_RENDERER", "xhtml")
        return lambda options: get_renderer(name, options)
    return factory


def _paginator_from_request():
    """Build a Paginator from the JSON body. Raises ValueError on bad input."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")

    html = data.get("html")
    if html is None and data.get("markdown") is not None:
        html, _ = render_baseline(data["markdown"])
    if not isinstance(html, str):
        raise ValueError("Provide 'html' or 'markdown' content")

    html_size = len(html.encode('utf-8'))
    if html_size > MAX_EXPORT_HTML_SIZE:
        raise ValueError(f"Content too large ({html_size/1024/1024:.2f} MB). Max {MAX_EXPORT_HTML_SIZE/1024/1024} MB.")

    preset = data.get("preset")
    options = get_preset(preset) if preset else RenderOptions()
    overrides = data.get("options") or {}
    if not isinstance(overrides, dict):
        raise ValueError("'options' must be a JSON object")
    options = options.merged(overrides)

    geometry = PageGeometry.from_name(data.get("pageSize", "a4"), margin=float(data.get("margin", 20)))
    renderer = _renderer_factory()(options)
    paginator = Paginator(geometry, options, stylesheet=data.get("css"), renderer=renderer)
    return paginator, renderer, html


def _error(status, message, **extra):
    payload = {"error": message}
    payload.update(extra)
    return jsonify(payload), status


def _run(handler):
    try:
        paginator, renderer, html = _paginator_from_request()
    except (ValueError, TypeError) as e:
        return _error(400, str(e))

    try:
        with renderer:
            return handler(paginator, html)
    except RenderFailure as e:
        logger.error(f"PDFExport: {e}")
        return _error(422, str(e), unit=e.unit)


@export_bp.route('/api/export/preview', methods=['POST'])
def preview():
    """Paginate and return every page's markup and PNG raster."""
    def handler(paginator, html):
        with paginator.paginate(html) as result:
            pages = [
                {
                    "pageNumber": page.number,
                    "elements": list(page.elements),
                    "image": "data:image/png;base64," + base64.b64encode(page.raster.data).decode('ascii'),
                    "estimatedHeight": round(page.estimated_height, 2),
                    "compositedHeight": round(page.composited_height, 2),
                }
                for page in result.pages
            ]
            return jsonify({
                "totalPages": result.total_pages,
                "outputPages": result.output_page_count,
                "pages": pages,
            })
    return _run(handler)


@export_bp.route('/api/export/pdf', methods=['POST'])
def export_pdf():
    """Paginate and return the PDF as a download."""
    filename = (request.args.get("filename") or "document.pdf").strip() or "document.pdf"

    def handler(paginator, html):
        with paginator.paginate(html) as result:
            pdf_bytes = result.to_bytes()
        logger.info(f"PDFExport: Generated {len(pdf_bytes)} bytes.")
        return send_file(
            io.BytesIO(pdf_bytes),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=filename,
        )
    return _run(handler)


def create_app(config=None):
    app = Flask(__name__)
    app.config.update(config or {})
    app.register_blueprint(export_bp)
    return app
