import logging

import markdown

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = [
    'extra',
    'toc',
    'sane_lists',
    'codehilite',
]

MARKDOWN_EXTENSION_CONFIGS = {
    # Plain <pre><code class="language-x"> output, no Pygments needed
    'codehilite': {'use_pygments': False},
    'toc': {'permalink': False},
}


def render_baseline(md_text):
    """
    Render Markdown to the HTML fragment consumed by the paginator.

    Returns:
        tuple: (html, toc_html)
    """
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
    )
    html = md.convert(md_text or "")
    logger.debug(f"Renderer: converted {len(md_text or '')} chars of Markdown to {len(html)} chars of HTML")
    return html, getattr(md, 'toc', '')
