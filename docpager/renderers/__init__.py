from docpager.renderers.xhtml import XhtmlRenderer


def get_renderer(name, options=None):
    """Build a renderer by name: "xhtml" (default) or "browser"."""
    key = (name or "xhtml").lower()
    if key == "xhtml":
        return XhtmlRenderer(options)
    if key == "browser":
        from docpager.renderers.browser import BrowserRenderer
        return BrowserRenderer(options)
    raise ValueError(f"Unknown renderer '{name}'. Choose from: xhtml, browser")
