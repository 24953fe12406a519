from .site_html import DEFAULT_STYLESHEET, render_site_html

__all__ = ["DEFAULT_STYLESHEET", "render_site_html"]
