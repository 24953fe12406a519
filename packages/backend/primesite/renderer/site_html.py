"""Static HTML assembly for a published site.

Image slots render as ``{{slot}}`` markers so durable URLs can be substituted
after upload. Layout and styling are deliberately plain.
"""

from __future__ import annotations

from html import escape

from ..schemas.site import WebsiteData, gallery_slot_key
from ..utils.html import placeholder

DEFAULT_STYLESHEET = """\
* { box-sizing: border-box; margin: 0; padding: 0; }
body { font-family: Georgia, serif; color: #1c1c1c; background: #faf8f5; line-height: 1.6; }
header.hero { min-height: 60vh; display: flex; flex-direction: column; justify-content: center;
  align-items: center; text-align: center; color: #fff; background: #1c1c1c center/cover no-repeat; padding: 4rem 1rem; }
header.hero h1 { font-size: 3rem; }
section { max-width: 960px; margin: 0 auto; padding: 3rem 1rem; }
section img { max-width: 100%; border-radius: 4px; }
.services { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 1.5rem; }
.gallery { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 0.75rem; }
footer { text-align: center; padding: 2rem 1rem; background: #1c1c1c; color: #ddd; }
"""


def _image_ref(slot_key: str, value: str) -> str:
    return placeholder(slot_key) if value else ""


def render_site_html(data: WebsiteData, stylesheet_href: str = "styles.css") -> str:
    hero_image = _image_ref("hero", data.hero.image_url)
    hero_style = f' style="background-image: url(\'{hero_image}\')"' if hero_image else ""
    about_image = _image_ref("about", data.about.image_url)

    parts = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1">',
        f"<title>{escape(data.shop_name)}</title>",
        f'<link rel="stylesheet" href="{escape(stylesheet_href)}">',
        "</head>",
        "<body>",
        f'<header class="hero"{hero_style}>',
        f"<h1>{escape(data.hero.heading or data.shop_name)}</h1>",
        f"<p>{escape(data.hero.tagline)}</p>",
        "</header>",
        '<section class="about">',
        f"<h2>{escape(data.about.heading)}</h2>",
    ]
    parts.extend(f"<p>{escape(paragraph)}</p>" for paragraph in data.about.description)
    if about_image:
        parts.append(f'<img src="{about_image}" alt="{escape(data.shop_name)}">')
    parts.append("</section>")

    if data.services:
        parts.append('<section class="services">')
        for service in data.services:
            parts.append(f'<article class="service service-{escape(service.icon)}">')
            parts.append(f"<h3>{escape(service.title)}</h3>")
            if service.subtitle:
                parts.append(f"<h4>{escape(service.subtitle)}</h4>")
            parts.append(f"<p>{escape(service.description)}</p>")
            parts.append("</article>")
        parts.append("</section>")

    gallery = [
        _image_ref(gallery_slot_key(index), value) for index, value in enumerate(data.gallery)
    ]
    gallery = [ref for ref in gallery if ref]
    if gallery:
        parts.append('<section class="gallery">')
        parts.extend(f'<img src="{ref}" alt="Gallery image" loading="lazy">' for ref in gallery)
        parts.append("</section>")

    parts.append('<footer class="contact">')
    if data.area:
        parts.append(f"<p>{escape(data.area)}</p>")
    if data.contact.address:
        parts.append(f"<p>{escape(data.contact.address)}</p>")
    if data.phone:
        parts.append(f'<p><a href="tel:{escape(data.phone)}">{escape(data.phone)}</a></p>')
    if data.contact.email:
        parts.append(f'<p><a href="mailto:{escape(data.contact.email)}">{escape(data.contact.email)}</a></p>')
    parts.append("</footer>")
    parts.append("</body>")
    parts.append("</html>")
    return "\n".join(parts) + "\n"


__all__ = ["DEFAULT_STYLESHEET", "render_site_html"]
