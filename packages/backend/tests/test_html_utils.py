import logging

import pytest

from primesite.renderer.site_html import render_site_html
from primesite.utils.html import find_unresolved_placeholders, strip_inline_images, substitute_placeholders
from primesite.utils.slug import derive_project_name


def test_substitution_replaces_every_marker() -> None:
    html = '<img src="{{hero}}"><img src="{{gallery0}}"><div style="background:url({{hero}})"></div>'

    result = substitute_placeholders(html, {"hero": "https://h/hero.jpg", "gallery0": "https://h/g0.jpg"})

    assert "{{" not in result
    assert result.count("https://h/hero.jpg") == 2
    assert "https://h/g0.jpg" in result


def test_substituted_urls_are_attribute_escaped() -> None:
    html = '<img src="{{about}}"><div style="background-image: url(\'{{hero}}\')"></div>'

    result = substitute_placeholders(
        html,
        {"about": 'https://h/a.jpg?x="1"&y=2', "hero": "https://h/tony's.jpg"},
    )

    assert '<img src="https://h/a.jpg?x=&quot;1&quot;&amp;y=2">' in result
    assert "url('https://h/tony&#x27;s.jpg')" in result


def test_unresolved_markers_are_left_and_logged(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="primesite.utils.html"):
        result = substitute_placeholders('<img src="{{hero}}"><img src="{{about}}">', {"hero": "https://h"})

    assert find_unresolved_placeholders(result) == ["about"]
    assert "Unresolved image placeholders" in caplog.text


def test_strip_inline_images_blanks_residual_payloads(caplog, png_data_url) -> None:
    html = (
        f'<img src="{png_data_url}" alt="x">'
        f"<div style=\"background-image: url('{png_data_url}')\"></div>"
        '<img src="https://cdn.example/ok.jpg">'
    )

    with caplog.at_level(logging.WARNING, logger="primesite.utils.html"):
        result = strip_inline_images(html)

    assert "data:image" not in result
    assert '<img src="" alt="x">' in result
    assert "https://cdn.example/ok.jpg" in result
    assert "Stripped inline base64 images" in caplog.text


@pytest.mark.parametrize(
    ("seed", "expected"),
    [
        ("Tony's Barber Shop!", "tonys-barber-shop"),
        ("  --Fade & Co--  ", "fade-co"),
        ("Café Olé", "caf-ol"),
        ("", "site"),
        ("!!!", "site"),
        (None, "site"),
    ],
)
def test_derive_project_name(seed, expected) -> None:
    assert derive_project_name(seed) == expected


def test_project_name_is_capped_without_trailing_dash() -> None:
    name = derive_project_name("a" * 49 + " barber")

    assert name == "a" * 49
    assert len(derive_project_name("word " * 30)) <= 50
    assert not derive_project_name("word " * 30).endswith("-")


def test_rendered_html_carries_markers_not_payloads(make_site) -> None:
    data = make_site(about="").data

    html = render_site_html(data)

    assert "{{hero}}" in html
    assert "{{gallery0}}" in html
    assert "{{about}}" not in html
    assert "data:image" not in html
    assert "Tony&#x27;s Barber Shop" in html
    assert 'href="styles.css"' in html
