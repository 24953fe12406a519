from __future__ import annotations

import logging
import re
from html import escape
from typing import Mapping

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")
_INLINE_IMAGE_RE = re.compile(
    r"(?P<prefix>\b(?:src|href)\s*=\s*[\"'])data:image/[^\"']*(?P<suffix>[\"'])"
    r"|url\(\s*[\"']?data:image/[^)\"']*[\"']?\s*\)",
    re.IGNORECASE,
)


def placeholder(slot_key: str) -> str:
    return "{{" + slot_key + "}}"


def find_unresolved_placeholders(html: str) -> list[str]:
    return sorted({match.group(1) for match in _PLACEHOLDER_RE.finditer(html)})


def substitute_placeholders(html: str, urls: Mapping[str, str]) -> str:
    """Replace ``{{slot}}`` markers with durable URLs.

    Markers without a URL are left in place and logged as a warning.
    """

    def _replace(match: re.Match[str]) -> str:
        url = urls.get(match.group(1))
        return escape(url, quote=True) if url else match.group(0)

    result = _PLACEHOLDER_RE.sub(_replace, html)
    unresolved = find_unresolved_placeholders(result)
    if unresolved:
        logger.warning(
            "Unresolved image placeholders after substitution",
            extra={"data": {"placeholders": unresolved}},
        )
    return result


def strip_inline_images(html: str) -> str:
    """Blank any residual ``data:image`` payloads in src/href attributes and css urls."""
    count = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal count
        count += 1
        if match.group("prefix") is not None:
            return f"{match.group('prefix')}{match.group('suffix')}"
        return "none"

    result = _INLINE_IMAGE_RE.sub(_replace, html)
    if count:
        logger.warning(
            "Stripped inline base64 images from deploy payload",
            extra={"data": {"count": count}},
        )
    return result


__all__ = [
    "find_unresolved_placeholders",
    "placeholder",
    "strip_inline_images",
    "substitute_placeholders",
]
