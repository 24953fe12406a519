from __future__ import annotations

import re

_APOSTROPHES_RE = re.compile(r"['’]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

MAX_PROJECT_NAME_LENGTH = 50
FALLBACK_PROJECT_NAME = "site"


def derive_project_name(seed: str | None) -> str:
    """Turn a business name into a hosting project name.

    "Tony's Barber Shop!" -> "tonys-barber-shop". Always non-empty, at most
    50 characters, never starting or ending with ``-``.
    """
    value = (seed or "").lower()
    value = _APOSTROPHES_RE.sub("", value)
    value = _NON_ALNUM_RE.sub("-", value).strip("-")
    value = value[:MAX_PROJECT_NAME_LENGTH].strip("-")
    return value or FALLBACK_PROJECT_NAME


__all__ = ["FALLBACK_PROJECT_NAME", "MAX_PROJECT_NAME_LENGTH", "derive_project_name"]
