from .html import find_unresolved_placeholders, strip_inline_images, substitute_placeholders
from .slug import derive_project_name
from .time import monotonic_stamp, now_ms

__all__ = [
    "derive_project_name",
    "find_unresolved_placeholders",
    "monotonic_stamp",
    "now_ms",
    "strip_inline_images",
    "substitute_placeholders",
]
