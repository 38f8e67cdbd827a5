"""Validation of CSS colour strings accepted as node attributes."""
from __future__ import annotations

import re
from typing import Optional

_HEX_PATTERN = re.compile(r"^#(?:[0-9a-f]{3}|[0-9a-f]{4}|[0-9a-f]{6}|[0-9a-f]{8})$")
_FUNCTION_PATTERN = re.compile(
    r"^(rgb|rgba|hsl|hsla)\(\s*"
    r"[0-9.]+%?(?:\s*,\s*[0-9.]+%?){2}(?:\s*,\s*[0-9.]+%?)?"
    r"\s*\)$"
)
_NAMED_PATTERN = re.compile(r"^[a-z]{3,20}$")


def normalize_color(value: Optional[object]) -> Optional[str]:
    """Return a canonical colour string, or ``None`` when ``value`` is not a colour.

    Only characters that cannot break out of a ``style`` declaration survive.
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip().lower()
    if not candidate:
        return None
    if _HEX_PATTERN.match(candidate):
        return candidate
    match = _FUNCTION_PATTERN.match(candidate)
    if match:
        inner = candidate[candidate.index("(") + 1 : -1]
        parts = [part.strip() for part in inner.split(",")]
        return f"{match.group(1)}({', '.join(parts)})"
    if _NAMED_PATTERN.match(candidate):
        return candidate
    return None


def is_color(value: Optional[object]) -> bool:
    return normalize_color(value) is not None
