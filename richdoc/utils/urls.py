"""URL checks for link targets and image sources embedded in documents."""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

LINK_SCHEMES = frozenset({"http", "https", "mailto"})
IMAGE_SCHEMES = frozenset({"http", "https"})


def clean_url(url: Optional[str], *, image: bool = False) -> Optional[str]:
    """Return the trimmed URL when it is safe to embed, else ``None``.

    Relative URLs are accepted. ``data:`` URLs are accepted for images only,
    and only with an ``image/`` media type.
    """
    if not isinstance(url, str):
        return None
    # Remove whitespace/newlines (users may paste wrapped URLs)
    candidate = "".join(url.split())
    if not candidate:
        return None
    if any(ch in candidate for ch in '<>"\'`'):
        return None

    parsed = urlparse(candidate)
    scheme = parsed.scheme.lower()
    if not scheme:
        # "javascript:foo" parses with a scheme; "//host/x" and "/x" do not
        return candidate
    if image and scheme == "data":
        return candidate if parsed.path.lower().startswith("image/") else None
    allowed = IMAGE_SCHEMES if image else LINK_SCHEMES
    return candidate if scheme in allowed else None
