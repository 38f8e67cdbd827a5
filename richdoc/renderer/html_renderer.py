"""Render visual trees into HTML pages and fragments."""
from __future__ import annotations

from html import escape
from pathlib import Path
from typing import Optional, Union

from richdoc.model.elements import DocumentNode
from richdoc.renderer.utils import css_to_text
from richdoc.renderer.visual import VisualElement, render_read_only

VOID_TAGS = frozenset({"br", "hr", "img"})


class HtmlRenderer:
    """Produce static HTML for a document's read-only visual tree."""

    def __init__(self, output_path: Optional[Path] = None, title: str = "Description") -> None:
        self._output_path = output_path
        self._title = title

    def render(self, root: DocumentNode) -> str:
        html = self._build_html(render_read_only(root))
        if self._output_path is not None:
            self._output_path.write_text(html, encoding="utf-8")
        return html

    def _build_html(self, element: VisualElement) -> str:
        body = _to_html(element)
        return f"""<!DOCTYPE html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <title>{escape(self._title)}</title>
  <style>
    .richdoc {{ max-width: 48rem; margin: 0 auto; line-height: 1.6; }}
    .richdoc img {{ max-width: 100%; height: auto; }}
    .richdoc pre {{ padding: 0.75rem; border-radius: 0.375rem; overflow-x: auto; }}
    .richdoc blockquote {{ border-left: 3px solid #d1d5db; margin-left: 0; padding-left: 1rem; }}
  </style>
</head>
<body>
{body}
</body>
</html>
"""


def _to_html(node: Union[VisualElement, str]) -> str:
    if isinstance(node, str):
        return escape(node, quote=False)
    attributes = dict(node.attributes)
    if node.style:
        attributes["style"] = css_to_text(node.style)
    attrs = "".join(f' {key}="{escape(value, quote=True)}"' for key, value in attributes.items())
    if node.tag in VOID_TAGS:
        return f"<{node.tag}{attrs}>"
    inner = "".join(_to_html(child) for child in node.children)
    return f"<{node.tag}{attrs}>{inner}</{node.tag}>"


def render_fragment(root: DocumentNode) -> str:
    """Read-only HTML fragment of ``root`` for embedding in a page."""
    return _to_html(render_read_only(root))
