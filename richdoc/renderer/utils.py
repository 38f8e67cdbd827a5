"""Common helpers shared by the serializer and the visual renderers."""
from __future__ import annotations

from typing import Dict, Mapping

from richdoc.model.elements import STYLE_ATTRIBUTES, DocumentNode, NodeKind, TextAlign
from richdoc.utils.colors import normalize_color
from richdoc.utils.text_normalizer import TextNormalizer

MONOSPACE_FONT = "ui-monospace, SFMono-Regular, Menlo, monospace"

_EXCERPT_NORMALIZER = TextNormalizer(preserve_whitespace=False)


def style_to_css(attributes: Mapping[str, object]) -> Dict[str, str]:
    """Convert node style attributes into CSS properties.

    Values are re-validated so that nothing but a known alignment or a
    colour can reach a ``style`` attribute.
    """
    css: Dict[str, str] = {}
    align = attributes.get("textAlign")
    if align in {member.value for member in TextAlign}:
        css["text-align"] = str(align)
    background = normalize_color(attributes.get("backgroundColor"))
    if background:
        css["background-color"] = background
    color = normalize_color(attributes.get("color"))
    if color:
        css["color"] = color
    return css


def css_to_text(css: Mapping[str, str]) -> str:
    return "; ".join(f"{key}: {value}" for key, value in css.items())


def parse_css(style: str) -> Dict[str, str]:
    """Split an inline ``style`` attribute into lower-cased declarations."""
    declarations: Dict[str, str] = {}
    for chunk in (style or "").split(";"):
        if ":" not in chunk:
            continue
        key, value = chunk.split(":", 1)
        key = key.strip().lower()
        value = value.strip()
        if key and value:
            declarations[key] = value
    return declarations


def node_style(node: DocumentNode) -> Dict[str, str]:
    """CSS for the style attributes ``node`` accepts; anything else is ignored."""
    allowed = STYLE_ATTRIBUTES.get(node.kind, frozenset())
    return style_to_css({key: value for key, value in node.attributes.items() if key in allowed})


def block_style(node: DocumentNode) -> Dict[str, str]:
    """Style of a block in the rendered output, monospace included for code."""
    css = node_style(node)
    if node.kind == NodeKind.CODE_BLOCK:
        css["font-family"] = MONOSPACE_FONT
    return css


def plain_text_excerpt(root: DocumentNode, limit: int = 160) -> str:
    """Whitespace-collapsed text of a document, cut on a word boundary."""
    flat = _EXCERPT_NORMALIZER.normalize_text(root.plain_text())
    if len(flat) <= limit:
        return flat
    cut = flat[:limit].rsplit(" ", 1)[0] or flat[:limit]
    return cut.rstrip() + "…"
