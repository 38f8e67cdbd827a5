"""Serialize a document tree into its stored markup form."""
from __future__ import annotations

from html import escape
from typing import Dict, List, Mapping

from richdoc.model.elements import MARK_ORDER, DocumentNode, Mark, NodeKind
from richdoc.renderer.utils import css_to_text, node_style
from richdoc.utils.logger import get_logger
from richdoc.utils.urls import clean_url

LOGGER = get_logger(__name__)

EMPTY_DOCUMENT_MARKUP = "<p></p>"
LINK_TARGET = "_blank"
LINK_REL = "noopener noreferrer nofollow"

MARK_TAGS: Dict[Mark, str] = {
    Mark.BOLD: "strong",
    Mark.ITALIC: "em",
    Mark.UNDERLINE: "u",
    Mark.STRIKE: "s",
    Mark.CODE: "code",
}

_BLOCK_TAGS: Dict[NodeKind, str] = {
    NodeKind.PARAGRAPH: "p",
    NodeKind.BULLET_LIST: "ul",
    NodeKind.ORDERED_LIST: "ol",
    NodeKind.LIST_ITEM: "li",
    NodeKind.BLOCKQUOTE: "blockquote",
}


class MarkupSerializer:
    """Produce deterministic, HTML-compatible markup for a document tree."""

    def serialize(self, root: DocumentNode) -> str:
        if root.kind != NodeKind.DOC:
            return self._node(root)
        body = "".join(self._node(child) for child in root.children)
        return body or EMPTY_DOCUMENT_MARKUP

    def _node(self, node: DocumentNode) -> str:
        kind = node.kind
        if kind == NodeKind.TEXT:
            return self._text(node)
        if kind == NodeKind.HARD_BREAK:
            return "<br>"
        if kind == NodeKind.HORIZONTAL_RULE:
            return "<hr>"
        if kind == NodeKind.IMAGE:
            return self._image(node)
        if kind == NodeKind.LINK:
            return self._link(node)
        if kind == NodeKind.HEADING:
            level = node.attributes.get("level")
            if not isinstance(level, int) or not 1 <= level <= 6:
                level = 1
            return self._element(f"h{level}", node, node_style(node))
        if kind == NodeKind.CODE_BLOCK:
            code = "".join(escape(child.text, quote=False) for child in node.children)
            return f"<pre{_attrs({'style': css_to_text(node_style(node))})}><code>{code}</code></pre>"
        if kind == NodeKind.ORDERED_LIST:
            start = node.attributes.get("start")
            attrs = {"start": str(start)} if isinstance(start, int) and start != 1 else {}
            return f"<ol{_attrs(attrs)}>{self._children(node)}</ol>"
        tag = _BLOCK_TAGS.get(kind)
        if tag is None:
            LOGGER.debug("Skipping node without markup form: %s", kind.value)
            return ""
        css = node_style(node) if kind == NodeKind.PARAGRAPH else {}
        return self._element(tag, node, css)

    def _element(self, tag: str, node: DocumentNode, css: Mapping[str, str]) -> str:
        return f"<{tag}{_attrs({'style': css_to_text(css)})}>{self._children(node)}</{tag}>"

    def _children(self, node: DocumentNode) -> str:
        return "".join(self._node(child) for child in node.children)

    def _text(self, node: DocumentNode) -> str:
        content = escape(node.text, quote=False)
        color_css = node_style(node)
        if color_css:
            content = f"<span{_attrs({'style': css_to_text(color_css)})}>{content}</span>"
        for mark in reversed(MARK_ORDER):
            if mark in node.marks:
                tag = MARK_TAGS[mark]
                content = f"<{tag}>{content}</{tag}>"
        return content

    def _image(self, node: DocumentNode) -> str:
        src = clean_url(node.attributes.get("src"), image=True)  # type: ignore[arg-type]
        if src is None:
            LOGGER.debug("Dropping image with unsafe source")
            return ""
        attrs = {"src": src}
        alt = node.attributes.get("alt")
        if isinstance(alt, str) and alt:
            attrs["alt"] = alt
        return f"<img{_attrs(attrs)}>"

    def _link(self, node: DocumentNode) -> str:
        href = clean_url(node.attributes.get("href"))  # type: ignore[arg-type]
        inner = self._children(node)
        if href is None:
            LOGGER.debug("Dropping unsafe link target")
            return inner
        return f"<a{_attrs({'href': href, 'target': LINK_TARGET, 'rel': LINK_REL})}>{inner}</a>"


def _attrs(attributes: Mapping[str, str]) -> str:
    parts: List[str] = [f' {key}="{escape(value, quote=True)}"' for key, value in attributes.items() if value]
    return "".join(parts)


def serialize(root: DocumentNode) -> str:
    """Module-level shortcut for ``MarkupSerializer().serialize``."""
    return MarkupSerializer().serialize(root)
