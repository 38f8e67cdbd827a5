"""Visual trees for the read-only page and the editing surface."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from richdoc.model.elements import MARK_ORDER, DocumentNode, NodeKind
from richdoc.model.selection import Path, Position, Selection
from richdoc.renderer.markup_serializer import LINK_REL, LINK_TARGET, MARK_TAGS
from richdoc.renderer.utils import block_style, node_style
from richdoc.utils.logger import get_logger
from richdoc.utils.urls import clean_url

LOGGER = get_logger(__name__)

ROOT_CLASS = "richdoc"
CARET_CLASS = "richdoc-caret"

_BLOCK_TAGS: Dict[NodeKind, str] = {
    NodeKind.PARAGRAPH: "p",
    NodeKind.BULLET_LIST: "ul",
    NodeKind.ORDERED_LIST: "ol",
    NodeKind.LIST_ITEM: "li",
    NodeKind.BLOCKQUOTE: "blockquote",
    NodeKind.CODE_BLOCK: "pre",
    NodeKind.HORIZONTAL_RULE: "hr",
}


@dataclass
class VisualElement:
    """One element of a rendered tree; plain strings are text children."""

    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    style: Dict[str, str] = field(default_factory=dict)
    children: List[Union["VisualElement", str]] = field(default_factory=list)

    def iter_elements(self):
        yield self
        for child in self.children:
            if isinstance(child, VisualElement):
                yield from child.iter_elements()

    def text_content(self) -> str:
        return "".join(
            child if isinstance(child, str) else child.text_content() for child in self.children
        )


class VisualRenderer:
    """Map a document tree onto visual elements.

    Both variants share every tag and style decision; the editable one only
    adds ``contenteditable``, ``data-path`` on textblocks and the selection
    markers.
    """

    def __init__(self, *, editable: bool = False, selection: Optional[Selection] = None) -> None:
        self._editable = editable
        self._selection = selection if editable else None

    def render(self, root: DocumentNode) -> VisualElement:
        attributes = {"class": ROOT_CLASS}
        if self._editable:
            attributes.update({"contenteditable": "true", "role": "textbox", "aria-multiline": "true"})
        children: List[Union[VisualElement, str]] = []
        for index, child in enumerate(root.children):
            children.extend(self._node(child, (index,)))
        return VisualElement("div", attributes, {}, children)

    def _node(self, node: DocumentNode, path: Path) -> List[Union[VisualElement, str]]:
        kind = node.kind
        if kind == NodeKind.TEXT:
            return [self._text(node)]
        if kind == NodeKind.HARD_BREAK:
            return [VisualElement("br")]
        if kind == NodeKind.IMAGE:
            src = clean_url(node.attributes.get("src"), image=True)  # type: ignore[arg-type]
            if src is None:
                LOGGER.debug("Not rendering image with unsafe source")
                return []
            attributes = {"src": src}
            alt = node.attributes.get("alt")
            attributes["alt"] = alt if isinstance(alt, str) else ""
            return [VisualElement("img", attributes)]
        if kind == NodeKind.LINK:
            inner = self._children(node, path)
            href = clean_url(node.attributes.get("href"))  # type: ignore[arg-type]
            if href is None:
                return inner
            return [VisualElement("a", {"href": href, "target": LINK_TARGET, "rel": LINK_REL}, {}, inner)]

        if kind == NodeKind.HEADING:
            level = node.attributes.get("level")
            tag = f"h{level}" if isinstance(level, int) and 1 <= level <= 6 else "h1"
        else:
            tag = _BLOCK_TAGS.get(kind, "")
        if not tag:
            LOGGER.debug("No visual form for %s", kind.value)
            return []

        attributes: Dict[str, str] = {}
        if kind == NodeKind.ORDERED_LIST:
            start = node.attributes.get("start")
            if isinstance(start, int) and start != 1:
                attributes["start"] = str(start)
        if node.is_textblock and self._editable:
            attributes.update(self._editable_attributes(node, path))

        if kind == NodeKind.CODE_BLOCK:
            code = VisualElement("code", children=[child.text for child in node.children if child.text])
            return [VisualElement(tag, attributes, block_style(node), [code])]
        return [VisualElement(tag, attributes, block_style(node), self._children(node, path))]

    def _children(self, node: DocumentNode, path: Path) -> List[Union[VisualElement, str]]:
        result: List[Union[VisualElement, str]] = []
        for index, child in enumerate(node.children):
            result.extend(self._node(child, path + (index,)))
        return result

    def _text(self, node: DocumentNode) -> Union[VisualElement, str]:
        content: Union[VisualElement, str] = node.text
        color = node_style(node)
        if color:
            content = VisualElement("span", {}, color, [content])
        for mark in reversed(MARK_ORDER):
            if mark in node.marks:
                content = VisualElement(MARK_TAGS[mark], children=[content])
        return content

    def _editable_attributes(self, node: DocumentNode, path: Path) -> Dict[str, str]:
        attributes = {"data-path": ".".join(str(index) for index in path)}
        if self._selection is None:
            return attributes
        for name, position in self._selection_points():
            if position.path == path:
                attributes[f"data-{name}"] = str(position.offset)
                attributes["class"] = CARET_CLASS
        return attributes

    def _selection_points(self) -> List[Tuple[str, Position]]:
        selection = self._selection
        if selection is None:
            return []
        return [("anchor", selection.anchor), ("head", selection.head)]


def render_read_only(root: DocumentNode) -> VisualElement:
    """Visual tree for display pages: no selection, no editing affordances."""
    return VisualRenderer().render(root)


def render_editable(root: DocumentNode, selection: Optional[Selection] = None) -> VisualElement:
    """Visual tree for the editing surface."""
    return VisualRenderer(editable=True, selection=selection).render(root)
