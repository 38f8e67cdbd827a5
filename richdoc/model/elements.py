"""In-memory representation of rich document content."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple


class NodeKind(str, Enum):
    """Tag of a ``DocumentNode`` variant."""

    DOC = "doc"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    LIST_ITEM = "listItem"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "codeBlock"
    HORIZONTAL_RULE = "horizontalRule"
    TEXT = "text"
    HARD_BREAK = "hardBreak"
    IMAGE = "image"
    LINK = "link"


class Mark(str, Enum):
    """Inline formatting carried by text nodes."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKE = "strike"
    CODE = "code"


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"


# Serialization order, outermost first
MARK_ORDER: Tuple[Mark, ...] = (Mark.BOLD, Mark.ITALIC, Mark.UNDERLINE, Mark.STRIKE, Mark.CODE)

BLOCK_KINDS = frozenset(
    {
        NodeKind.PARAGRAPH,
        NodeKind.HEADING,
        NodeKind.BULLET_LIST,
        NodeKind.ORDERED_LIST,
        NodeKind.LIST_ITEM,
        NodeKind.BLOCKQUOTE,
        NodeKind.CODE_BLOCK,
        NodeKind.HORIZONTAL_RULE,
    }
)
INLINE_KINDS = frozenset({NodeKind.TEXT, NodeKind.HARD_BREAK, NodeKind.IMAGE, NodeKind.LINK})
TEXTBLOCK_KINDS = frozenset({NodeKind.PARAGRAPH, NodeKind.HEADING, NodeKind.CODE_BLOCK})
LIST_KINDS = frozenset({NodeKind.BULLET_LIST, NodeKind.ORDERED_LIST})

_FLOW_CONTENT = BLOCK_KINDS - {NodeKind.LIST_ITEM}
_PHRASING_CONTENT = INLINE_KINDS

ALLOWED_CHILDREN: Dict[NodeKind, FrozenSet[NodeKind]] = {
    NodeKind.DOC: _FLOW_CONTENT,
    NodeKind.BLOCKQUOTE: _FLOW_CONTENT,
    NodeKind.LIST_ITEM: _FLOW_CONTENT,
    NodeKind.BULLET_LIST: frozenset({NodeKind.LIST_ITEM}),
    NodeKind.ORDERED_LIST: frozenset({NodeKind.LIST_ITEM}),
    NodeKind.PARAGRAPH: _PHRASING_CONTENT,
    NodeKind.HEADING: _PHRASING_CONTENT,
    NodeKind.LINK: frozenset({NodeKind.TEXT}),
    NodeKind.CODE_BLOCK: frozenset({NodeKind.TEXT}),
    NodeKind.HORIZONTAL_RULE: frozenset(),
    NodeKind.TEXT: frozenset(),
    NodeKind.HARD_BREAK: frozenset(),
    NodeKind.IMAGE: frozenset(),
}

# Style keys a node kind accepts; structural keys (level, src, href...) are listed apart
STYLE_ATTRIBUTES: Dict[NodeKind, FrozenSet[str]] = {
    NodeKind.PARAGRAPH: frozenset({"textAlign", "backgroundColor"}),
    NodeKind.HEADING: frozenset({"textAlign", "backgroundColor"}),
    NodeKind.CODE_BLOCK: frozenset({"backgroundColor"}),
    NodeKind.TEXT: frozenset({"color"}),
}
STRUCTURAL_ATTRIBUTES: Dict[NodeKind, FrozenSet[str]] = {
    NodeKind.HEADING: frozenset({"level"}),
    NodeKind.ORDERED_LIST: frozenset({"start"}),
    NodeKind.IMAGE: frozenset({"src", "alt"}),
    NodeKind.LINK: frozenset({"href"}),
}


@dataclass(slots=True)
class DocumentNode:
    """A node of the document tree.

    ``text`` and ``marks`` are only meaningful for text nodes; every other
    kind keeps them empty.
    """

    kind: NodeKind
    attributes: Dict[str, object] = field(default_factory=dict)
    children: List["DocumentNode"] = field(default_factory=list)
    text: str = ""
    marks: FrozenSet[Mark] = frozenset()

    @property
    def is_block(self) -> bool:
        return self.kind in BLOCK_KINDS

    @property
    def is_inline(self) -> bool:
        return self.kind in INLINE_KINDS

    @property
    def is_textblock(self) -> bool:
        return self.kind in TEXTBLOCK_KINDS

    @property
    def inline_length(self) -> int:
        """Number of cursor steps this node occupies inside a textblock."""
        if self.kind == NodeKind.TEXT:
            return len(self.text)
        if self.kind in (NodeKind.HARD_BREAK, NodeKind.IMAGE):
            return 1
        return sum(child.inline_length for child in self.children)

    @property
    def content_length(self) -> int:
        """Length of a textblock's inline content."""
        return sum(child.inline_length for child in self.children)

    def plain_text(self) -> str:
        if self.kind == NodeKind.TEXT:
            return self.text
        if self.kind == NodeKind.HARD_BREAK:
            return "\n"
        if self.kind == NodeKind.IMAGE:
            return ""
        if self.is_textblock or self.kind == NodeKind.LINK:
            return "".join(child.plain_text() for child in self.children)
        return "\n".join(child.plain_text() for child in self.children)

    def clone(self) -> "DocumentNode":
        return copy.deepcopy(self)

    def same_format(self, other: "DocumentNode") -> bool:
        """True when two inline nodes could be merged into one."""
        return (
            self.kind == other.kind
            and self.marks == other.marks
            and self.attributes == other.attributes
        )


# ---------------------------------------------------------------------------
# Factories


def document(*blocks: DocumentNode) -> DocumentNode:
    return DocumentNode(NodeKind.DOC, children=list(blocks))


def empty_document() -> DocumentNode:
    """Canonical empty document: one empty paragraph."""
    return document(paragraph())


def paragraph(*children: DocumentNode, **attributes: object) -> DocumentNode:
    return DocumentNode(NodeKind.PARAGRAPH, attributes=dict(attributes), children=list(children))


def heading(level: int, *children: DocumentNode, **attributes: object) -> DocumentNode:
    attrs: Dict[str, object] = {"level": level}
    attrs.update(attributes)
    return DocumentNode(NodeKind.HEADING, attributes=attrs, children=list(children))


def text(value: str, marks: Iterable[Mark] = (), color: Optional[str] = None) -> DocumentNode:
    attrs: Dict[str, object] = {"color": color} if color else {}
    return DocumentNode(NodeKind.TEXT, attributes=attrs, text=value, marks=frozenset(marks))


def hard_break() -> DocumentNode:
    return DocumentNode(NodeKind.HARD_BREAK)


def image(src: str, alt: Optional[str] = None) -> DocumentNode:
    attrs: Dict[str, object] = {"src": src}
    if alt:
        attrs["alt"] = alt
    return DocumentNode(NodeKind.IMAGE, attributes=attrs)


def link(href: str, *children: DocumentNode) -> DocumentNode:
    return DocumentNode(NodeKind.LINK, attributes={"href": href}, children=list(children))


def list_item(*blocks: DocumentNode) -> DocumentNode:
    return DocumentNode(NodeKind.LIST_ITEM, children=list(blocks) or [paragraph()])


def bullet_list(*items: DocumentNode) -> DocumentNode:
    return DocumentNode(NodeKind.BULLET_LIST, children=list(items))


def ordered_list(*items: DocumentNode, start: Optional[int] = None) -> DocumentNode:
    attrs: Dict[str, object] = {"start": start} if start not in (None, 1) else {}
    return DocumentNode(NodeKind.ORDERED_LIST, attributes=attrs, children=list(items))


def blockquote(*blocks: DocumentNode) -> DocumentNode:
    return DocumentNode(NodeKind.BLOCKQUOTE, children=list(blocks) or [paragraph()])


def code_block(value: str = "", **attributes: object) -> DocumentNode:
    children = [text(value)] if value else []
    return DocumentNode(NodeKind.CODE_BLOCK, attributes=dict(attributes), children=children)


def horizontal_rule() -> DocumentNode:
    return DocumentNode(NodeKind.HORIZONTAL_RULE)


# ---------------------------------------------------------------------------
# Schema


def can_contain(parent: NodeKind, child: NodeKind) -> bool:
    return child in ALLOWED_CHILDREN.get(parent, frozenset())


def accepts_attribute(kind: NodeKind, key: str) -> bool:
    return key in STYLE_ATTRIBUTES.get(kind, frozenset()) or key in STRUCTURAL_ATTRIBUTES.get(kind, frozenset())


def iter_violations(node: DocumentNode, path: Tuple[int, ...] = ()) -> Iterator[str]:
    """Yield a description of every schema violation below ``node``."""
    for key in node.attributes:
        if not accepts_attribute(node.kind, key):
            yield f"{path}: {node.kind.value} does not accept attribute {key!r}"
    if node.kind == NodeKind.CODE_BLOCK and any(child.marks or child.attributes for child in node.children):
        yield f"{path}: codeBlock text must not carry marks"
    if node.kind != NodeKind.TEXT and (node.text or node.marks):
        yield f"{path}: only text nodes carry text and marks"
    for index, child in enumerate(node.children):
        if not can_contain(node.kind, child.kind):
            yield f"{path}: {node.kind.value} cannot contain {child.kind.value}"
        yield from iter_violations(child, path + (index,))


def is_valid(root: DocumentNode) -> bool:
    return root.kind == NodeKind.DOC and next(iter_violations(root), None) is None


# ---------------------------------------------------------------------------
# Inline normalization


def normalize_inline(children: List[DocumentNode]) -> List[DocumentNode]:
    """Merge adjacent compatible inline nodes and drop empty ones."""
    result: List[DocumentNode] = []
    for child in children:
        if child.kind == NodeKind.LINK:
            child.children = normalize_inline(child.children)
            if not child.children:
                continue
        elif child.kind == NodeKind.TEXT and not child.text:
            continue

        previous = result[-1] if result else None
        if previous is not None and previous.same_format(child):
            if child.kind == NodeKind.TEXT:
                previous.text += child.text
                continue
            if child.kind == NodeKind.LINK:
                previous.children = normalize_inline(previous.children + child.children)
                continue
        result.append(child)
    return result


def inline_leaves(children: List[DocumentNode], base: int = 0) -> Iterator[Tuple[DocumentNode, int, int]]:
    """Yield ``(leaf, start, end)`` for every inline leaf, descending into links."""
    position = base
    for child in children:
        if child.kind == NodeKind.LINK:
            yield from inline_leaves(child.children, position)
        else:
            yield child, position, position + child.inline_length
        position += child.inline_length


def split_text_at(children: List[DocumentNode], offset: int) -> None:
    """Cut the text leaf spanning ``offset`` in two, descending into links."""
    position = 0
    for index, child in enumerate(children):
        length = child.inline_length
        if position < offset < position + length:
            if child.kind == NodeKind.TEXT:
                local = offset - position
                tail = DocumentNode(
                    NodeKind.TEXT,
                    attributes=dict(child.attributes),
                    text=child.text[local:],
                    marks=child.marks,
                )
                child.text = child.text[:local]
                children.insert(index + 1, tail)
            elif child.kind == NodeKind.LINK:
                split_text_at(child.children, offset - position)
            return
        position += length


def split_top_level(children: List[DocumentNode], offset: int) -> int:
    """Ensure a top-level boundary at ``offset`` and return the child index there.

    A link spanning the offset is cut into two links with the same target.
    """
    position = 0
    for index, child in enumerate(children):
        length = child.inline_length
        if offset <= position:
            return index
        if offset < position + length:
            local = offset - position
            if child.kind == NodeKind.LINK:
                split_text_at(child.children, local)
                cut = 0
                consumed = 0
                while consumed < local:
                    consumed += child.children[cut].inline_length
                    cut += 1
                tail_link = DocumentNode(
                    NodeKind.LINK, attributes=dict(child.attributes), children=child.children[cut:]
                )
                child.children = child.children[:cut]
                children.insert(index + 1, tail_link)
            else:
                split_text_at(children, offset)
            return index + 1
        position += length
    return len(children)


def flatten_to_text(children: List[DocumentNode]) -> str:
    """Plain text of inline content, hard breaks becoming newlines and images dropped."""
    parts: List[str] = []
    for leaf, _start, _end in inline_leaves(children):
        if leaf.kind == NodeKind.TEXT:
            parts.append(leaf.text)
        elif leaf.kind == NodeKind.HARD_BREAK:
            parts.append("\n")
    return "".join(parts)
