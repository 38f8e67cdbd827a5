"""Parse stored markup into document trees."""
from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, PageElement, ProcessingInstruction, Tag

from richdoc.config import settings
from richdoc.errors import MalformedInput
from richdoc.model.elements import (
    DocumentNode,
    Mark,
    NodeKind,
    TextAlign,
    code_block,
    document,
    hard_break,
    horizontal_rule,
    image,
    iter_violations,
    link,
    normalize_inline,
    paragraph,
    text,
)
from richdoc.renderer.utils import parse_css
from richdoc.utils.colors import normalize_color
from richdoc.utils.logger import get_logger
from richdoc.utils.text_normalizer import TextNormalizer
from richdoc.utils.urls import clean_url

LOGGER = get_logger(__name__)

MARK_TAGS: Dict[str, Mark] = {
    "strong": Mark.BOLD,
    "b": Mark.BOLD,
    "em": Mark.ITALIC,
    "i": Mark.ITALIC,
    "u": Mark.UNDERLINE,
    "s": Mark.STRIKE,
    "strike": Mark.STRIKE,
    "del": Mark.STRIKE,
    "code": Mark.CODE,
}
HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}

# Content never carried over into a document
_DROPPED_TAGS = frozenset({"script", "style", "iframe", "object", "embed", "noscript", "template", "svg", "canvas"})
_IGNORED_TAGS = frozenset({"head", "title", "meta", "link", "base"})
_DOCUMENT_WRAPPERS = frozenset({"html", "body"})
# Layout containers whose content is read as blocks
_BLOCK_CONTAINERS = frozenset(
    {
        "div", "section", "article", "main", "header", "footer", "nav", "aside",
        "figure", "figcaption", "center", "address", "details", "summary", "form",
        "fieldset", "table", "thead", "tbody", "tfoot", "tr", "td", "th", "dl", "dt", "dd",
    }
)
_BLOCK_TAGS = frozenset({"p", "ul", "ol", "li", "blockquote", "pre", "hr"}) | frozenset(HEADING_TAGS)
_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)
# Elements nested deeper than this are read as plain text
MAX_NESTING_DEPTH = 64


class MarkupParser:
    """Build a normalized document tree from HTML-compatible markup.

    The default mode never raises: anything outside the document vocabulary
    is unwrapped, dropped or re-homed and logged at debug level. With
    ``strict=True`` the first such recovery raises ``MalformedInput``.
    """

    def __init__(self, max_heading_level: Optional[int] = None, strict: bool = False) -> None:
        self._max_heading_level = max(1, min(6, max_heading_level or settings.max_heading_level))
        self._strict = strict
        self._normalizer = TextNormalizer(preserve_whitespace=True)

    def parse(self, markup: Optional[str]) -> DocumentNode:
        if not markup or not markup.strip():
            return document(paragraph())
        soup = BeautifulSoup(markup, "html.parser")
        blocks = self._blocks(soup.contents)
        root = document(*blocks) if blocks else document(paragraph())
        if self._strict:
            problem = next(iter_violations(root), None)
            if problem is not None:
                raise MalformedInput(problem)
        return root

    # ------------------------------------------------------------------
    # Block level

    def _blocks(
        self, nodes: Iterable[PageElement], template: Optional[DocumentNode] = None, depth: int = 0
    ) -> List[DocumentNode]:
        """Read block content.

        ``template`` is the textblock (paragraph or heading) whose tag is being
        read; inline content then fills copies of it and whitespace is kept.
        Without a template stray inline content lands in fallback paragraphs.
        """
        blocks: List[DocumentNode] = []
        pending: List[DocumentNode] = []

        def flush() -> None:
            if template is None:
                _trim_trailing_whitespace(pending)
            content = normalize_inline(list(pending))
            pending.clear()
            if content:
                blocks.append(_fresh(template, content) if template is not None else paragraph(*content))

        for node in nodes:
            if isinstance(node, NavigableString):
                if isinstance(node, _SKIPPED_STRINGS):
                    continue
                value = str(node)
                if template is None and not pending:
                    value = value.lstrip()
                    if not value:
                        continue
                    self._recover("wrapping stray text in a paragraph")
                self._inline(NavigableString(value), frozenset(), None, pending)
                continue
            if not isinstance(node, Tag):
                continue

            name = node.name
            if name in _IGNORED_TAGS:
                continue
            if name in _DROPPED_TAGS:
                self._recover(f"dropping <{name}> content")
                continue
            if name in _BLOCK_TAGS or name in _BLOCK_CONTAINERS or name in _DOCUMENT_WRAPPERS:
                if template is not None:
                    self._recover(f"<{name}> nested inside a textblock")
                flush()
                blocks.extend(self._block(node, depth + 1))
                continue
            if template is None and not pending:
                self._recover(f"wrapping stray <{name}> in a paragraph")
            self._inline(node, frozenset(), None, pending, depth + 1)

        flush()
        if template is not None and not blocks:
            blocks.append(_fresh(template, []))
        return blocks

    def _block(self, tag: Tag, depth: int) -> List[DocumentNode]:
        if depth > MAX_NESTING_DEPTH:
            value = self._flattened(tag).strip()
            return [paragraph(text(value))] if value else []
        name = tag.name
        if name == "p":
            return self._blocks(tag.children, paragraph(**self._block_style(tag, with_align=True)), depth)
        if name in HEADING_TAGS:
            level = HEADING_TAGS[name]
            if level > self._max_heading_level:
                self._recover(f"clamping heading level {level} to {self._max_heading_level}")
                level = self._max_heading_level
            template = DocumentNode(
                NodeKind.HEADING,
                attributes={"level": level, **self._block_style(tag, with_align=True)},
            )
            return self._blocks(tag.children, template, depth)
        if name in ("ul", "ol"):
            return self._list(tag, depth)
        if name == "li":
            self._recover("unwrapping list item outside a list")
            return self._blocks(tag.children, depth=depth)
        if name == "blockquote":
            inner = self._blocks(tag.children, depth=depth)
            return [DocumentNode(NodeKind.BLOCKQUOTE, children=inner or [paragraph()])]
        if name == "pre":
            value = self._normalizer.normalize_text(tag.get_text())
            return [code_block(value, **self._block_style(tag, with_align=False))]
        if name == "hr":
            return [horizontal_rule()]
        if name not in _DOCUMENT_WRAPPERS:
            self._recover(f"unwrapping <{name}>")
        return self._blocks(tag.children, depth=depth)

    def _list(self, tag: Tag, depth: int) -> List[DocumentNode]:
        items: List[DocumentNode] = []
        stray: List[PageElement] = []

        def flush_stray() -> None:
            if not stray:
                return
            content = self._blocks(list(stray), depth=depth)
            stray.clear()
            if content:
                self._recover("wrapping stray list content in a list item")
                items.append(DocumentNode(NodeKind.LIST_ITEM, children=content))

        for child in tag.children:
            if isinstance(child, Tag) and child.name == "li":
                flush_stray()
                content = self._blocks(child.children, depth=depth + 1)
                items.append(DocumentNode(NodeKind.LIST_ITEM, children=content or [paragraph()]))
            else:
                stray.append(child)
        flush_stray()

        if not items:
            self._recover(f"dropping empty <{tag.name}>")
            return []
        if tag.name == "ul":
            return [DocumentNode(NodeKind.BULLET_LIST, children=items)]
        attributes: Dict[str, object] = {}
        start = _parse_int(tag.get("start"))
        if start is not None and start != 1:
            attributes["start"] = start
        return [DocumentNode(NodeKind.ORDERED_LIST, attributes=attributes, children=items)]

    def _block_style(self, tag: Tag, *, with_align: bool) -> Dict[str, object]:
        css = parse_css(_attribute(tag, "style"))
        attributes: Dict[str, object] = {}
        align = css.get("text-align", "").lower()
        if with_align and align:
            if align in {member.value for member in TextAlign}:
                attributes["textAlign"] = align
            else:
                self._recover(f"ignoring alignment {align!r}")
        if "background-color" in css:
            background = normalize_color(css["background-color"])
            if background:
                attributes["backgroundColor"] = background
            else:
                self._recover(f"ignoring background colour {css['background-color']!r}")
        return attributes

    # ------------------------------------------------------------------
    # Inline level

    def _inline(
        self,
        node: PageElement,
        marks: FrozenSet[Mark],
        color: Optional[str],
        out: List[DocumentNode],
        depth: int = 0,
    ) -> None:
        if isinstance(node, NavigableString):
            if isinstance(node, _SKIPPED_STRINGS):
                return
            value = self._normalizer.normalize_text(str(node))
            if value:
                out.append(text(value, marks, color))
            return
        if not isinstance(node, Tag):
            return

        name = node.name
        if name in _DROPPED_TAGS or name in _IGNORED_TAGS:
            self._recover(f"dropping <{name}> inside inline content")
            return
        if depth > MAX_NESTING_DEPTH:
            value = self._flattened(node)
            if value:
                out.append(text(value, marks, color))
            return
        if name == "br":
            out.append(hard_break())
            return
        if name == "img":
            src = clean_url(_attribute(node, "src"), image=True)
            if src is None:
                self._recover("dropping image with unsafe or missing source")
                return
            out.append(image(src, _attribute(node, "alt") or None))
            return
        if name == "a":
            self._link(node, marks, color, out, depth)
            return

        if name in MARK_TAGS:
            marks = marks | {MARK_TAGS[name]}
        elif name != "span":
            self._recover(f"unwrapping <{name}> inside inline content")
        color = self._text_color(node) or color
        for child in node.children:
            self._inline(child, marks, color, out, depth + 1)

    def _link(
        self, tag: Tag, marks: FrozenSet[Mark], color: Optional[str], out: List[DocumentNode], depth: int
    ) -> None:
        inner: List[DocumentNode] = []
        for child in tag.children:
            self._inline(child, marks, color, inner, depth + 1)
        href = clean_url(_attribute(tag, "href"))
        if href is None:
            self._recover("unwrapping link with unsafe or missing target")
            out.extend(inner)
            return

        run: List[DocumentNode] = []
        for node in inner:
            if node.kind == NodeKind.TEXT:
                run.append(node)
                continue
            if node.kind == NodeKind.LINK:
                self._recover("flattening nested link")
                run.extend(node.children)
                continue
            self._recover(f"moving {node.kind.value} out of link")
            if run:
                out.append(link(href, *run))
                run = []
            out.append(node)
        if run:
            out.append(link(href, *run))

    def _text_color(self, tag: Tag) -> Optional[str]:
        value = parse_css(_attribute(tag, "style")).get("color")
        if value is None:
            return None
        color = normalize_color(value)
        if color is None:
            self._recover(f"ignoring text colour {value!r}")
        return color

    def _flattened(self, tag: Tag) -> str:
        self._recover(f"flattening <{tag.name}> nested deeper than {MAX_NESTING_DEPTH} levels")
        return self._normalizer.normalize_text(tag.get_text())

    def _recover(self, message: str) -> None:
        if self._strict:
            raise MalformedInput(message)
        LOGGER.debug("Recovered malformed markup: %s", message)


def _fresh(template: DocumentNode, children: List[DocumentNode]) -> DocumentNode:
    return DocumentNode(template.kind, attributes=dict(template.attributes), children=children)


def _attribute(tag: Tag, key: str) -> str:
    value = tag.get(key)
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _parse_int(value: object) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _trim_trailing_whitespace(nodes: List[DocumentNode]) -> None:
    while nodes and nodes[-1].kind == NodeKind.TEXT:
        nodes[-1].text = nodes[-1].text.rstrip()
        if nodes[-1].text:
            return
        nodes.pop()


def parse(markup: Optional[str], strict: bool = False) -> DocumentNode:
    """Module-level shortcut for ``MarkupParser().parse``."""
    return MarkupParser(strict=strict).parse(markup)
