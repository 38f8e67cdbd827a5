"""Document tree ownership and all-or-nothing structural edits."""
from __future__ import annotations

from typing import Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, TypeVar

from richdoc.errors import StructuralRejection
from richdoc.model.elements import (
    LIST_KINDS,
    STYLE_ATTRIBUTES,
    TEXTBLOCK_KINDS,
    DocumentNode,
    Mark,
    NodeKind,
    TextAlign,
    accepts_attribute,
    can_contain,
    empty_document,
    flatten_to_text,
    hard_break,
    horizontal_rule,
    inline_leaves,
    normalize_inline,
    split_text_at,
    split_top_level,
    text,
)
from richdoc.model.selection import Path, Position, Selection
from richdoc.utils.colors import normalize_color
from richdoc.utils.text_normalizer import TextNormalizer


T = TypeVar("T")
BlockSpan = Tuple[Path, DocumentNode, int, int]

_CONTAINER_KINDS = frozenset({NodeKind.BLOCKQUOTE, NodeKind.LIST_ITEM}) | LIST_KINDS
_WRAPPER_KINDS = frozenset({NodeKind.BLOCKQUOTE}) | LIST_KINDS
_NORMALIZER = TextNormalizer(preserve_whitespace=True)


class DocumentModel:
    """Owns one document tree and applies structural edits to it.

    Every public mutation runs against a working copy and is committed only
    when it completes; ``StructuralRejection`` leaves the tree untouched.
    """

    def __init__(self, root: Optional[DocumentNode] = None) -> None:
        root = root if root is not None else empty_document()
        if root.kind != NodeKind.DOC:
            raise StructuralRejection(f"document root must be doc, got {root.kind.value}")
        self._root = root

    @property
    def root(self) -> DocumentNode:
        return self._root

    def snapshot(self) -> DocumentNode:
        """Return a detached copy of the current tree."""
        return self._root.clone()

    def restore(self, root: DocumentNode) -> None:
        if root.kind != NodeKind.DOC:
            raise StructuralRejection("only doc nodes can be restored")
        self._root = root.clone()

    # ------------------------------------------------------------------
    # Lookups

    def node_at(self, path: Path) -> DocumentNode:
        return _node_at(self._root, path)

    def textblock_paths(self) -> List[Path]:
        return list(_textblock_paths(self._root))

    def contains(self, position: Position) -> bool:
        try:
            _resolve(self._root, position)
        except StructuralRejection:
            return False
        return True

    def start_position(self) -> Optional[Position]:
        paths = self.textblock_paths()
        return Position(paths[0], 0) if paths else None

    def end_position(self) -> Optional[Position]:
        paths = self.textblock_paths()
        if not paths:
            return None
        return Position(paths[-1], _node_at(self._root, paths[-1]).content_length)

    def index_of(self, position: Position) -> Tuple[int, int]:
        """Return ``(textblock index, offset)``, stable across wraps and lifts."""
        paths = self.textblock_paths()
        if position.path not in paths:
            raise StructuralRejection(f"no textblock at {position.path}")
        return paths.index(position.path), position.offset

    def position_at(self, index: int, offset: int) -> Optional[Position]:
        """Inverse of ``index_of``; clamps to the nearest existing location."""
        paths = self.textblock_paths()
        if not paths:
            return None
        index = max(0, min(index, len(paths) - 1))
        length = _node_at(self._root, paths[index]).content_length
        return Position(paths[index], max(0, min(offset, length)))

    def clamp(self, position: Position) -> Optional[Position]:
        """Return ``position`` if valid, else the closest valid position."""
        if self.contains(position):
            return position
        paths = self.textblock_paths()
        if not paths:
            return None
        earlier = [index for index, path in enumerate(paths) if path <= position.path]
        index = earlier[-1] if earlier else 0
        return self.position_at(index, position.offset)

    def enclosing(self, selection: Selection, kinds: Iterable[NodeKind]) -> Optional[DocumentNode]:
        """Nearest ancestor of one of ``kinds`` containing the whole range."""
        found = _enclosing(self._root, selection, frozenset(kinds))
        return found[1] if found else None

    def blocks_in(self, selection: Selection) -> List[DocumentNode]:
        return [block for _path, block, _lo, _hi in _blocks_in_range(self._root, selection)]

    def marks_at(self, selection: Selection) -> Tuple[FrozenSet[Mark], Optional[str]]:
        """Marks and colour shared by the text in range (or before a caret)."""
        if selection.collapsed:
            block = _resolve(self._root, selection.head)
            offset = selection.head.offset
            candidates = [
                leaf
                for leaf, start, end in inline_leaves(block.children)
                if leaf.kind == NodeKind.TEXT and (start < offset <= end or (offset == 0 and start == 0))
            ]
            if not candidates:
                return frozenset(), None
            leaf = candidates[0]
            return leaf.marks, leaf.attributes.get("color")  # type: ignore[return-value]

        leaves = [leaf for _block, leaf in _text_leaves(self._root, selection, split=False)]
        if not leaves:
            return frozenset(), None
        marks = frozenset.intersection(*(leaf.marks for leaf in leaves))
        colors = {leaf.attributes.get("color") for leaf in leaves}
        color = colors.pop() if len(colors) == 1 else None
        return marks, color  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Mutations

    def apply_mark(self, selection: Selection, mark: Mark) -> None:
        """Toggle ``mark`` on every text node in range.

        When all of them already carry it the mark is removed, otherwise it is
        added everywhere. Code blocks never receive marks.
        """

        def operation(root: DocumentNode) -> None:
            touched = list(_text_leaves(root, selection, split=True))
            if not touched:
                raise StructuralRejection("no text in range")
            remove = all(mark in leaf.marks for _block, leaf in touched)
            for _block, leaf in touched:
                leaf.marks = leaf.marks - {mark} if remove else leaf.marks | {mark}
            _normalize_blocks(block for block, _leaf in touched)

        self._commit(operation)

    def set_text_attribute(self, selection: Selection, key: str, value: Optional[str]) -> None:
        if key not in STYLE_ATTRIBUTES[NodeKind.TEXT]:
            raise StructuralRejection(f"text nodes do not accept {key!r}")
        cleaned = _clean_attribute(key, value)

        def operation(root: DocumentNode) -> None:
            touched = list(_text_leaves(root, selection, split=True))
            if not touched:
                raise StructuralRejection("no text in range")
            for _block, leaf in touched:
                _assign(leaf.attributes, key, cleaned)
            _normalize_blocks(block for block, _leaf in touched)

        self._commit(operation)

    def set_block_attribute(
        self,
        selection: Selection,
        key: str,
        value: Optional[object],
        kinds: Optional[Iterable[NodeKind]] = None,
    ) -> None:
        """Set ``attributes[key]`` on every textblock intersecting the range.

        Blocks are never split. Blocks that do not accept the key, or whose kind
        is not in ``kinds`` when given, are skipped.
        """
        cleaned = _clean_attribute(key, value)
        wanted = frozenset(kinds) if kinds is not None else TEXTBLOCK_KINDS

        def operation(root: DocumentNode) -> None:
            targets = [
                block
                for _path, block, _lo, _hi in _blocks_in_range(root, selection)
                if block.kind in wanted and key in STYLE_ATTRIBUTES.get(block.kind, frozenset())
            ]
            if not targets:
                raise StructuralRejection(f"no block in range accepts {key!r}")
            for block in targets:
                _assign(block.attributes, key, cleaned)

        self._commit(operation)

    def set_block_kind(self, selection: Selection, kind: NodeKind, attributes: Optional[Dict[str, object]] = None) -> None:
        """Convert intersecting textblocks to paragraph, heading or codeBlock."""
        if kind not in TEXTBLOCK_KINDS:
            raise StructuralRejection(f"{kind.value} is not a textblock kind")
        extra = dict(attributes or {})
        if kind == NodeKind.HEADING and not isinstance(extra.get("level"), int):
            raise StructuralRejection("headings need an integer level")

        def operation(root: DocumentNode) -> None:
            for _path, block, _lo, _hi in _blocks_in_range(root, selection):
                children = block.children
                if kind == NodeKind.CODE_BLOCK and block.kind != NodeKind.CODE_BLOCK:
                    flat = flatten_to_text(children)
                    children = [text(flat)] if flat else []
                allowed = STYLE_ATTRIBUTES.get(kind, frozenset())
                attrs = {k: v for k, v in block.attributes.items() if k in allowed}
                attrs.update(extra)
                block.kind = kind
                block.attributes = attrs
                block.children = normalize_inline(children)

        self._commit(operation)

    def wrap_in(self, selection: Selection, kind: NodeKind) -> None:
        """Wrap the top-level blocks intersecting the range in one ``kind`` node.

        For lists each wrapped block gets its own list item.
        """
        if kind not in _WRAPPER_KINDS:
            raise StructuralRejection(f"cannot wrap in {kind.value}")

        def operation(root: DocumentNode) -> None:
            start, end = selection.start, selection.end
            _resolve(root, start)
            _resolve(root, end)
            parent_path, lo, hi = _sibling_span(start.path, end.path)
            parent = _node_at(root, parent_path)
            selected = parent.children[lo : hi + 1]
            if kind in LIST_KINDS:
                content = [DocumentNode(NodeKind.LIST_ITEM, children=[block]) for block in selected]
            else:
                content = list(selected)
            if not can_contain(parent.kind, kind):
                raise StructuralRejection(f"{parent.kind.value} cannot contain {kind.value}")
            for child in content:
                if not can_contain(kind, child.kind):
                    raise StructuralRejection(f"{kind.value} cannot contain {child.kind.value}")
            parent.children[lo : hi + 1] = [DocumentNode(kind, children=content)]

        self._commit(operation)

    def lift(self, selection: Selection, kinds: Iterable[NodeKind]) -> None:
        """Remove the nearest enclosing ``kinds`` node, splicing its content into its parent."""
        wanted = frozenset(kinds)

        def operation(root: DocumentNode) -> None:
            found = _enclosing(root, selection, wanted)
            if found is None:
                raise StructuralRejection("range is not inside the requested container")
            path, node = found
            parent = _node_at(root, path[:-1])
            if node.kind in LIST_KINDS:
                replacement = [block for item in node.children for block in item.children]
            else:
                replacement = list(node.children)
            for child in replacement:
                if not can_contain(parent.kind, child.kind):
                    raise StructuralRejection(f"{parent.kind.value} cannot contain {child.kind.value}")
            parent.children[path[-1] : path[-1] + 1] = replacement

        self._commit(operation)

    def change_list_kind(self, selection: Selection, kind: NodeKind) -> None:
        if kind not in LIST_KINDS:
            raise StructuralRejection(f"{kind.value} is not a list kind")

        def operation(root: DocumentNode) -> None:
            found = _enclosing(root, selection, LIST_KINDS)
            if found is None:
                raise StructuralRejection("range is not inside a list")
            _path, node = found
            node.kind = kind
            node.attributes = {k: v for k, v in node.attributes.items() if accepts_attribute(kind, k)}

        self._commit(operation)

    def lift_list_items(self, selection: Selection) -> None:
        """Move the list items touched by the range out of their list.

        Items before and after the range stay in (split) lists of the same kind.
        """

        def operation(root: DocumentNode) -> None:
            found = _enclosing(root, selection, LIST_KINDS)
            if found is None:
                raise StructuralRejection("range is not inside a list")
            list_path, list_node = found
            depth = len(list_path)
            first, last = selection.start.path[depth], selection.end.path[depth]
            parent = _node_at(root, list_path[:-1])
            before = list_node.children[:first]
            lifted = [block for item in list_node.children[first : last + 1] for block in item.children]
            after = list_node.children[last + 1 :]
            replacement: List[DocumentNode] = []
            if before:
                replacement.append(DocumentNode(list_node.kind, dict(list_node.attributes), before))
            replacement.extend(lifted)
            if after:
                replacement.append(DocumentNode(list_node.kind, {}, after))
            for child in replacement:
                if not can_contain(parent.kind, child.kind):
                    raise StructuralRejection(f"{parent.kind.value} cannot contain {child.kind.value}")
            parent.children[list_path[-1] : list_path[-1] + 1] = replacement

        self._commit(operation)

    def join_backward(self, position: Position) -> Position:
        """Backspace at the start of a textblock.

        A horizontal rule right before the block is removed; otherwise the block
        is merged into the preceding textblock.
        """

        def operation(root: DocumentNode) -> Position:
            block = _resolve(root, position)
            if position.offset != 0:
                raise StructuralRejection("join_backward needs a caret at a block start")
            leaves = list(_leaf_block_paths(root))
            index = leaves.index(position.path)
            if index == 0:
                raise StructuralRejection("nothing before the first block")
            previous = leaves[index - 1]
            previous_node = _node_at(root, previous)
            if previous_node.kind == NodeKind.HORIZONTAL_RULE:
                del _node_at(root, previous[:-1]).children[previous[-1]]
                _prune_empty(root)
                return Position(_path_of(root, block), 0)
            start = Position(previous, previous_node.content_length)
            return _delete(root, Selection(start, position))

        return self._commit(operation)

    def set_link(self, selection: Selection, href: Optional[str]) -> None:
        """Turn the text in range into a link to ``href`` (``None`` removes links)."""

        def operation(root: DocumentNode) -> None:
            changed = False
            for _path, block, lo, hi in _blocks_in_range(root, selection):
                if not can_contain(block.kind, NodeKind.LINK) or lo == hi:
                    continue
                first = split_top_level(block.children, lo)
                last = split_top_level(block.children, hi)
                block.children[first:last] = _relink(block.children[first:last], href)
                block.children = normalize_inline(block.children)
                changed = True
            if not changed:
                raise StructuralRejection("no linkable text in range")

        self._commit(operation)

    def insert_inline(self, position: Position, node: DocumentNode) -> Position:
        """Insert an inline node at ``position``; return the caret after it."""

        def operation(root: DocumentNode) -> Position:
            block = _resolve(root, position)
            if not can_contain(block.kind, node.kind):
                raise StructuralRejection(f"{block.kind.value} cannot contain {node.kind.value}")
            index = split_top_level(block.children, position.offset)
            block.children.insert(index, node.clone())
            block.children = normalize_inline(block.children)
            return Position(position.path, position.offset + node.inline_length)

        return self._commit(operation)

    def insert_text(
        self,
        selection: Selection,
        value: str,
        marks: Iterable[Mark] = (),
        color: Optional[str] = None,
    ) -> Position:
        """Replace the range with ``value``; return the caret after the new text."""
        cleaned = _NORMALIZER.normalize_text(value)
        if not cleaned:
            raise StructuralRejection("nothing to insert")

        def operation(root: DocumentNode) -> Position:
            position = selection.start if selection.collapsed else _delete(root, selection)
            block = _resolve(root, position)
            if block.kind == NodeKind.CODE_BLOCK:
                nodes = [text(cleaned)]
            else:
                nodes = _lines(cleaned, marks, normalize_color(color) if color else None)
            if any(node.kind != NodeKind.TEXT for node in nodes):
                index = split_top_level(block.children, position.offset)
                block.children[index:index] = nodes
            else:
                container, local = _container_at(block, position.offset)
                index = split_top_level(container, local)
                container[index:index] = nodes
            block.children = normalize_inline(block.children)
            return Position(position.path, position.offset + len(cleaned))

        return self._commit(operation)

    def delete_range(self, selection: Selection) -> Position:
        if selection.collapsed:
            raise StructuralRejection("empty range")
        return self._commit(lambda root: _delete(root, selection))

    def split_block(self, position: Position) -> Position:
        """Split the textblock at ``position`` (Enter); return the caret in the new block."""
        return self._commit(lambda root: _split_block(root, position))

    def insert_horizontal_rule(self, position: Position) -> Position:
        """Insert a rule at ``position``; the caret lands in the block after it."""

        def operation(root: DocumentNode) -> Position:
            block = _resolve(root, position)
            parent_path, index = position.path[:-1], position.path[-1]
            parent = _node_at(root, parent_path)
            if not can_contain(parent.kind, NodeKind.HORIZONTAL_RULE):
                raise StructuralRejection(f"{parent.kind.value} cannot contain horizontalRule")
            cut = split_top_level(block.children, position.offset)
            head, tail = block.children[:cut], block.children[cut:]
            nodes: List[DocumentNode] = []
            if head:
                nodes.append(DocumentNode(block.kind, dict(block.attributes), normalize_inline(head)))
            nodes.append(horizontal_rule())
            nodes.append(DocumentNode(block.kind, dict(block.attributes), normalize_inline(tail)))
            parent.children[index : index + 1] = nodes
            return Position(parent_path + (index + len(nodes) - 1,), 0)

        return self._commit(operation)

    def _commit(self, operation: Callable[[DocumentNode], T]) -> T:
        working = self._root.clone()
        result = operation(working)
        self._root = working
        return result


# ----------------------------------------------------------------------
# Tree helpers working on an explicit root


def _node_at(root: DocumentNode, path: Path) -> DocumentNode:
    node = root
    for index in path:
        if index < 0 or index >= len(node.children):
            raise StructuralRejection(f"no node at {path}")
        node = node.children[index]
    return node


def _path_of(root: DocumentNode, target: DocumentNode) -> Path:
    for path in _leaf_block_paths(root):
        if _node_at(root, path) is target:
            return path
    raise StructuralRejection("node is no longer part of the document")


def _textblock_paths(node: DocumentNode, path: Path = ()) -> Iterator[Path]:
    if node.is_textblock:
        yield path
        return
    if node.kind == NodeKind.DOC or node.kind in _CONTAINER_KINDS:
        for index, child in enumerate(node.children):
            yield from _textblock_paths(child, path + (index,))


def _leaf_block_paths(node: DocumentNode, path: Path = ()) -> Iterator[Path]:
    """Textblocks and horizontal rules in document order."""
    if node.is_textblock or node.kind == NodeKind.HORIZONTAL_RULE:
        yield path
        return
    for index, child in enumerate(node.children):
        yield from _leaf_block_paths(child, path + (index,))


def _resolve(root: DocumentNode, position: Position) -> DocumentNode:
    block = _node_at(root, position.path)
    if not block.is_textblock:
        raise StructuralRejection(f"{position.path} is not a textblock")
    if position.offset < 0 or position.offset > block.content_length:
        raise StructuralRejection(f"offset {position.offset} outside {position.path}")
    return block


def _blocks_in_range(root: DocumentNode, selection: Selection) -> List[BlockSpan]:
    start, end = selection.start, selection.end
    _resolve(root, start)
    _resolve(root, end)
    spans: List[BlockSpan] = []
    for path in _textblock_paths(root):
        if path < start.path or path > end.path:
            continue
        block = _node_at(root, path)
        lo = start.offset if path == start.path else 0
        hi = end.offset if path == end.path else block.content_length
        spans.append((path, block, lo, hi))
    return spans


def _text_leaves(root: DocumentNode, selection: Selection, *, split: bool) -> Iterator[Tuple[DocumentNode, DocumentNode]]:
    for _path, block, lo, hi in _blocks_in_range(root, selection):
        if block.kind == NodeKind.CODE_BLOCK or lo == hi:
            continue
        if split:
            split_text_at(block.children, hi)
            split_text_at(block.children, lo)
        for leaf, start, end in list(inline_leaves(block.children)):
            if leaf.kind == NodeKind.TEXT and end > start and start < hi and end > lo:
                yield block, leaf


def _normalize_blocks(blocks: Iterable[DocumentNode]) -> None:
    seen = set()
    for block in blocks:
        if id(block) in seen:
            continue
        seen.add(id(block))
        block.children = normalize_inline(block.children)


def _sibling_span(first: Path, last: Path) -> Tuple[Path, int, int]:
    depth = 0
    limit = min(len(first), len(last)) - 1
    while depth < limit and first[depth] == last[depth]:
        depth += 1
    return first[:depth], first[depth], last[depth]


def _enclosing(root: DocumentNode, selection: Selection, kinds: FrozenSet[NodeKind]) -> Optional[Tuple[Path, DocumentNode]]:
    start, end = selection.start, selection.end
    _resolve(root, start)
    _resolve(root, end)
    for depth in range(len(start.path) - 1, 0, -1):
        prefix = start.path[:depth]
        if end.path[:depth] != prefix:
            continue
        node = _node_at(root, prefix)
        if node.kind in kinds:
            return prefix, node
    return None


def _lines(value: str, marks: Iterable[Mark], color: Optional[str]) -> List[DocumentNode]:
    """Text nodes for each line of ``value`` with hard breaks between them."""
    marks = tuple(marks)
    nodes: List[DocumentNode] = []
    for number, line in enumerate(value.split("\n")):
        if number:
            nodes.append(hard_break())
        if line:
            nodes.append(text(line, marks, color))
    return nodes


def _container_at(block: DocumentNode, offset: int) -> Tuple[List[DocumentNode], int]:
    """Inline list receiving typed text at ``offset``: inside a link when strictly within one."""
    position = 0
    for child in block.children:
        length = child.inline_length
        if child.kind == NodeKind.LINK and position < offset < position + length:
            return child.children, offset - position
        position += length
    return block.children, offset


def _relink(segment: List[DocumentNode], href: Optional[str]) -> List[DocumentNode]:
    result: List[DocumentNode] = []
    run: List[DocumentNode] = []

    def flush() -> None:
        if not run:
            return
        if href is None:
            result.extend(run)
        else:
            result.append(DocumentNode(NodeKind.LINK, attributes={"href": href}, children=list(run)))
        run.clear()

    for node in segment:
        if node.kind == NodeKind.LINK:
            run.extend(node.children)
        elif node.kind == NodeKind.TEXT:
            run.append(node)
        else:
            flush()
            result.append(node)
    flush()
    return result


def _clean_attribute(key: str, value: Optional[object]) -> Optional[object]:
    if value is None:
        return None
    if key == "textAlign":
        try:
            return TextAlign(value).value
        except ValueError as exc:
            raise StructuralRejection(f"unknown alignment {value!r}") from exc
    if key in ("color", "backgroundColor"):
        color = normalize_color(value)
        if color is None:
            raise StructuralRejection(f"invalid colour {value!r}")
        return color
    raise StructuralRejection(f"unknown style attribute {key!r}")


def _assign(attributes: Dict[str, object], key: str, value: Optional[object]) -> None:
    if value is None:
        attributes.pop(key, None)
    else:
        attributes[key] = value


def _delete(root: DocumentNode, selection: Selection) -> Position:
    start, end = selection.start, selection.end
    first = _resolve(root, start)
    last = _resolve(root, end)
    if start.path == end.path:
        lo = split_top_level(first.children, start.offset)
        hi = split_top_level(first.children, end.offset)
        del first.children[lo:hi]
        first.children = normalize_inline(first.children)
        return start

    cut = split_top_level(first.children, start.offset)
    del first.children[cut:]
    keep = split_top_level(last.children, end.offset)
    tail = last.children[keep:]
    if first.kind == NodeKind.CODE_BLOCK and last.kind != NodeKind.CODE_BLOCK:
        flat = flatten_to_text(tail)
        tail = [text(flat)] if flat else []
    elif not can_contain(first.kind, NodeKind.IMAGE):
        tail = [node for node in tail if node.kind == NodeKind.TEXT]
    first.children = normalize_inline(first.children + tail)

    doomed = [path for path in _leaf_block_paths(root) if start.path < path <= end.path]
    for path in reversed(doomed):
        parent = _node_at(root, path[:-1])
        del parent.children[path[-1]]
    _prune_empty(root)
    return start


def _prune_empty(node: DocumentNode) -> None:
    for child in node.children:
        _prune_empty(child)
    node.children = [
        child for child in node.children if not (child.kind in _CONTAINER_KINDS and not child.children)
    ]


def _split_block(root: DocumentNode, position: Position) -> Position:
    block = _resolve(root, position)
    if block.kind == NodeKind.CODE_BLOCK:
        container, local = _container_at(block, position.offset)
        index = split_top_level(container, local)
        container.insert(index, text("\n"))
        block.children = normalize_inline(block.children)
        return Position(position.path, position.offset + 1)

    parent_path, index = position.path[:-1], position.path[-1]
    parent = _node_at(root, parent_path)
    cut = split_top_level(block.children, position.offset)
    head, tail = block.children[:cut], block.children[cut:]
    kind = NodeKind.PARAGRAPH if block.kind == NodeKind.HEADING and not tail else block.kind
    attrs = {
        k: v
        for k, v in block.attributes.items()
        if k in STYLE_ATTRIBUTES.get(kind, frozenset()) or (kind == NodeKind.HEADING and k == "level")
    }
    fresh = DocumentNode(kind, attrs, normalize_inline(tail))

    if parent.kind == NodeKind.LIST_ITEM:
        list_path, item_index = parent_path[:-1], parent_path[-1]
        list_node = _node_at(root, list_path)
        if not head and not tail and len(parent.children) == 1 and item_index == len(list_node.children) - 1:
            # Enter in a trailing empty item leaves the list
            list_node.children.pop()
            outer_path, list_index = list_path[:-1], list_path[-1]
            outer = _node_at(root, outer_path)
            if list_node.children:
                outer.children.insert(list_index + 1, fresh)
                return Position(outer_path + (list_index + 1,), 0)
            outer.children[list_index] = fresh
            return Position(outer_path + (list_index,), 0)
        block.children = normalize_inline(head)
        rest = parent.children[index + 1 :]
        del parent.children[index + 1 :]
        list_node.children.insert(item_index + 1, DocumentNode(NodeKind.LIST_ITEM, children=[fresh] + rest))
        return Position(list_path + (item_index + 1, 0), 0)

    block.children = normalize_inline(head)
    parent.children.insert(index + 1, fresh)
    return Position(parent_path + (index + 1,), 0)
