"""Editor commands, undo/redo and the keyboard guard."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Tuple, Union

from richdoc.editor.session import EditorSession, StoredMarks
from richdoc.errors import StructuralRejection
from richdoc.model.elements import (
    LIST_KINDS,
    DocumentNode,
    Mark,
    NodeKind,
    TextAlign,
    hard_break,
    image,
    link,
    text,
)
from richdoc.model.selection import Position, Selection
from richdoc.utils.colors import is_color, normalize_color
from richdoc.utils.logger import get_logger
from richdoc.utils.urls import clean_url

LOGGER = get_logger(__name__)

ChangeCallback = Callable[[str], None]
Operation = Callable[[Selection], Optional[Selection]]


class EditorState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"


class ColorTarget(str, Enum):
    TEXT = "text"
    BACKGROUND = "background"


class FocusTarget(str, Enum):
    """Where keyboard focus sits when a key is pressed."""

    CONTENT = "content"
    TOOLBAR_BUTTON = "toolbar-button"
    COLOR_INPUT = "color-input"
    SELECT = "select"
    TEXT_INPUT = "text-input"


@dataclass(frozen=True)
class KeyEvent:
    key: str
    target: FocusTarget = FocusTarget.CONTENT
    shift: bool = False
    mod: bool = False
    alt: bool = False


@dataclass
class KeyOutcome:
    """What the host must do with the native event after the controller saw it."""

    handled: bool = False
    prevent_default: bool = False
    stop_propagation: bool = False


@dataclass(frozen=True)
class ToolbarState:
    marks: FrozenSet[Mark] = frozenset()
    color: Optional[str] = None
    heading_level: int = 0
    text_align: Optional[str] = None
    background_color: Optional[str] = None
    list_kind: Optional[NodeKind] = None
    code_block: bool = False
    blockquote: bool = False
    can_undo: bool = False
    can_redo: bool = False
    enabled: bool = False

    def is_active(self, mark: Mark) -> bool:
        return mark in self.marks


# Mod+key shortcuts, shift included in the key
_MARK_SHORTCUTS: Dict[Tuple[str, bool], Mark] = {
    ("b", False): Mark.BOLD,
    ("i", False): Mark.ITALIC,
    ("u", False): Mark.UNDERLINE,
    ("s", True): Mark.STRIKE,
    ("e", False): Mark.CODE,
}


class EditorController:
    """Applies the fixed command set to one ``EditorSession``.

    Every accepted mutation records an undo entry, moves the controller to
    ``dirty`` and hands the serialized document to ``on_change``. Rejected
    commands return ``False`` and leave tree, selection and state alone.
    """

    def __init__(self, session: EditorSession, on_change: Optional[ChangeCallback] = None) -> None:
        self.session = session
        self.on_change = on_change
        self.state = EditorState.CLEAN

    @property
    def document(self) -> DocumentNode:
        return self.session.document.root

    @property
    def selection(self) -> Optional[Selection]:
        return self.session.selection

    def serialize(self) -> str:
        return self.session.serialize()

    def mark_clean(self) -> None:
        self.state = EditorState.CLEAN

    # ------------------------------------------------------------------
    # Formatting

    def toggle_mark(self, mark: Union[Mark, str]) -> bool:
        try:
            mark = Mark(mark)
        except ValueError:
            LOGGER.debug("Unknown mark %r", mark)
            return False
        selection = self._usable_selection("toggle_mark")
        if selection is None:
            return False
        if selection.collapsed:
            if self._in_code_block(selection):
                return False
            stored = self._stored_marks(selection)
            self.session.stored_marks = StoredMarks(stored.marks ^ {mark}, stored.color)
            return True
        return self._run("toggle_mark", lambda sel: self._keep(sel, self.session.document.apply_mark, mark))

    def set_heading(self, level: int) -> bool:
        """Turn the blocks in range into headings of ``level`` (0 for paragraph).

        Choosing the level the blocks already have turns them back into paragraphs.
        """
        if not isinstance(level, int) or not 0 <= level <= self.session.max_heading_level:
            LOGGER.debug("Heading level %r outside 0..%s", level, self.session.max_heading_level)
            return False

        def operation(selection: Selection) -> Optional[Selection]:
            model = self.session.document
            blocks = model.blocks_in(selection)
            already = all(
                block.kind == NodeKind.HEADING and block.attributes.get("level") == level for block in blocks
            )
            if level == 0 or already:
                return self._keep(selection, model.set_block_kind, NodeKind.PARAGRAPH)
            return self._keep(selection, model.set_block_kind, NodeKind.HEADING, {"level": level})

        return self._run("set_heading", operation)

    def set_text_align(self, align: Optional[Union[TextAlign, str]]) -> bool:
        if align is not None:
            try:
                align = TextAlign(align).value
            except ValueError:
                LOGGER.debug("Unknown alignment %r", align)
                return False
        return self._run(
            "set_text_align",
            lambda sel: self._keep(sel, self.session.document.set_block_attribute, "textAlign", align),
        )

    def set_color(self, target: Union[ColorTarget, str], color: Optional[str]) -> bool:
        """Set (or clear with ``None``) the text colour or the block background."""
        try:
            target = ColorTarget(target)
        except ValueError:
            LOGGER.debug("Unknown colour target %r", target)
            return False
        if color is not None and not is_color(color):
            LOGGER.debug("Rejecting invalid colour %r", color)
            return False

        model = self.session.document
        if target == ColorTarget.BACKGROUND:
            return self._run(
                "set_color", lambda sel: self._keep(sel, model.set_block_attribute, "backgroundColor", color)
            )

        selection = self._usable_selection("set_color")
        if selection is None:
            return False
        if selection.collapsed:
            if self._in_code_block(selection):
                return False
            stored = self._stored_marks(selection)
            self.session.stored_marks = StoredMarks(stored.marks, normalize_color(color) if color else None)
            return True
        return self._run("set_color", lambda sel: self._keep(sel, model.set_text_attribute, "color", color))

    def set_code_block_background(self, color: Optional[str]) -> bool:
        if color is not None and not is_color(color):
            return False
        return self._run(
            "set_code_block_background",
            lambda sel: self._keep(
                sel, self.session.document.set_block_attribute, "backgroundColor", color, [NodeKind.CODE_BLOCK]
            ),
        )

    # ------------------------------------------------------------------
    # Block structure

    def toggle_list(self, kind: Union[NodeKind, str]) -> bool:
        try:
            kind = NodeKind(kind)
        except ValueError:
            return False
        if kind not in LIST_KINDS:
            LOGGER.debug("%s is not a list kind", kind)
            return False

        def operation(selection: Selection) -> Optional[Selection]:
            model = self.session.document
            current = model.enclosing(selection, LIST_KINDS)
            if current is None:
                return self._keep(selection, model.wrap_in, kind)
            if current.kind == kind:
                return self._keep(selection, model.lift_list_items)
            return self._keep(selection, model.change_list_kind, kind)

        return self._run("toggle_list", operation)

    def toggle_code_block(self) -> bool:
        def operation(selection: Selection) -> Optional[Selection]:
            model = self.session.document
            blocks = model.blocks_in(selection)
            if blocks and all(block.kind == NodeKind.CODE_BLOCK for block in blocks):
                return self._keep(selection, model.set_block_kind, NodeKind.PARAGRAPH)
            return self._keep(selection, model.set_block_kind, NodeKind.CODE_BLOCK)

        return self._run("toggle_code_block", operation)

    def toggle_blockquote(self) -> bool:
        def operation(selection: Selection) -> Optional[Selection]:
            model = self.session.document
            if model.enclosing(selection, [NodeKind.BLOCKQUOTE]) is not None:
                return self._keep(selection, model.lift, [NodeKind.BLOCKQUOTE])
            return self._keep(selection, model.wrap_in, NodeKind.BLOCKQUOTE)

        return self._run("toggle_blockquote", operation)

    def insert_horizontal_rule(self) -> bool:
        def operation(selection: Selection) -> Optional[Selection]:
            position = self._collapse(selection)
            return Selection.caret(self.session.document.insert_horizontal_rule(position))

        return self._run("insert_horizontal_rule", operation)

    # ------------------------------------------------------------------
    # Inline content

    def insert_image(self, src: str, alt: Optional[str] = None) -> bool:
        cleaned = clean_url(src, image=True)
        if cleaned is None:
            LOGGER.debug("Rejecting image with unsafe source")
            return False

        def operation(selection: Selection) -> Optional[Selection]:
            position = self._collapse(selection)
            return Selection.caret(self.session.document.insert_inline(position, image(cleaned, alt)))

        return self._run("insert_image", operation)

    def insert_link(self, href: Optional[str]) -> bool:
        """Link the selected text to ``href``; an empty ``href`` removes links.

        With a collapsed cursor the URL itself is inserted as linked text.
        """
        model = self.session.document
        if not href:
            return self._run("unset_link", lambda sel: self._keep(sel, model.set_link, None))
        cleaned = clean_url(href)
        if cleaned is None:
            LOGGER.debug("Rejecting link with unsafe target")
            return False

        def operation(selection: Selection) -> Optional[Selection]:
            if selection.collapsed:
                marks, color = self._typing_format(selection)
                node = link(cleaned, text(cleaned, marks, color))
                return Selection.caret(model.insert_inline(selection.head, node))
            return self._keep(selection, model.set_link, cleaned)

        return self._run("insert_link", operation)

    def insert_text(self, value: str) -> bool:
        def operation(selection: Selection) -> Optional[Selection]:
            marks, color = self._typing_format(selection)
            return Selection.caret(self.session.document.insert_text(selection, value, marks, color))

        return self._run("insert_text", operation)

    def insert_hard_break(self) -> bool:
        def operation(selection: Selection) -> Optional[Selection]:
            model = self.session.document
            if self._in_code_block(selection):
                return Selection.caret(model.insert_text(selection, "\n"))
            position = self._collapse(selection)
            return Selection.caret(model.insert_inline(position, hard_break()))

        return self._run("insert_hard_break", operation)

    def split_block(self) -> bool:
        def operation(selection: Selection) -> Optional[Selection]:
            position = self._collapse(selection)
            return Selection.caret(self.session.document.split_block(position))

        return self._run("split_block", operation)

    def delete_backward(self) -> bool:
        """Backspace: delete the range, the character before the caret, or join blocks.

        At the start of a list item's first block the item leaves its list.
        """

        def operation(selection: Selection) -> Optional[Selection]:
            model = self.session.document
            if not selection.collapsed:
                return Selection.caret(model.delete_range(selection))
            caret = selection.head
            if caret.offset > 0:
                start = Position(caret.path, caret.offset - 1)
                return Selection.caret(model.delete_range(Selection(start, caret)))
            parent_path = caret.path[:-1]
            if parent_path and caret.path[-1] == 0 and model.node_at(parent_path).kind == NodeKind.LIST_ITEM:
                return self._keep(selection, model.lift_list_items)
            return Selection.caret(model.join_backward(caret))

        return self._run("delete_backward", operation)

    # ------------------------------------------------------------------
    # History

    def undo(self) -> bool:
        return self._travel("undo")

    def redo(self) -> bool:
        return self._travel("redo")

    def _travel(self, direction: str) -> bool:
        session = self.session
        if not session.mounted:
            return False
        step = session.history.undo if direction == "undo" else session.history.redo
        entry = step(session.checkpoint())
        if entry is None:
            LOGGER.info("Nothing to %s", direction)
            return False
        session.restore(entry)
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Keyboard

    def handle_key(self, event: KeyEvent) -> KeyOutcome:
        """Route a key press; Enter never reaches an enclosing form."""
        if event.key == "Enter":
            if event.target != FocusTarget.CONTENT:
                LOGGER.debug("Suppressing Enter on %s", event.target.value)
                return KeyOutcome(handled=True, prevent_default=True, stop_propagation=True)
            accepted = self.insert_hard_break() if event.shift else self.split_block()
            return KeyOutcome(handled=accepted, prevent_default=True, stop_propagation=True)

        if event.target != FocusTarget.CONTENT:
            return KeyOutcome()
        if event.key == "Backspace":
            return _consumed(self.delete_backward())
        if not event.mod:
            return KeyOutcome()

        key = event.key.lower()
        if key == "z":
            return _consumed(self.redo() if event.shift else self.undo())
        if key == "y":
            return _consumed(self.redo())
        mark = _MARK_SHORTCUTS.get((key, event.shift))
        if mark is not None:
            return _consumed(self.toggle_mark(mark))
        return KeyOutcome()

    # ------------------------------------------------------------------
    # Toolbar

    def toolbar_state(self) -> ToolbarState:
        session = self.session
        selection = session.selection
        if not session.mounted or selection is None:
            return ToolbarState(can_undo=session.history.can_undo, can_redo=session.history.can_redo)

        model = session.document
        blocks = model.blocks_in(selection)
        stored = self._stored_marks(selection)
        levels = {block.attributes.get("level") if block.kind == NodeKind.HEADING else 0 for block in blocks}
        aligns = {block.attributes.get("textAlign") for block in blocks}
        backgrounds = {block.attributes.get("backgroundColor") for block in blocks}
        current_list = model.enclosing(selection, LIST_KINDS)
        return ToolbarState(
            marks=stored.marks,
            color=stored.color,
            heading_level=levels.pop() if len(levels) == 1 else 0,  # type: ignore[arg-type]
            text_align=aligns.pop() if len(aligns) == 1 else None,  # type: ignore[arg-type]
            background_color=backgrounds.pop() if len(backgrounds) == 1 else None,  # type: ignore[arg-type]
            list_kind=current_list.kind if current_list is not None else None,
            code_block=bool(blocks) and all(block.kind == NodeKind.CODE_BLOCK for block in blocks),
            blockquote=model.enclosing(selection, [NodeKind.BLOCKQUOTE]) is not None,
            can_undo=session.history.can_undo,
            can_redo=session.history.can_redo,
            enabled=True,
        )

    # ------------------------------------------------------------------
    # Internals

    def _run(self, name: str, operation: Operation) -> bool:
        selection = self._usable_selection(name)
        if selection is None:
            return False
        session = self.session
        before = session.checkpoint()
        try:
            after = operation(selection)
        except StructuralRejection as exc:
            session.document.restore(before.document)
            LOGGER.debug("Rejected %s: %s", name, exc)
            return False
        if session.document.root == before.document:
            LOGGER.debug("Ignoring %s: document unchanged", name)
            return False

        session.history.record(before)
        session.restore_selection(after or selection)
        self._changed()
        return True

    def _changed(self) -> None:
        self.state = EditorState.DIRTY
        if self.on_change is not None:
            self.on_change(self.session.serialize())

    def _usable_selection(self, name: str) -> Optional[Selection]:
        if not self.session.mounted:
            LOGGER.debug("Ignoring %s: session unmounted", name)
            return None
        if self.session.selection is None:
            LOGGER.debug("Ignoring %s: no selection", name)
            return None
        return self.session.selection

    def _keep(self, selection: Selection, method: Callable[..., None], *args: object) -> Selection:
        """Run a structural edit and carry the selection over by textblock index."""
        model = self.session.document
        anchor = model.index_of(selection.anchor)
        head = model.index_of(selection.head)
        method(selection, *args)
        new_anchor = model.position_at(*anchor)
        new_head = model.position_at(*head)
        if new_anchor is None or new_head is None:
            raise StructuralRejection("edit left no textblock to hold the selection")
        return Selection(new_anchor, new_head)

    def _collapse(self, selection: Selection) -> Position:
        if selection.collapsed:
            return selection.head
        return self.session.document.delete_range(selection)

    def _in_code_block(self, selection: Selection) -> bool:
        return self.session.document.node_at(selection.head.path).kind == NodeKind.CODE_BLOCK

    def _stored_marks(self, selection: Selection) -> StoredMarks:
        if selection.collapsed and self.session.stored_marks is not None:
            return self.session.stored_marks
        marks, color = self.session.document.marks_at(selection)
        return StoredMarks(marks, color)

    def _typing_format(self, selection: Selection) -> Tuple[FrozenSet[Mark], Optional[str]]:
        stored = self.session.stored_marks
        if stored is not None:
            return stored.marks, stored.color
        return self.session.document.marks_at(Selection.caret(selection.start))


def _consumed(accepted: bool) -> KeyOutcome:
    return KeyOutcome(handled=accepted, prevent_default=True)
