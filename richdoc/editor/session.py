"""One live authoring instance: document, history and selection."""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterator, Optional

from richdoc.config import settings
from richdoc.editor.history import HistoryEntry, UndoHistory
from richdoc.errors import SessionUnavailable, StructuralRejection
from richdoc.model.document_model import DocumentModel
from richdoc.model.elements import DocumentNode, Mark, paragraph
from richdoc.model.selection import Position, Selection
from richdoc.parser.markup_parser import MarkupParser
from richdoc.renderer.markup_serializer import MarkupSerializer
from richdoc.utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class StoredMarks:
    """Formatting chosen at a collapsed cursor, applied to the next typed text."""

    marks: FrozenSet[Mark] = frozenset()
    color: Optional[str] = None


class EditorSession:
    """Owns the document model of one editing surface.

    The session is built from stored markup when the surface mounts and is
    discarded by ``unmount``; only the serialized form outlives it.
    """

    def __init__(
        self,
        content: Optional[str] = None,
        *,
        history_limit: Optional[int] = None,
        max_heading_level: Optional[int] = None,
    ) -> None:
        self.max_heading_level = max_heading_level or settings.max_heading_level
        root = MarkupParser(max_heading_level=self.max_heading_level).parse(content)
        if not any(node.is_textblock for node in _walk(root)):
            # Keep a place for the caret when the stored content has none
            root.children.append(paragraph())
        self.document = DocumentModel(root)
        self.history = UndoHistory(history_limit or settings.history_limit)
        self._serializer = MarkupSerializer()
        self._selection: Optional[Selection] = None
        self.stored_marks: Optional[StoredMarks] = None
        self._mounted = True

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    def select(self, selection: Optional[Selection]) -> None:
        """Move the selection; positions must exist in the current tree."""
        self.require_mounted()
        if selection is not None:
            for position in (selection.anchor, selection.head):
                if not self.document.contains(position):
                    raise StructuralRejection(f"position {position} is outside the document")
        if selection != self._selection:
            self.stored_marks = None
        self._selection = selection

    def focus(self, *, at_end: bool = True) -> Selection:
        """Place a caret at the start or end of the document."""
        position = self.document.end_position() if at_end else self.document.start_position()
        if position is None:
            raise StructuralRejection("document has no textblock to focus")
        selection = Selection.caret(position)
        self.select(selection)
        return selection

    def caret(self, position: Position) -> None:
        self.select(Selection.caret(position))

    def serialize(self) -> str:
        return self._serializer.serialize(self.document.root)

    def restore_selection(self, selection: Optional[Selection]) -> None:
        """Set the selection computed by an edit; stored marks do not survive it."""
        self._selection = selection
        self.stored_marks = None

    def checkpoint(self) -> HistoryEntry:
        return HistoryEntry(self.document.snapshot(), self._selection)

    def restore(self, entry: HistoryEntry) -> None:
        """Reinstate a snapshot without touching the history stacks."""
        self.document.restore(entry.document)
        self._selection = entry.selection
        self.stored_marks = None

    def require_mounted(self) -> None:
        if not self._mounted:
            raise SessionUnavailable("editor session has been unmounted")

    def unmount(self) -> None:
        """Discard history and selection; the session refuses further commands."""
        if not self._mounted:
            return
        LOGGER.debug("Unmounting editor session")
        self.history.clear()
        self._selection = None
        self.stored_marks = None
        self._mounted = False


def _walk(node: DocumentNode) -> Iterator[DocumentNode]:
    yield node
    for child in node.children:
        yield from _walk(child)
