"""Test cases for undo history and editor sessions."""

import unittest

from richdoc.editor.history import HistoryEntry, UndoHistory
from richdoc.editor.session import EditorSession
from richdoc.model.elements import document, paragraph, text
from richdoc.model.selection import Position, Selection


def entry(value):
    return HistoryEntry(document(paragraph(text(value))), None)


class UndoHistoryTest(unittest.TestCase):
    def test_undo_and_redo_swap_entries(self):
        history = UndoHistory()
        history.record(entry("a"))
        self.assertTrue(history.can_undo)

        previous = history.undo(entry("b"))
        self.assertEqual(previous, entry("a"))
        self.assertTrue(history.can_redo)
        self.assertFalse(history.can_undo)

        self.assertEqual(history.redo(entry("a")), entry("b"))
        self.assertFalse(history.can_redo)

    def test_empty_stacks_return_none(self):
        history = UndoHistory()
        self.assertIsNone(history.undo(entry("x")))
        self.assertIsNone(history.redo(entry("x")))
        self.assertEqual(len(history), 0)

    def test_record_drops_redo_branch(self):
        history = UndoHistory()
        history.record(entry("a"))
        history.undo(entry("b"))
        history.record(entry("a"))
        self.assertFalse(history.can_redo)

    def test_limit_discards_oldest(self):
        history = UndoHistory(limit=2)
        for value in "abc":
            history.record(entry(value))
        self.assertEqual(len(history), 2)
        self.assertEqual(history.undo(entry("d")), entry("c"))
        self.assertEqual(history.undo(entry("c")), entry("b"))
        self.assertIsNone(history.undo(entry("b")))

    def test_limit_must_be_positive(self):
        with self.assertRaises(ValueError):
            UndoHistory(limit=0)


class EditorSessionTest(unittest.TestCase):
    def test_empty_content_gets_a_paragraph(self):
        session = EditorSession(None)
        self.assertEqual(session.serialize(), "<p></p>")

    def test_content_without_textblock_gets_a_caret_place(self):
        session = EditorSession("<hr>")
        self.assertEqual(session.serialize(), "<hr><p></p>")
        self.assertEqual(session.focus(), Selection.caret(Position((1,), 0)))

    def test_focus_at_start_and_end(self):
        session = EditorSession("<p>ab</p><p>cd</p>")
        self.assertEqual(session.focus(), Selection.caret(Position((1,), 2)))
        self.assertEqual(session.focus(at_end=False), Selection.caret(Position((0,), 0)))

    def test_restore_does_not_touch_history(self):
        session = EditorSession("<p>a</p>")
        snapshot = session.checkpoint()
        session.history.record(snapshot)
        session.restore(snapshot)
        self.assertEqual(len(session.history), 1)
        self.assertEqual(session.serialize(), "<p>a</p>")

    def test_unmount_is_idempotent(self):
        session = EditorSession("<p>a</p>")
        session.unmount()
        session.unmount()
        self.assertFalse(session.mounted)


if __name__ == "__main__":
    unittest.main()
