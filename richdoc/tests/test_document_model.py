"""Test cases for structural edits on the document model."""

import unittest

from richdoc.errors import StructuralRejection
from richdoc.model.document_model import DocumentModel
from richdoc.model.elements import (
    Mark,
    NodeKind,
    blockquote,
    bullet_list,
    code_block,
    document,
    hard_break,
    heading,
    horizontal_rule,
    image,
    link,
    list_item,
    ordered_list,
    paragraph,
    text,
)
from richdoc.model.selection import Position, Selection


def span(path, start, end, end_path=None):
    return Selection(Position(path, start), Position(end_path or path, end))


class ApplyMarkTest(unittest.TestCase):
    """Toggle semantics of marks on ranges."""

    def setUp(self):
        self.model = DocumentModel(document(paragraph(text("hello world"))))

    def test_mark_splits_text_at_boundaries(self):
        self.model.apply_mark(span((0,), 0, 5), Mark.BOLD)
        self.assertEqual(
            self.model.root.children[0].children,
            [text("hello", [Mark.BOLD]), text(" world")],
        )

    def test_second_application_restores_original(self):
        original = self.model.snapshot()
        self.model.apply_mark(span((0,), 2, 8), Mark.ITALIC)
        self.assertNotEqual(self.model.root, original)
        self.model.apply_mark(span((0,), 2, 8), Mark.ITALIC)
        self.assertEqual(self.model.root, original)

    def test_mixed_range_gets_mark_everywhere(self):
        self.model.apply_mark(span((0,), 0, 5), Mark.BOLD)
        self.model.apply_mark(span((0,), 0, 11), Mark.BOLD)
        self.assertEqual(self.model.root.children[0].children, [text("hello world", [Mark.BOLD])])

    def test_range_across_blocks(self):
        model = DocumentModel(document(paragraph(text("ab")), paragraph(text("cd"))))
        model.apply_mark(span((0,), 1, 1, (1,)), Mark.STRIKE)
        self.assertEqual(model.root.children[0].children, [text("a"), text("b", [Mark.STRIKE])])
        self.assertEqual(model.root.children[1].children, [text("c", [Mark.STRIKE]), text("d")])

    def test_code_blocks_are_skipped(self):
        model = DocumentModel(document(code_block("x = 1")))
        with self.assertRaises(StructuralRejection):
            model.apply_mark(span((0,), 0, 5), Mark.BOLD)
        self.assertEqual(model.root, document(code_block("x = 1")))

    def test_path_outside_tree_is_rejected(self):
        original = self.model.snapshot()
        with self.assertRaises(StructuralRejection):
            self.model.apply_mark(span((3,), 0, 1), Mark.BOLD)
        with self.assertRaises(StructuralRejection):
            self.model.apply_mark(span((0,), 0, 40), Mark.BOLD)
        self.assertEqual(self.model.root, original)


class AttributeTest(unittest.TestCase):
    def test_block_attribute_on_intersecting_blocks_only(self):
        model = DocumentModel(document(paragraph(text("a")), heading(2, text("b")), paragraph(text("c"))))
        model.set_block_attribute(span((0,), 0, 1, (1,)), "textAlign", "center")
        self.assertEqual(model.root.children[0].attributes, {"textAlign": "center"})
        self.assertEqual(model.root.children[1].attributes, {"level": 2, "textAlign": "center"})
        self.assertEqual(model.root.children[2].attributes, {})

    def test_none_clears_attribute(self):
        model = DocumentModel(document(paragraph(text("a"), backgroundColor="#ffee00")))
        model.set_block_attribute(span((0,), 0, 0), "backgroundColor", None)
        self.assertEqual(model.root.children[0].attributes, {})

    def test_invalid_colour_is_rejected(self):
        model = DocumentModel(document(paragraph(text("a"))))
        with self.assertRaises(StructuralRejection):
            model.set_block_attribute(span((0,), 0, 1), "backgroundColor", "red;position:fixed")

    def test_code_block_skips_alignment(self):
        model = DocumentModel(document(code_block("x")))
        with self.assertRaises(StructuralRejection):
            model.set_block_attribute(span((0,), 0, 1), "textAlign", "right")

    def test_kind_filter(self):
        model = DocumentModel(document(paragraph(text("a")), code_block("b")))
        model.set_block_attribute(span((0,), 0, 1, (1,)), "backgroundColor", "#111111", [NodeKind.CODE_BLOCK])
        self.assertEqual(model.root.children[0].attributes, {})
        self.assertEqual(model.root.children[1].attributes, {"backgroundColor": "#111111"})

    def test_text_colour(self):
        model = DocumentModel(document(paragraph(text("abc"))))
        model.set_text_attribute(span((0,), 1, 2), "color", "RGB(1,2,3)")
        self.assertEqual(
            model.root.children[0].children,
            [text("a"), text("b", color="rgb(1, 2, 3)"), text("c")],
        )

    def test_background_survives_unrelated_mark(self):
        model = DocumentModel(document(paragraph(text("first"), backgroundColor="yellow"), paragraph(text("second"))))
        model.apply_mark(span((1,), 0, 6), Mark.BOLD)
        self.assertEqual(model.root.children[0].attributes, {"backgroundColor": "yellow"})


class BlockKindTest(unittest.TestCase):
    def test_paragraph_to_heading_keeps_alignment(self):
        model = DocumentModel(document(paragraph(text("a"), textAlign="right")))
        model.set_block_kind(span((0,), 0, 0), NodeKind.HEADING, {"level": 3})
        self.assertEqual(model.root.children[0], heading(3, text("a"), textAlign="right"))

    def test_code_block_flattens_content(self):
        model = DocumentModel(document(paragraph(text("a", [Mark.BOLD]), hard_break(), link("https://x.test", text("b")))))
        model.set_block_kind(span((0,), 0, 0), NodeKind.CODE_BLOCK)
        self.assertEqual(model.root.children[0], code_block("a\nb"))

    def test_heading_needs_level(self):
        model = DocumentModel()
        with self.assertRaises(StructuralRejection):
            model.set_block_kind(span((0,), 0, 0), NodeKind.HEADING)


class WrapLiftTest(unittest.TestCase):
    def test_wrap_in_blockquote(self):
        model = DocumentModel(document(paragraph(text("a")), paragraph(text("b")), paragraph(text("c"))))
        model.wrap_in(span((0,), 0, 0, (1,)), NodeKind.BLOCKQUOTE)
        self.assertEqual(
            model.root,
            document(blockquote(paragraph(text("a")), paragraph(text("b"))), paragraph(text("c"))),
        )

    def test_wrap_in_list_gives_one_item_per_block(self):
        model = DocumentModel(document(paragraph(text("a")), paragraph(text("b"))))
        model.wrap_in(span((0,), 0, 0, (1,)), NodeKind.BULLET_LIST)
        self.assertEqual(
            model.root,
            document(bullet_list(list_item(paragraph(text("a"))), list_item(paragraph(text("b"))))),
        )

    def test_wrap_in_illegal_kind_is_rejected(self):
        model = DocumentModel(document(paragraph(text("a"))))
        with self.assertRaises(StructuralRejection):
            model.wrap_in(span((0,), 0, 0), NodeKind.LIST_ITEM)
        self.assertEqual(model.root, document(paragraph(text("a"))))

    def test_lift_blockquote(self):
        model = DocumentModel(document(blockquote(paragraph(text("a")), paragraph(text("b")))))
        model.lift(span((0, 1), 0, 0), [NodeKind.BLOCKQUOTE])
        self.assertEqual(model.root, document(paragraph(text("a")), paragraph(text("b"))))

    def test_lift_without_container_is_rejected(self):
        model = DocumentModel(document(paragraph(text("a"))))
        with self.assertRaises(StructuralRejection):
            model.lift(span((0,), 0, 0), [NodeKind.BLOCKQUOTE])

    def test_lift_list_items_splits_the_list(self):
        items = [list_item(paragraph(text(value))) for value in "abc"]
        model = DocumentModel(document(ordered_list(*items, start=4)))
        model.lift_list_items(span((0, 1, 0), 0, 0))
        self.assertEqual(
            model.root,
            document(
                ordered_list(list_item(paragraph(text("a"))), start=4),
                paragraph(text("b")),
                ordered_list(list_item(paragraph(text("c")))),
            ),
        )

    def test_change_list_kind(self):
        model = DocumentModel(document(ordered_list(list_item(paragraph(text("a"))), start=2)))
        model.change_list_kind(span((0, 0, 0), 0, 0), NodeKind.BULLET_LIST)
        self.assertEqual(model.root, document(bullet_list(list_item(paragraph(text("a"))))))


class EditingTest(unittest.TestCase):
    def test_insert_text_inside_link_extends_it(self):
        model = DocumentModel(document(paragraph(link("https://x.test", text("ac")))))
        caret = model.insert_text(Selection.caret(Position((0,), 1)), "b")
        self.assertEqual(caret, Position((0,), 2))
        self.assertEqual(model.root.children[0].children, [link("https://x.test", text("abc"))])

    def test_insert_text_replaces_range(self):
        model = DocumentModel(document(paragraph(text("hello"))))
        caret = model.insert_text(span((0,), 1, 4), "ipp", [Mark.BOLD])
        self.assertEqual(caret, Position((0,), 4))
        self.assertEqual(model.root.children[0].children, [text("h"), text("ipp", [Mark.BOLD]), text("o")])

    def test_insert_text_turns_newlines_into_hard_breaks(self):
        model = DocumentModel(document(paragraph(text("ab"))))
        caret = model.insert_text(Selection.caret(Position((0,), 1)), "x\ny", [Mark.ITALIC])
        self.assertEqual(caret, Position((0,), 4))
        self.assertEqual(
            model.root.children[0].children,
            [text("a"), text("x", [Mark.ITALIC]), hard_break(), text("y", [Mark.ITALIC]), text("b")],
        )

    def test_newline_inside_link_splits_it(self):
        model = DocumentModel(document(paragraph(link("https://x.test", text("ac")))))
        model.insert_text(Selection.caret(Position((0,), 1)), "\n")
        self.assertEqual(
            model.root.children[0].children,
            [link("https://x.test", text("a")), hard_break(), link("https://x.test", text("c"))],
        )

    def test_code_block_keeps_typed_newlines(self):
        model = DocumentModel(document(code_block("ab")))
        caret = model.insert_text(Selection.caret(Position((0,), 1)), "x\ny")
        self.assertEqual(caret, Position((0,), 4))
        self.assertEqual(model.root, document(code_block("ax\nyb")))

    def test_insert_empty_text_is_rejected(self):
        model = DocumentModel()
        with self.assertRaises(StructuralRejection):
            model.insert_text(span((0,), 0, 0), "\x00")

    def test_insert_image_into_code_block_is_rejected(self):
        model = DocumentModel(document(code_block("x")))
        with self.assertRaises(StructuralRejection):
            model.insert_inline(Position((0,), 1), image("https://x.test/a.png"))

    def test_delete_across_blocks_joins_them(self):
        model = DocumentModel(document(paragraph(text("abc")), horizontal_rule(), paragraph(text("def"))))
        caret = model.delete_range(span((0,), 2, 1, (2,)))
        self.assertEqual(caret, Position((0,), 2))
        self.assertEqual(model.root, document(paragraph(text("abef"))))

    def test_delete_prunes_emptied_containers(self):
        model = DocumentModel(document(paragraph(text("ab")), blockquote(paragraph(text("cd")))))
        model.delete_range(span((0,), 1, 2, (1, 0)))
        self.assertEqual(model.root, document(paragraph(text("a"))))

    def test_split_paragraph(self):
        model = DocumentModel(document(paragraph(text("abcd"), textAlign="center")))
        caret = model.split_block(Position((0,), 2))
        self.assertEqual(caret, Position((1,), 0))
        self.assertEqual(
            model.root,
            document(paragraph(text("ab"), textAlign="center"), paragraph(text("cd"), textAlign="center")),
        )

    def test_split_at_end_of_heading_gives_paragraph(self):
        model = DocumentModel(document(heading(1, text("Title"))))
        model.split_block(Position((0,), 5))
        self.assertEqual(model.root, document(heading(1, text("Title")), paragraph()))

    def test_split_in_code_block_inserts_newline(self):
        model = DocumentModel(document(code_block("ab")))
        caret = model.split_block(Position((0,), 1))
        self.assertEqual(caret, Position((0,), 2))
        self.assertEqual(model.root, document(code_block("a\nb")))

    def test_split_list_item(self):
        model = DocumentModel(document(bullet_list(list_item(paragraph(text("ab"))))))
        caret = model.split_block(Position((0, 0, 0), 1))
        self.assertEqual(caret, Position((0, 1, 0), 0))
        self.assertEqual(
            model.root,
            document(bullet_list(list_item(paragraph(text("a"))), list_item(paragraph(text("b"))))),
        )

    def test_enter_in_trailing_empty_item_leaves_list(self):
        model = DocumentModel(document(bullet_list(list_item(paragraph(text("a"))), list_item(paragraph()))))
        caret = model.split_block(Position((0, 1, 0), 0))
        self.assertEqual(caret, Position((1,), 0))
        self.assertEqual(model.root, document(bullet_list(list_item(paragraph(text("a")))), paragraph()))

    def test_horizontal_rule_splits_block(self):
        model = DocumentModel(document(paragraph(text("abcd"))))
        caret = model.insert_horizontal_rule(Position((0,), 2))
        self.assertEqual(caret, Position((2,), 0))
        self.assertEqual(
            model.root,
            document(paragraph(text("ab")), horizontal_rule(), paragraph(text("cd"))),
        )

    def test_join_backward_removes_rule_first(self):
        model = DocumentModel(document(paragraph(text("a")), horizontal_rule(), paragraph(text("b"))))
        caret = model.join_backward(Position((2,), 0))
        self.assertEqual(caret, Position((1,), 0))
        self.assertEqual(model.root, document(paragraph(text("a")), paragraph(text("b"))))
        caret = model.join_backward(caret)
        self.assertEqual(caret, Position((0,), 1))
        self.assertEqual(model.root, document(paragraph(text("ab"))))

    def test_set_link_and_unlink(self):
        model = DocumentModel(document(paragraph(text("click here"))))
        model.set_link(span((0,), 6, 10), "https://example.com")
        self.assertEqual(
            model.root.children[0].children,
            [text("click "), link("https://example.com", text("here"))],
        )
        model.set_link(span((0,), 0, 10), None)
        self.assertEqual(model.root.children[0].children, [text("click here")])


class LookupTest(unittest.TestCase):
    def setUp(self):
        self.model = DocumentModel(
            document(
                paragraph(text("a", [Mark.BOLD]), text("b")),
                bullet_list(list_item(paragraph(text("c")))),
            )
        )

    def test_marks_at_caret_follow_text_before_it(self):
        marks, _color = self.model.marks_at(Selection.caret(Position((0,), 1)))
        self.assertEqual(marks, frozenset({Mark.BOLD}))
        marks, _color = self.model.marks_at(Selection.caret(Position((0,), 2)))
        self.assertEqual(marks, frozenset())

    def test_enclosing_list(self):
        found = self.model.enclosing(span((1, 0, 0), 0, 1), [NodeKind.BULLET_LIST])
        self.assertIsNotNone(found)
        self.assertIsNone(self.model.enclosing(span((0,), 0, 1), [NodeKind.BULLET_LIST]))

    def test_index_round_trip(self):
        index = self.model.index_of(Position((1, 0, 0), 1))
        self.assertEqual(index, (1, 1))
        self.assertEqual(self.model.position_at(*index), Position((1, 0, 0), 1))

    def test_clamp(self):
        self.assertEqual(self.model.clamp(Position((0,), 9)), Position((0,), 2))


if __name__ == "__main__":
    unittest.main()
