"""Serialized descriptions read back into the tree they came from."""

import unittest

from richdoc.editor.controller import ColorTarget, EditorController
from richdoc.editor.session import EditorSession
from richdoc.model.elements import (
    Mark,
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
from richdoc.parser.markup_parser import MarkupParser, parse
from richdoc.renderer.markup_serializer import serialize


class RoundTripTest(unittest.TestCase):
    def assertRoundTrips(self, root):
        markup = serialize(root)
        self.assertEqual(parse(markup), root, markup)
        self.assertEqual(serialize(parse(markup)), markup)

    def test_every_node_kind(self):
        self.assertRoundTrips(
            document(
                heading(1, text("Title"), textAlign="center"),
                paragraph(
                    text("plain "),
                    text("styled", [Mark.BOLD, Mark.STRIKE], color="#1f2937"),
                    hard_break(),
                    image("https://cdn.test/a.png", "A"),
                    link("https://e.test", text("go", [Mark.ITALIC])),
                    backgroundColor="#fef3c7",
                ),
                bullet_list(list_item(paragraph(text("one")), ordered_list(list_item(paragraph()), start=2))),
                blockquote(paragraph(text("quoted"))),
                code_block("def f():\n    return '<x>'", backgroundColor="#111827"),
                horizontal_rule(),
                paragraph(),
            )
        )

    def test_whitespace_around_inline_leaves(self):
        self.assertRoundTrips(document(paragraph(text("a "), hard_break(), text(" b "), image("/i.png"), text(" c"))))

    def test_strict_parser_accepts_serialized_markup(self):
        root = document(
            ordered_list(list_item(paragraph(text("x", [Mark.CODE, Mark.UNDERLINE])))),
            paragraph(link("mailto:a@b.test", text("mail"))),
        )
        self.assertEqual(MarkupParser(strict=True).parse(serialize(root)), root)

    def test_empty_document_canonicalizes(self):
        for markup in ("", "   ", "<p></p>", "<div></div>"):
            self.assertEqual(serialize(parse(markup)), "<p></p>")


class EditedDocumentRoundTripTest(unittest.TestCase):
    def test_document_built_by_commands(self):
        controller = EditorController(EditorSession(""))
        session = controller.session
        session.focus()

        controller.insert_text("Release notes")
        controller.set_heading(2)
        controller.split_block()
        controller.insert_text("fixed a crash")
        session.select(Selection(Position((1,), 6), Position((1,), 13)))
        controller.toggle_mark(Mark.BOLD)
        controller.set_color(ColorTarget.TEXT, "rgb(220, 38, 38)")
        controller.toggle_list("bulletList")
        session.caret(Position((1, 0, 0), 13))
        controller.split_block()
        controller.insert_text("faster start")

        markup = controller.serialize()
        self.assertEqual(
            markup,
            "<h2>Release notes</h2>"
            '<ul><li><p>fixed <strong><span style="color: rgb(220, 38, 38)">a crash</span></strong></p></li>'
            "<li><p>faster start</p></li></ul>",
        )
        self.assertEqual(serialize(parse(markup)), markup)
        self.assertEqual(parse(markup), controller.document)


if __name__ == "__main__":
    unittest.main()
