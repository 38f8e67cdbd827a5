"""Test cases for document node kinds, schema and inline normalization."""

import unittest

from richdoc.model.elements import (
    DocumentNode,
    Mark,
    NodeKind,
    blockquote,
    bullet_list,
    code_block,
    document,
    empty_document,
    hard_break,
    heading,
    image,
    is_valid,
    iter_violations,
    link,
    list_item,
    normalize_inline,
    paragraph,
    split_top_level,
    text,
)


class SchemaTest(unittest.TestCase):
    """Content rules between parents and children."""

    def test_empty_document_is_one_empty_paragraph(self):
        root = empty_document()
        self.assertEqual(root.kind, NodeKind.DOC)
        self.assertEqual(root.children, [paragraph()])
        self.assertTrue(is_valid(root))

    def test_list_item_outside_list_is_a_violation(self):
        root = document(list_item(paragraph(text("stray"))))
        problems = list(iter_violations(root))
        self.assertEqual(len(problems), 1)
        self.assertIn("cannot contain listItem", problems[0])

    def test_code_block_text_must_be_unmarked(self):
        block = code_block("x = 1")
        block.children[0].marks = frozenset({Mark.BOLD})
        self.assertFalse(is_valid(document(block)))

    def test_unknown_attribute_is_a_violation(self):
        root = document(paragraph(text("a"), level=2))
        self.assertFalse(is_valid(root))
        self.assertTrue(is_valid(document(heading(2, text("a"), textAlign="center"))))

    def test_nested_structures_are_valid(self):
        root = document(
            bullet_list(list_item(paragraph(text("one")), bullet_list(list_item()))),
            blockquote(paragraph(text("quoted"), hard_break(), image("https://example.com/a.png"))),
        )
        self.assertTrue(is_valid(root))


class InlineLengthTest(unittest.TestCase):
    def test_breaks_and_images_count_as_one(self):
        block = paragraph(text("ab"), hard_break(), image("/a.png"), link("https://x.test", text("cd")))
        self.assertEqual(block.content_length, 6)

    def test_plain_text(self):
        root = document(paragraph(text("a"), hard_break(), text("b")), paragraph(text("c")))
        self.assertEqual(root.plain_text(), "a\nb\nc")


class NormalizeInlineTest(unittest.TestCase):
    def test_merges_same_format_text(self):
        merged = normalize_inline([text("a", [Mark.BOLD]), text("b", [Mark.BOLD]), text("c")])
        self.assertEqual(merged, [text("ab", [Mark.BOLD]), text("c")])

    def test_drops_empty_text_and_links(self):
        merged = normalize_inline([text(""), link("https://x.test"), text("a")])
        self.assertEqual(merged, [text("a")])

    def test_merges_adjacent_links_with_same_target(self):
        merged = normalize_inline([link("https://x.test", text("a")), link("https://x.test", text("b"))])
        self.assertEqual(merged, [link("https://x.test", text("ab"))])

    def test_keeps_different_colours_apart(self):
        merged = normalize_inline([text("a", color="red"), text("b", color="blue")])
        self.assertEqual(len(merged), 2)


class SplitTest(unittest.TestCase):
    def test_split_inside_text(self):
        children = [text("hello")]
        index = split_top_level(children, 2)
        self.assertEqual(index, 1)
        self.assertEqual([child.text for child in children], ["he", "llo"])

    def test_split_inside_link_cuts_the_link(self):
        children = [text("a"), link("https://x.test", text("bcd"))]
        index = split_top_level(children, 2)
        self.assertEqual(index, 2)
        self.assertEqual(children[1], link("https://x.test", text("b")))
        self.assertEqual(children[2], link("https://x.test", text("cd")))

    def test_split_at_boundary_is_noop(self):
        children = [text("ab"), hard_break()]
        self.assertEqual(split_top_level(children, 2), 1)
        self.assertEqual(split_top_level(children, 3), 2)
        self.assertEqual(len(children), 2)


class NodeTest(unittest.TestCase):
    def test_clone_is_deep(self):
        original = paragraph(text("a"))
        copy = original.clone()
        copy.children[0].text = "b"
        self.assertEqual(original.children[0].text, "a")

    def test_text_factory_skips_empty_colour(self):
        self.assertEqual(text("a").attributes, {})
        self.assertEqual(text("a", color="red").attributes, {"color": "red"})

    def test_is_block_and_inline(self):
        self.assertTrue(paragraph().is_block)
        self.assertTrue(text("x").is_inline)
        self.assertFalse(DocumentNode(NodeKind.DOC).is_block)


if __name__ == "__main__":
    unittest.main()
