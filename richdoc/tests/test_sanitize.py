"""Test cases for colour and URL validation."""

import unittest

from richdoc.utils.colors import is_color, normalize_color
from richdoc.utils.urls import clean_url


class ColorTest(unittest.TestCase):
    def test_accepted_forms(self):
        cases = [
            ("#FFF", "#fff"),
            (" #fef3c7 ", "#fef3c7"),
            ("#11223344", "#11223344"),
            ("rgb(255,0, 0)", "rgb(255, 0, 0)"),
            ("RGBA(0, 0, 0, 0.5)", "rgba(0, 0, 0, 0.5)"),
            ("hsl(120, 50%, 50%)", "hsl(120, 50%, 50%)"),
            ("Red", "red"),
        ]
        for value, expected in cases:
            self.assertEqual(normalize_color(value), expected, value)

    def test_rejected_forms(self):
        for value in (None, "", "#ggg", "#12345", "url(x)", "red; position: fixed", 'red" onclick="x', 42):
            self.assertIsNone(normalize_color(value), repr(value))
        self.assertFalse(is_color("expression(alert(1))"))


class UrlTest(unittest.TestCase):
    def test_link_schemes(self):
        self.assertEqual(clean_url("https://example.com/a?b=1"), "https://example.com/a?b=1")
        self.assertEqual(clean_url("mailto:team@example.com"), "mailto:team@example.com")
        self.assertEqual(clean_url("/relative/path"), "/relative/path")
        self.assertIsNone(clean_url("javascript:alert(1)"))
        self.assertIsNone(clean_url("JaVaScRiPt:alert(1)"))
        self.assertIsNone(clean_url("ftp://example.com"))

    def test_wrapped_urls_are_joined(self):
        self.assertEqual(clean_url(" https://example.com/\n  long "), "https://example.com/long")
        self.assertIsNone(clean_url("java\nscript:alert(1)"))

    def test_quotes_and_brackets_are_refused(self):
        self.assertIsNone(clean_url('https://e.test/"onmouseover="x'))
        self.assertIsNone(clean_url("https://e.test/<script>"))

    def test_image_sources(self):
        self.assertIsNotNone(clean_url("data:image/png;base64,AAAA", image=True))
        self.assertIsNone(clean_url("data:text/html,hi", image=True))
        self.assertIsNone(clean_url("data:image/png;base64,AAAA"))
        self.assertIsNone(clean_url("mailto:a@b.c", image=True))

    def test_non_strings(self):
        self.assertIsNone(clean_url(None))
        self.assertIsNone(clean_url("   "))


if __name__ == "__main__":
    unittest.main()
