"""
Text normalization utilities for rich document content.

Removes characters that must never reach stored markup (control
characters, byte order marks), unifies line endings and optionally
collapses whitespace for plain-text excerpts.
"""
from __future__ import annotations

import re
from typing import Optional


class TextNormalizer:
    """Normalizes text typed into the editor or read from stored markup."""

    # Characters that are dropped outright
    STRIPPED_CHARS = {
        '\ufeff': '',       # Byte order mark
        '\ufffe': '',       # Reversed byte order mark
    }

    # Regex for collapsing multiple whitespace characters
    WHITESPACE_PATTERN = re.compile(r'\s+')

    # Control characters except tab and newline
    CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]')

    def __init__(self, preserve_whitespace: bool = True):
        """Initialize text normalizer.

        Args:
            preserve_whitespace: If True, keep whitespace exactly as typed.
                                If False, collapse whitespace runs to single spaces
                                and trim the result.
        """
        self.preserve_whitespace = preserve_whitespace

    def normalize_text(self, text: Optional[str]) -> str:
        """Normalize a single piece of text."""
        if not text:
            return ""

        normalized = text.replace('\r\n', '\n').replace('\r', '\n')
        normalized = self._strip_chars(normalized)
        normalized = self._remove_control_chars(normalized)

        if not self.preserve_whitespace:
            normalized = self._normalize_whitespace(normalized)

        return normalized

    def _strip_chars(self, text: str) -> str:
        for original, replacement in self.STRIPPED_CHARS.items():
            text = text.replace(original, replacement)
        return text

    def _remove_control_chars(self, text: str) -> str:
        """Remove control characters that shouldn't appear in document text."""
        return self.CONTROL_CHARS_PATTERN.sub('', text)

    def _normalize_whitespace(self, text: str) -> str:
        """Normalize whitespace to single spaces and trim."""
        return self.WHITESPACE_PATTERN.sub(' ', text).strip()
