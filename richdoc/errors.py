"""Error taxonomy shared by the model, parser, editor and host layers."""
from __future__ import annotations

from typing import Optional


class RichDocError(Exception):
    """Base class for every error raised by richdoc."""


class StructuralRejection(RichDocError):
    """An operation would violate a document invariant or references a missing node.

    The document is left unchanged whenever this is raised.
    """


class MalformedInput(RichDocError):
    """Serialized markup could not be read as-is (strict parsing only)."""


class PersistenceFailure(RichDocError):
    """A content or blob store rejected a write."""

    def __init__(self, message: str, *, record_id: Optional[str] = None, retryable: bool = True) -> None:
        super().__init__(message)
        self.record_id = record_id
        self.retryable = retryable


class SessionUnavailable(RichDocError):
    """The editing surface cannot be mounted (no auth session or unknown record)."""
