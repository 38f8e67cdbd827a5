"""Helpers to persist intermediate representations for debugging."""
from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

from richdoc.model.elements import DocumentNode


class DebugDumper:
    """Writes intermediate artifacts onto disk for inspection."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def dump(self, root: DocumentNode, name: str = "document_tree.json") -> Path:
        """Persist the document tree as JSON for offline analysis."""
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / name
        target.write_text(json.dumps(self._serialize(root), indent=2, ensure_ascii=False), encoding="utf-8")
        return target

    def _serialize(self, value: Any) -> Any:
        if isinstance(value, DocumentNode):
            payload: dict = {"kind": value.kind.value}
            if value.attributes:
                payload["attributes"] = self._serialize(value.attributes)
            if value.kind.value == "text":
                payload["text"] = value.text
                if value.marks:
                    payload["marks"] = sorted(mark.value for mark in value.marks)
            if value.children:
                payload["children"] = [self._serialize(child) for child in value.children]
            return payload
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return {k: self._serialize(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, frozenset, set)):
            return [self._serialize(v) for v in value]
        return value
