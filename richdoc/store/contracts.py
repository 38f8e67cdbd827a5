"""Contracts of the external collaborators the editor relies on."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable


@dataclass
class ApplicationRecord:
    """A storefront listing.

    Covers the fields of both listing pages (``publisher`` only appears on
    one of them). The rich description lives in ``long_description`` and is
    treated as opaque markup by everything outside ``richdoc``.
    """

    name: str
    description: str = ""
    long_description: str = ""
    version: str = ""
    size: str = ""
    image_url: str = ""
    download_url: str = ""
    screenshots: List[str] = field(default_factory=list)
    featured: bool = False
    editors_choice: bool = False
    category: str = ""
    publisher: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        if payload["id"] is None:
            del payload["id"]
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ApplicationRecord":
        """Build a record from a store row, ignoring columns this model does not know."""
        known = {item.name for item in fields(cls)}
        values = {key: value for key, value in payload.items() if key in known}
        if values.get("id") is not None:
            values["id"] = str(values["id"])
        values["screenshots"] = list(values.get("screenshots") or [])
        return cls(**values)


@runtime_checkable
class ContentStore(Protocol):
    """Record persistence (create/read/update of application rows)."""

    async def create(self, record: Mapping[str, Any]) -> str:
        """Insert a record and return its id."""
        ...

    async def read(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Return the record, or ``None`` when it does not exist."""
        ...

    async def update(self, record_id: str, partial: Mapping[str, Any]) -> None:
        """Merge ``partial`` into the record; raises ``PersistenceFailure``."""
        ...


@runtime_checkable
class BlobStore(Protocol):
    """File storage for uploaded images."""

    async def upload(self, path: str, data: bytes) -> None:
        ...

    def get_public_url(self, path: str) -> str:
        ...


@runtime_checkable
class AuthProvider(Protocol):
    async def has_session(self) -> bool:
        ...
