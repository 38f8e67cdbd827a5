"""Wiring between listing pages, the editor and the external stores."""
from __future__ import annotations

import posixpath
import uuid
from typing import Optional

from richdoc.config import settings
from richdoc.editor.autosave import AsyncioScheduler, AutosaveDebouncer, ErrorCallback, Scheduler
from richdoc.editor.controller import EditorController
from richdoc.editor.session import EditorSession
from richdoc.errors import PersistenceFailure, SessionUnavailable
from richdoc.parser.markup_parser import MarkupParser
from richdoc.renderer.html_renderer import render_fragment
from richdoc.renderer.markup_serializer import serialize
from richdoc.store.contracts import ApplicationRecord, AuthProvider, BlobStore, ContentStore
from richdoc.utils.logger import get_logger

LOGGER = get_logger(__name__)


def upload_path(filename: str) -> str:
    """Collision-free storage path keeping the uploaded file's extension."""
    _root, extension = posixpath.splitext(posixpath.basename(filename))
    return f"{uuid.uuid4().hex}{extension.lower()}"


class ListingEditor:
    """Admin-side editing surface for one listing's long description.

    ``open`` mounts an editor session only when the auth provider reports a
    session; every accepted edit is autosaved through the debouncer and
    ``close`` flushes the last edit before unmounting.
    """

    def __init__(
        self,
        store: ContentStore,
        auth: AuthProvider,
        blobs: Optional[BlobStore] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        delay: Optional[float] = None,
        on_error: Optional[ErrorCallback] = None,
        content_field: Optional[str] = None,
    ) -> None:
        self._store = store
        self._auth = auth
        self._blobs = blobs
        self._scheduler = scheduler or AsyncioScheduler()
        self._delay = delay
        self._on_error = on_error
        self.content_field = content_field or settings.content_field
        self.record_id: Optional[str] = None
        self.session: Optional[EditorSession] = None
        self.controller: Optional[EditorController] = None
        self.autosave: Optional[AutosaveDebouncer] = None

    @property
    def is_open(self) -> bool:
        return self.session is not None and self.session.mounted

    async def open(self, record_id: str) -> EditorController:
        if self.is_open:
            raise SessionUnavailable("an editor session is already mounted")
        if not await self._auth.has_session():
            raise SessionUnavailable("editing requires a signed-in session")
        row = await self._store.read(record_id)
        if row is None:
            raise SessionUnavailable(f"listing {record_id} not found")

        content = row.get(self.content_field) or ""
        session = EditorSession(content if isinstance(content, str) else "")
        session.focus()

        async def save(markup: str) -> None:
            await self._store.update(record_id, {self.content_field: markup})

        autosave = AutosaveDebouncer(
            save, self._scheduler, self._delay, on_saved=self._saved, on_error=self._failed
        )
        self.record_id = record_id
        self.session = session
        self.autosave = autosave
        self.controller = EditorController(session, on_change=autosave.submit)
        LOGGER.info("Opened editor for listing %s", record_id)
        return self.controller

    async def insert_uploaded_image(self, filename: str, data: bytes, alt: Optional[str] = None) -> bool:
        """Upload an image file and embed its public URL at the cursor."""
        controller = self._require_controller()
        if self._blobs is None:
            raise SessionUnavailable("no blob store configured for uploads")
        path = upload_path(filename)
        await self._blobs.upload(path, data)
        url = self._blobs.get_public_url(path)
        LOGGER.debug("Uploaded %s to %s", filename, path)
        return controller.insert_image(url, alt)

    async def close(self) -> None:
        """Persist the newest content and tear the session down."""
        if self.session is None:
            return
        try:
            if self.autosave is not None:
                await self.autosave.flush()
        finally:
            self.session.unmount()
            LOGGER.info("Closed editor for listing %s", self.record_id)

    def _require_controller(self) -> EditorController:
        if self.controller is None or not self.is_open:
            raise SessionUnavailable("no editor session is mounted")
        return self.controller

    def _saved(self, content: str) -> None:
        controller = self.controller
        if controller is not None and controller.serialize() == content:
            controller.mark_clean()

    def _failed(self, error: PersistenceFailure) -> None:
        if error.record_id is None:
            error.record_id = self.record_id
        if self._on_error is not None:
            self._on_error(error)


async def create_listing(store: ContentStore, record: ApplicationRecord) -> str:
    """Store a new listing with its description in canonical form."""
    record.long_description = serialize(MarkupParser().parse(record.long_description))
    record_id = await store.create(record.to_dict())
    LOGGER.info("Created listing %s (%s)", record_id, record.name)
    return record_id


async def render_listing_description(
    store: ContentStore, record_id: str, content_field: Optional[str] = None
) -> Optional[str]:
    """Read-only HTML of a listing's description, ``None`` for unknown listings."""
    row = await store.read(record_id)
    if row is None:
        return None
    content = row.get(content_field or settings.content_field)
    return render_fragment(MarkupParser().parse(content if isinstance(content, str) else ""))
