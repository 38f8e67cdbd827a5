"""Debounced persistence of serialized documents."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Protocol, Tuple

from richdoc.config import settings
from richdoc.errors import PersistenceFailure
from richdoc.utils.logger import get_logger

LOGGER = get_logger(__name__)

SaveFunction = Callable[[str], Awaitable[None]]
SavedCallback = Callable[[str], None]
ErrorCallback = Callable[[PersistenceFailure], None]


class ScheduledTask(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay; tests substitute a manual clock."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        ...


class AsyncioScheduler:
    """``Scheduler`` backed by the running event loop's timers."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class AutosaveDebouncer:
    """Coalesces rapid document changes into a single delayed save.

    Each ``submit`` replaces the pending content and restarts the timer.
    When it fires, the save is chained behind any save still in flight, so
    writes reach the store in submission order and a save superseded before
    it starts is skipped. Only the outcome of the newest content is reported.
    """

    def __init__(
        self,
        save: SaveFunction,
        scheduler: Scheduler,
        delay: Optional[float] = None,
        *,
        on_saved: Optional[SavedCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._save = save
        self._scheduler = scheduler
        self._delay = settings.autosave_delay_s if delay is None else delay
        self.on_saved = on_saved
        self.on_error = on_error
        self._timer: Optional[ScheduledTask] = None
        self._pending: Optional[Tuple[int, str]] = None
        self._unsaved: Optional[Tuple[int, str]] = None
        self._chain: Optional[asyncio.Future] = None
        self._sequence = 0
        self._fired = 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def has_unsaved(self) -> bool:
        return self._pending is not None or self._unsaved is not None

    def submit(self, content: str) -> None:
        """Queue ``content`` for saving after the debounce delay."""
        self._sequence += 1
        self._pending = (self._sequence, content)
        self._unsaved = None
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._scheduler.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        """Drop the pending save; a save already in flight still completes."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None

    async def flush(self) -> None:
        """Save pending (or previously failed) content now and wait for the store."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is None and self._unsaved is not None:
            LOGGER.info("Retrying failed save")
            self._pending, self._unsaved = self._unsaved, None
        self._fire()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        while self._chain is not None and not self._chain.done():
            await self._chain

    def _fire(self) -> None:
        self._timer = None
        if self._pending is None:
            return
        sequence, content = self._pending
        self._pending = None
        self._fired = sequence
        self._chain = asyncio.ensure_future(self._save_after(self._chain, sequence, content))

    async def _save_after(self, previous: Optional[asyncio.Future], sequence: int, content: str) -> None:
        if previous is not None and not previous.done():
            await previous
        if sequence < self._fired:
            LOGGER.debug("Skipping save %s superseded by %s", sequence, self._fired)
            return

        try:
            await self._save(content)
        except PersistenceFailure as exc:
            self._failed(sequence, content, exc)
            return
        except Exception as exc:
            LOGGER.exception("Unexpected error while saving document")
            self._failed(sequence, content, PersistenceFailure(str(exc) or type(exc).__name__))
            return

        if sequence != self._sequence:
            LOGGER.debug("Save %s completed but newer content exists", sequence)
            return
        LOGGER.debug("Saved document revision %s", sequence)
        if self.on_saved is not None:
            self.on_saved(content)

    def _failed(self, sequence: int, content: str, exc: PersistenceFailure) -> None:
        if sequence != self._sequence:
            LOGGER.debug("Ignoring failure of stale save %s: %s", sequence, exc)
            return
        LOGGER.warning("Saving document failed: %s", exc)
        self._unsaved = (sequence, content)
        if self.on_error is not None:
            self.on_error(exc)
