"""Change scheduler — decides when a rewrite runs relative to change events.

Two independent delay policies, both driven by asyncio timers on the
running event loop:
  - Document settle delay: every "document modified" event schedules its
    own one-shot rewrite of that document ``settle_delay`` seconds later.
    Earlier fires for the same document are not cancelled.
  - Buffer debounce: every live edit cancels the buffer's pending rewrite
    and schedules a new one ``quiet_delay`` seconds later, so only the last
    edit before a pause in typing triggers a rewrite. Buffers are tracked
    by buffer_id and debounce independently of each other.

Fire handlers re-check that the document / buffer is still available and
do nothing otherwise. Fired handles and finished tasks are dropped from
tracking as soon as they complete.

Key class: ChangeScheduler.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from .settings import DEFAULT_QUIET_DELAY, DEFAULT_SETTLE_DELAY

if TYPE_CHECKING:
    from .editor import EditorBuffer
    from .vault.store import Document

logger = logging.getLogger(__name__)


class ChangeScheduler:
    """Owns every pending rewrite timer for a tagger instance."""

    def __init__(
        self,
        *,
        process_document: Callable[[Document], Awaitable[object]],
        process_buffer: Callable[[EditorBuffer], object],
        document_available: Callable[[Document], bool],
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        quiet_delay: float = DEFAULT_QUIET_DELAY,
    ) -> None:
        self._process_document = process_document
        self._process_buffer = process_buffer
        self._document_available = document_available
        self.settle_delay = settle_delay
        self.quiet_delay = quiet_delay

        self._document_timers: set[asyncio.TimerHandle] = set()
        self._document_tasks: set[asyncio.Task[None]] = set()
        self._buffer_timers: dict[str, asyncio.TimerHandle] = {}  # buffer_id → handle
        self._closed = False

    # --- Documents ---

    def schedule_document(self, doc: Document) -> None:
        """Rewrite ``doc`` once ``settle_delay`` has passed."""
        if self._closed:
            return
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def _fire() -> None:
            self._document_timers.discard(handle)
            self._fire_document(doc)

        handle = loop.call_later(self.settle_delay, _fire)
        self._document_timers.add(handle)
        logger.debug("Scheduled rewrite of %s in %.2fs", doc, self.settle_delay)

    def _fire_document(self, doc: Document) -> None:
        if not self._document_available(doc):
            logger.debug("Document %s is gone, skipping scheduled rewrite", doc)
            return
        task = asyncio.get_running_loop().create_task(self._run_document(doc))
        self._document_tasks.add(task)
        task.add_done_callback(self._document_tasks.discard)

    async def _run_document(self, doc: Document) -> None:
        try:
            await self._process_document(doc)
        except Exception:
            logger.exception("Scheduled rewrite of %s failed", doc)

    # --- Live buffers ---

    def schedule_buffer(self, buffer: EditorBuffer) -> None:
        """(Re)start the quiet period for ``buffer``; the last call wins."""
        if self._closed:
            return
        key = buffer.buffer_id
        previous = self._buffer_timers.pop(key, None)
        if previous is not None:
            previous.cancel()
        loop = asyncio.get_running_loop()
        self._buffer_timers[key] = loop.call_later(
            self.quiet_delay, self._fire_buffer, key, buffer
        )

    def cancel_buffer(self, buffer_id: str) -> bool:
        """Cancel the pending rewrite of a buffer. Returns True if one existed."""
        handle = self._buffer_timers.pop(buffer_id, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def _fire_buffer(self, key: str, buffer: EditorBuffer) -> None:
        self._buffer_timers.pop(key, None)
        if not buffer.is_open():
            logger.debug("Buffer %s was closed, skipping rewrite", key)
            return
        try:
            self._process_buffer(buffer)
        except Exception:
            logger.exception("Rewrite of buffer %s failed", key)

    # --- Lifecycle ---

    @property
    def pending_documents(self) -> int:
        """Document rewrites waiting on their timer or still running."""
        return len(self._document_timers) + len(self._document_tasks)

    @property
    def pending_buffers(self) -> int:
        return len(self._buffer_timers)

    async def close(self) -> None:
        """Cancel all pending timers and wait for running rewrites to finish."""
        self._closed = True
        for handle in self._document_timers:
            handle.cancel()
        self._document_timers.clear()
        for handle in self._buffer_timers.values():
            handle.cancel()
        self._buffer_timers.clear()

        if self._document_tasks:
            await asyncio.gather(*self._document_tasks, return_exceptions=True)
        logger.debug("ChangeScheduler closed")
