"""AutoTagService — one tagger instance bound to one vault.

Owns the tag registry, the change scheduler and (optionally) the vault
watcher, and exposes the host-facing entry points:
  - refresh_tags(): "tag metadata changed"
  - on_document_modified() / on_document_removed(): vault file events
  - on_editor_change(): live buffer edits (debounced)
  - scan_all(): manual, unscheduled rewrite of every note

Per-note failures are logged and counted; they never abort a scan and
never propagate out of the event handlers.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass

from .editor import EditorBuffer
from .registry import TagRegistry
from .rewrite import rewrite_note
from .scheduler import ChangeScheduler
from .settings import TaggerConfig
from .vault.store import Document, NoteStore
from .vault.watcher import VaultWatcher

logger = logging.getLogger(__name__)

# Per-document outcomes
TAGGED = "tagged"
UNCHANGED = "unchanged"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class ScanReport:
    """Counters for one scan_all() run."""

    scanned: int = 0
    tagged: int = 0
    failed: int = 0
    skipped: int = 0
    duration_s: float = 0.0

    def count(self, outcome: str) -> None:
        self.scanned += 1
        if outcome == TAGGED:
            self.tagged += 1
        elif outcome == FAILED:
            self.failed += 1
        elif outcome == SKIPPED:
            self.skipped += 1


class AutoTagService:
    """Keeps plain words in a vault's notes in sync with the vault's tags."""

    def __init__(self, config: TaggerConfig, store: NoteStore | None = None) -> None:
        self.config = config
        self.store = store if store is not None else NoteStore(config)
        self.registry = TagRegistry(self.store.iter_note_tags, sentinel=config.sentinel)
        self.scheduler = ChangeScheduler(
            process_document=self.process_document,
            process_buffer=self.convert_buffer,
            document_available=self._document_available,
            settle_delay=config.settle_delay,
            quiet_delay=config.quiet_delay,
        )
        self._watcher: VaultWatcher | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._running = False

    # --- Lifecycle ---

    async def start(self, *, watch: bool = False) -> None:
        """Load tags, optionally scan every note, optionally start watching."""
        logger.info("AutoTagService starting for %s", self.config.vault_dir)
        self.refresh_tags()
        if self.config.scan_on_start:
            await self.scan_all()
        if watch:
            self._watcher = VaultWatcher(
                self.config,
                on_modified=self.on_document_modified,
                on_removed=self.on_document_removed,
            )
            self._watcher.start()
        self._running = True

    async def stop(self) -> None:
        """Stop watching and cancel or drain pending rewrites."""
        self._running = False
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        # Let in-flight tag checks finish so they schedule before close()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.scheduler.close()
        logger.info("AutoTagService stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    # --- Event handlers ---

    def refresh_tags(self) -> tuple[str, ...]:
        """Rebuild the registry from every note's current tags."""
        return self.registry.refresh()

    def on_document_modified(self, path: str | os.PathLike[str]) -> None:
        """A vault file changed: refresh tags if needed, schedule a rewrite.

        The note is read off the event loop; the rewrite is scheduled once
        the registry is up to date.
        """
        doc = self.store.document_for(path)
        if doc is None or not self.store.is_note(doc):
            return
        task = asyncio.get_running_loop().create_task(self.handle_modified(doc))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def handle_modified(self, doc: Document) -> None:
        try:
            changed = await asyncio.to_thread(self._update_tags, doc)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Cannot read modified note %s: %s", doc, e)
            return
        if changed:
            logger.debug("Tags of %s changed, registry refreshed", doc)
        self.scheduler.schedule_document(doc)

    def _update_tags(self, doc: Document) -> bool:
        """Re-extract ``doc``'s tags; rebuild the registry if they changed."""
        before = self.store.cached_tags(doc)
        after = self.store.tags_for(doc)
        if before is not None and set(before) == set(after):
            return False
        self.refresh_tags()
        return True

    def on_document_removed(self, path: str | os.PathLike[str]) -> None:
        doc = self.store.document_for(path)
        if doc is None or not self.store.is_note(doc):
            return
        logger.debug("Note removed: %s", doc)
        self.refresh_tags()

    def on_editor_change(self, buffer: EditorBuffer) -> None:
        """The buffer's content changed; rewrite it after typing pauses."""
        self.scheduler.schedule_buffer(buffer)

    # --- Rewriting ---

    def rewrite(self, text: str) -> tuple[str, bool]:
        """Rewrite ``text`` against the current tag snapshot."""
        return rewrite_note(
            text,
            self.registry.tags,
            self.config.sentinel,
            skip_frontmatter=self.config.skip_frontmatter,
        )

    async def process_document(self, doc: Document) -> bool:
        """Rewrite one stored note. Returns True if it was changed."""
        return await self._process_document(doc) == TAGGED

    async def _process_document(self, doc: Document) -> str:
        if not self.store.is_note(doc):
            return SKIPPED

        try:
            content = await self.store.read(doc)
            # Tags are snapshotted inside rewrite(), once per pass
            new_content, changed = self.rewrite(content)
            if not changed:
                return UNCHANGED
            await self.store.write(doc, new_content)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to tag %s: %s", doc, e)
            return FAILED

        logger.info("%s was tagged", doc)
        return TAGGED

    def convert_buffer(self, buffer: EditorBuffer) -> bool:
        """Rewrite a live buffer in place. Returns True if it was changed."""
        new_text, changed = self.rewrite(buffer.get_value())
        if changed:
            buffer.set_value(new_text)
            logger.debug("Buffer %s was tagged", buffer.buffer_id)
        return changed

    async def scan_all(self) -> ScanReport:
        """Rewrite every note in the vault, one after another."""
        logger.info("Scan started: %s", self.config.vault_dir)
        start = time.monotonic()
        report = ScanReport()
        for doc in self.store.list_notes():
            report.count(await self._process_document(doc))
        report.duration_s = round(time.monotonic() - start, 3)
        logger.info(
            "Scan finished: %d scanned, %d tagged, %d failed (%.1fs)",
            report.scanned,
            report.tagged,
            report.failed,
            report.duration_s,
        )
        return report

    # --- Internal helpers ---

    def _document_available(self, doc: Document) -> bool:
        return self.store.is_note(doc) and self.store.exists(doc)
