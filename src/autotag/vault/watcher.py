"""Vault watcher — turns filesystem events into tagger events.

A watchdog Observer runs in its own thread. Its handler never touches the
tag registry or the notes directly: every event is handed to the asyncio
loop with call_soon_threadsafe(), so all tagging logic stays on the loop
thread.

Event mapping:
  - created / modified / moved-to a note → ``on_modified(path)``
  - deleted / moved-away note            → ``on_removed(path)``
Only paths with a note extension outside ignored directories are
forwarded; temp files written by NoteStore are filtered out that way.

Key class: VaultWatcher.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..settings import TaggerConfig

logger = logging.getLogger(__name__)

PathCallback = Callable[[Path], None]


class _NoteEventHandler(FileSystemEventHandler):
    """Forwards note events from the observer thread to the event loop."""

    def __init__(
        self,
        config: TaggerConfig,
        loop: asyncio.AbstractEventLoop,
        on_modified: PathCallback,
        on_removed: PathCallback,
    ) -> None:
        super().__init__()
        self._config = config
        self._root = config.vault_dir.resolve()
        self._loop = loop
        self._on_modified = on_modified
        self._on_removed = on_removed

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._dispatch(self._on_modified, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._dispatch(self._on_modified, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._dispatch(self._on_removed, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._dispatch(self._on_removed, event.src_path)
        self._dispatch(self._on_modified, event.dest_path)

    def _dispatch(self, callback: PathCallback, raw_path: str | bytes) -> None:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        path = Path(raw_path)
        if not self._is_note(path):
            return
        try:
            self._loop.call_soon_threadsafe(callback, path)
        except RuntimeError:
            # Loop already closed during shutdown
            logger.debug("Dropped event for %s: loop closed", path)

    def _is_note(self, path: Path) -> bool:
        if not self._config.is_note_path(path):
            return False
        try:
            rel = path.relative_to(self._root)
        except ValueError:
            return False
        return not self._config.is_ignored(rel)


class VaultWatcher:
    """Watches the vault directory tree for note changes."""

    def __init__(
        self,
        config: TaggerConfig,
        *,
        on_modified: PathCallback,
        on_removed: PathCallback,
    ) -> None:
        self.config = config
        self._on_modified = on_modified
        self._on_removed = on_removed
        self._observer: Observer | None = None

    def start(self) -> None:
        """Start watching. Must be called from the event loop thread."""
        if self._observer is not None:
            return
        watch_path = self.config.vault_dir.resolve()
        if not watch_path.is_dir():
            logger.warning("Watch path does not exist: %s", watch_path)
            return

        handler = _NoteEventHandler(
            self.config,
            asyncio.get_running_loop(),
            self._on_modified,
            self._on_removed,
        )
        self._observer = Observer()
        self._observer.schedule(handler, str(watch_path), recursive=True)
        self._observer.start()
        logger.info("Watching %s", watch_path)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Vault watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._observer is not None
