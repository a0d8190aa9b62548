"""Note store — the vault's documents on disk.

Enumerates notes, reads and writes their content, and extracts the tags
each note already carries. Blocking file I/O for content is wrapped in
asyncio.to_thread() so callers on the event loop suspend instead of block.

Writes are atomic: the new content goes to a sibling temp file which is
then moved over the note with os.replace(), so a failed write never leaves
a half-written note behind.

Tag extraction is cached per note by (mtime, size); a refresh of the tag
registry only re-parses notes that changed since the last refresh.

Key entities: Document, NoteStore.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ..settings import TaggerConfig
from ..utils import parse_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """A file in the vault, identified by its vault-relative path."""

    path: PurePosixPath
    extension: str  # lowercase suffix with dot, e.g. ".md"

    @property
    def name(self) -> str:
        return self.path.stem

    def __str__(self) -> str:
        return str(self.path)


@dataclass
class _TagCacheEntry:
    mtime: float
    size: int
    tags: list[str]


class NoteStore:
    """File-backed document collection rooted at the vault directory."""

    def __init__(self, config: TaggerConfig) -> None:
        self.config = config
        self.root = config.vault_dir.resolve()
        self._tag_cache: dict[PurePosixPath, _TagCacheEntry] = {}

    # --- Identity ---

    def document_for(self, path: str | os.PathLike[str]) -> Document | None:
        """Map an absolute or vault-relative path to a Document.

        Returns None for paths outside the vault.
        """
        p = Path(path)
        if p.is_absolute():
            try:
                p = p.resolve().relative_to(self.root)
            except ValueError:
                return None
        rel = PurePosixPath(p.as_posix())
        if not rel.parts or rel.parts[0] == "..":
            return None
        return Document(path=rel, extension=rel.suffix.lower())

    def absolute(self, doc: Document) -> Path:
        return self.root.joinpath(*doc.path.parts)

    def is_note(self, doc: Document) -> bool:
        """True if ``doc`` is an eligible note (extension and not ignored)."""
        return self.config.is_note_path(doc.path) and not self.config.is_ignored(
            doc.path
        )

    def exists(self, doc: Document) -> bool:
        return self.absolute(doc).is_file()

    # --- Enumeration ---

    def list_notes(self) -> list[Document]:
        """Return all notes in the vault, sorted by path."""
        if not self.root.is_dir():
            return []

        results: list[Document] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            # Prune ignored directories in place
            ignored = self.config.ignore_dirs
            dirnames[:] = sorted(d for d in dirnames if d not in ignored)
            for fname in filenames:
                doc = self.document_for(Path(dirpath) / fname)
                if doc is not None and self.is_note(doc):
                    results.append(doc)
        results.sort(key=lambda d: d.path)
        return results

    # --- Content ---

    async def read(self, doc: Document) -> str:
        """Read a note's full text. Raises OSError / UnicodeDecodeError."""
        return await asyncio.to_thread(_read_text, self.absolute(doc))

    async def write(self, doc: Document, text: str) -> None:
        """Replace a note's full text atomically. Raises OSError."""
        await asyncio.to_thread(_atomic_write, self.absolute(doc), text)

    # --- Tags ---

    def tags_for(self, doc: Document) -> list[str]:
        """Return the tag tokens currently present in ``doc``.

        Raises OSError / UnicodeDecodeError if the note cannot be read.
        """
        path = self.absolute(doc)
        st = path.stat()
        cached = self._tag_cache.get(doc.path)
        if cached and cached.mtime == st.st_mtime and cached.size == st.st_size:
            return cached.tags

        tags = parse_tags(
            _read_text(path),
            sentinel=self.config.sentinel,
            include_frontmatter=self.config.include_frontmatter_tags,
        )
        self._tag_cache[doc.path] = _TagCacheEntry(st.st_mtime, st.st_size, tags)
        return tags

    def cached_tags(self, doc: Document) -> list[str] | None:
        """Tags from the last extraction of ``doc``, without touching disk."""
        entry = self._tag_cache.get(doc.path)
        return entry.tags if entry else None

    def iter_note_tags(self) -> Iterator[list[str]]:
        """Yield the tag list of every note; unreadable notes are skipped."""
        seen: set[PurePosixPath] = set()
        for doc in self.list_notes():
            seen.add(doc.path)
            try:
                yield self.tags_for(doc)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Cannot extract tags from %s: %s", doc, e)

        # Drop cache entries of deleted notes
        for stale in set(self._tag_cache) - seen:
            del self._tag_cache[stale]


def _read_text(path: Path) -> str:
    # newline="" keeps CRLF notes byte-identical when written back
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _atomic_write(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` via a temp file in the same directory."""
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
