"""Tag registry — the distinct set of tags known across the vault.

The registry is rebuilt from scratch on every refresh() from a snapshot of
all notes' extracted tags; it is never patched incrementally, so tags from
edited or deleted notes cannot linger.

Key class: TagRegistry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from .utils import TAG_SENTINEL

logger = logging.getLogger(__name__)

# Returns one iterable of tag tokens per note
TagCollector = Callable[[], Iterable[Iterable[str]]]


class TagRegistry:
    """Insertion-ordered set of distinct tag tokens."""

    def __init__(self, collect: TagCollector, sentinel: str = TAG_SENTINEL) -> None:
        self._collect = collect
        self._sentinel = sentinel
        self._tags: dict[str, None] = {}

    def refresh(self) -> tuple[str, ...]:
        """Rebuild the tag set from the current per-note extractions.

        Returns the new snapshot. An empty vault yields an empty set.
        """
        tags: dict[str, None] = {}
        for note_tags in self._collect():
            for raw in note_tags:
                tag = raw.strip()
                if not tag:
                    continue
                if not tag.startswith(self._sentinel):
                    tag = self._sentinel + tag
                tags.setdefault(tag, None)

        # Swap in one step; readers see the old set or the new one, never a mix
        self._tags = tags
        logger.info("%d tags found", len(tags))
        return self.tags

    @property
    def tags(self) -> tuple[str, ...]:
        """Snapshot of the current tags, in insertion order."""
        return tuple(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def __iter__(self) -> Iterator[str]:
        return iter(self.tags)
