"""Live editing surface — the buffer interface the tagger rewrites in place.

The editor itself belongs to the host application. The tagger only needs
to read and replace a buffer's full text and to know whether the buffer
is still open when a debounced rewrite fires.

Key entities:
  - EditorBuffer: protocol implemented by host buffers.
  - TextBuffer: in-memory implementation (used by hosts without an editor
    object of their own, and by tests).
"""

from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable


@runtime_checkable
class EditorBuffer(Protocol):
    """A live, synchronously editable text buffer."""

    @property
    def buffer_id(self) -> str: ...

    def get_value(self) -> str: ...

    def set_value(self, text: str) -> None: ...

    def is_open(self) -> bool: ...


class TextBuffer:
    """In-memory EditorBuffer."""

    def __init__(self, text: str = "", buffer_id: str | None = None) -> None:
        self._text = text
        self._buffer_id = buffer_id or uuid.uuid4().hex[:8]
        self._open = True
        self.writes = 0  # number of set_value() calls

    @property
    def buffer_id(self) -> str:
        return self._buffer_id

    def get_value(self) -> str:
        return self._text

    def set_value(self, text: str) -> None:
        if not self._open:
            raise RuntimeError(f"Buffer {self._buffer_id} is closed")
        self._text = text
        self.writes += 1

    def is_open(self) -> bool:
        return self._open

    def close(self) -> None:
        self._open = False

    def __repr__(self) -> str:
        state = "open" if self._open else "closed"
        return f"TextBuffer(id={self._buffer_id!r}, {state}, {len(self._text)} chars)"
