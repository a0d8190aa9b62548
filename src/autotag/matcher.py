"""Word matching — derive a safe replacement rule from a tag token.

A tag ``#project`` yields the bare word ``project`` and a case-insensitive
pattern that finds it as a standalone token:
  - metacharacters in the word are escaped, so ``#c++`` matches ``c++`` literally
  - the match may not touch a word character on either side
    (``projection`` is never matched)
  - the match may not be preceded by the sentinel, so already-tagged text
    is left alone and ``#project`` never becomes ``##project``

Key class: MatchRule. Key functions: bare_word(), build_rule().
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .utils import TAG_SENTINEL

logger = logging.getLogger(__name__)


def bare_word(tag: str, sentinel: str = TAG_SENTINEL) -> str:
    """Strip one leading sentinel from ``tag`` and lowercase the rest.

    >>> bare_word('#Project')
    'project'
    """
    return tag.removeprefix(sentinel).lower()


@dataclass(frozen=True)
class MatchRule:
    """Compiled rewrite rule for one tag's bare word."""

    tag: str
    word: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        """Replace every qualifying occurrence of the word in ``text``."""
        # Callable replacement so backslashes in the word stay literal
        return self.pattern.sub(lambda _m: self.replacement, text)


def build_pattern(word: str, sentinel: str = TAG_SENTINEL) -> re.Pattern[str]:
    """Compile the token-boundary pattern for a (non-empty) bare word.

    Equivalent to ``(?<!#)\\bWORD\\b`` for words made of word characters,
    but also finds words whose edges are symbols (``c++``, ``.net``).
    """
    guard = re.escape(sentinel)
    return re.compile(
        rf"(?<![\w{guard}]){re.escape(word)}(?!\w)",
        re.IGNORECASE,
    )


def build_rule(tag: str, sentinel: str = TAG_SENTINEL) -> MatchRule | None:
    """Build the MatchRule for ``tag``.

    Returns None for a malformed tag whose bare word is empty (``#``),
    since an empty pattern would match at every position.
    """
    word = bare_word(tag, sentinel)
    if not word.strip():
        logger.debug("Skipping malformed tag %r", tag)
        return None
    return MatchRule(
        tag=tag,
        word=word,
        pattern=build_pattern(word, sentinel),
        replacement=f"{sentinel}{word}",
    )
