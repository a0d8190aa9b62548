"""Shared utilities — config directory resolution, frontmatter and tag parsing.

Single source of truth for the frontmatter/tag regex patterns used by the
note store (tag extraction) and the rewrite engine (frontmatter protection).
Line endings may be LF or CRLF; notes are read with newline="".
"""

from __future__ import annotations

import functools
import os
import re
from pathlib import Path

TAG_SENTINEL = "#"

# Regex to match YAML frontmatter (--- ... ---) at the beginning of a file
FRONTMATTER_RE = re.compile(r"\A---\r?\n.*?\r?\n---(?:\r?\n)?", re.DOTALL)

# Extract tags: [tag1, tag2] from frontmatter
_TAGS_BRACKET_RE = re.compile(r"^tags:[ \t]*\[([^\]]*)\]", re.MULTILINE)

# Extract block-list tags from frontmatter:
#   tags:
#     - tag1
#     - tag2
_TAGS_BLOCK_RE = re.compile(
    r"^tags:[ \t]*\r?\n((?:[ \t]*-[ \t]+\S.*\n?)+)", re.MULTILINE
)

# Fenced code blocks and inline code spans; tags inside them do not count
_CODE_RE = re.compile(r"^(```|~~~)[^\n]*\n.*?^\1|`[^`\n]+`", re.MULTILINE | re.DOTALL)


@functools.lru_cache(maxsize=8)
def _inline_tag_re(sentinel: str) -> re.Pattern[str]:
    # Inline tags: #word (not preceded by a non-space char — avoids anchors and
    # mid-word hashes). Headings are skipped because "# " has no word after it.
    return re.compile(
        rf"(?:^|(?<=\s)){re.escape(sentinel)}([^\W\d][\w/+\-]*)", re.MULTILINE
    )


def autotag_dir() -> Path:
    """Return the config directory (``$AUTOTAG_DIR`` or ``~/.autotag``)."""
    raw = os.environ.get("AUTOTAG_DIR", "")
    if raw:
        return Path(os.path.expanduser(raw))
    return Path.home() / ".autotag"


def split_frontmatter(text: str) -> tuple[str, str]:
    """Split text into (frontmatter, body).

    The frontmatter part includes its ``---`` delimiters and trailing newline;
    it is the empty string when the text has no frontmatter block.
    """
    m = FRONTMATTER_RE.match(text)
    if not m:
        return "", text
    return m.group(0), text[m.end() :]


def strip_frontmatter(text: str) -> str:
    """Remove YAML frontmatter block from the beginning of text."""
    return FRONTMATTER_RE.sub("", text)


def strip_code(text: str) -> str:
    """Remove fenced code blocks and inline code spans from text."""
    return _CODE_RE.sub("", text)


def _clean_fm_tag(raw: str, sentinel: str) -> str:
    return raw.strip().strip('"').strip("'").lstrip(sentinel).strip()


def parse_frontmatter_tags(text: str, sentinel: str = TAG_SENTINEL) -> list[str]:
    """Extract tag names from a ``tags:`` key in YAML frontmatter.

    Supports the flow form ``tags: [a, b]`` and the block-list form.
    Returned names carry no sentinel prefix; order of appearance is kept.
    """
    fm_match = FRONTMATTER_RE.match(text)
    if not fm_match:
        return []
    fm = fm_match.group(0)

    names: list[str] = []
    bracket_match = _TAGS_BRACKET_RE.search(fm)
    if bracket_match:
        names.extend(bracket_match.group(1).split(","))
    block_match = _TAGS_BLOCK_RE.search(fm)
    if block_match:
        for line in block_match.group(1).splitlines():
            names.append(line.strip().removeprefix("-"))

    results: list[str] = []
    for raw in names:
        name = _clean_fm_tag(raw, sentinel)
        if name and name not in results:
            results.append(name)
    return results


def parse_tags(
    text: str,
    *,
    sentinel: str = TAG_SENTINEL,
    include_frontmatter: bool = True,
) -> list[str]:
    """Extract the tag tokens present in a note.

    Parses:
      - Inline ``#tag`` occurrences in the body (frontmatter and code excluded)
      - Frontmatter ``tags:`` entries (when ``include_frontmatter``)

    Tokens are returned with the sentinel prefix, in their original case and
    in order of first appearance, without duplicates.
    """
    tags: list[str] = []

    if include_frontmatter:
        for name in parse_frontmatter_tags(text, sentinel):
            tag = sentinel + name
            if tag not in tags:
                tags.append(tag)

    body = strip_code(strip_frontmatter(text))
    for m in _inline_tag_re(sentinel).finditer(body):
        tag = sentinel + m.group(1)
        if tag not in tags:
            tags.append(tag)

    return tags
