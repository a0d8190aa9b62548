"""Rewrite engine — turn plain occurrences of known tag words into tags.

One rewrite pass applies every tag's MatchRule, in registry order, to a
working copy of the text. The caller hands in a snapshot of the tag set so
a concurrent registry refresh cannot change the tags halfway through a pass.

Both call sites (stored notes and live editor buffers) go through
rewrite_note(), so save-triggered and typing-triggered rewrites behave the
same way.

Key functions: rewrite_text(), rewrite_note().
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

from .matcher import build_rule
from .utils import TAG_SENTINEL, split_frontmatter


class RewriteResult(NamedTuple):
    """Outcome of one rewrite pass."""

    text: str
    changed: bool


def rewrite_text(
    text: str,
    tags: Iterable[str],
    sentinel: str = TAG_SENTINEL,
) -> RewriteResult:
    """Apply every tag's rule to ``text``.

    Occurrences are replaced with the tag's lowercase form, so ``Project``
    becomes ``#project``. Tags with an empty bare word are skipped.
    """
    new_text = text
    changed = False
    for tag in tags:
        rule = build_rule(tag, sentinel)
        if rule is None:
            continue
        updated = rule.apply(new_text)
        if updated != new_text:
            new_text = updated
            changed = True
    return RewriteResult(new_text, changed)


def rewrite_note(
    text: str,
    tags: Iterable[str],
    sentinel: str = TAG_SENTINEL,
    *,
    skip_frontmatter: bool = True,
) -> RewriteResult:
    """Rewrite a note's content, leaving a leading frontmatter block intact.

    Without the guard a frontmatter line like ``tags: [project]`` would be
    rewritten to ``tags: [#project]``, which YAML reads as a comment.
    """
    if not skip_frontmatter:
        return rewrite_text(text, tags, sentinel)

    frontmatter, body = split_frontmatter(text)
    result = rewrite_text(body, tags, sentinel)
    if not result.changed:
        return RewriteResult(text, False)
    return RewriteResult(frontmatter + result.text, True)
