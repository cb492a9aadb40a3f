"""Sentence-aware truncation of generated post text.

All lengths are counted in grapheme clusters (what a reader sees as one
character), so emoji sequences and combining marks are never split.
"""

from __future__ import annotations

import regex

_GRAPHEME_RE = regex.compile(r"\X")

SENTENCE_TERMINATORS: frozenset[str] = frozenset("。！？.!?")
SENTENCE_UNIT = "。"
ELLIPSIS = "..."

# How far back from the cut point we look for a nicer boundary.
_SENTENCE_LOOKBACK = 20
_SPACE_LOOKBACK = 10


def graphemes(text: str) -> list[str]:
    """Split *text* into user-perceived characters."""
    return _GRAPHEME_RE.findall(text)


def text_length(text: str) -> int:
    """Length of *text* in user-perceived characters."""
    return len(graphemes(text))


def cap_sentences(text: str, max_units: int, terminator: str = SENTENCE_UNIT) -> str:
    """Keep *text* up to and including the *max_units*-th *terminator*."""
    if max_units < 1:
        raise ValueError("max_units must be at least 1")
    chars = graphemes(text)
    seen = 0
    for i, ch in enumerate(chars):
        if ch == terminator:
            seen += 1
            if seen == max_units:
                return "".join(chars[: i + 1])
    return text


def truncate(text: str, max_length: int, *, max_sentence_units: int | None = None) -> str:
    """Fit *text* into *max_length* characters without breaking mid-sentence.

    Boundaries are tried in order: a sentence terminator within the last 20
    characters before the limit, then whitespace within the last 10, then a
    hard cut with ``...`` appended. The result never exceeds *max_length*.
    """
    if max_length < 0:
        raise ValueError("max_length must be non-negative")

    if max_sentence_units is not None:
        text = cap_sentences(text, max_sentence_units)

    chars = graphemes(text)
    if len(chars) <= max_length:
        return text

    last = max_length - 1

    for i in range(last, max(last - _SENTENCE_LOOKBACK, -1), -1):
        if chars[i] in SENTENCE_TERMINATORS:
            return "".join(chars[: i + 1])

    # Stop before index 0 so a whitespace cut never yields an empty string.
    for i in range(last, max(last - _SPACE_LOOKBACK, 0), -1):
        if chars[i].isspace():
            head = "".join(chars[:i]).rstrip()
            if head:
                return head
            break

    if max_length < len(ELLIPSIS):
        return "".join(chars[:max_length])
    return "".join(chars[: max_length - len(ELLIPSIS)]) + ELLIPSIS
