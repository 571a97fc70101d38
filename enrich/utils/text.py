"""Text normalisation and reading metrics."""

from __future__ import annotations

import math
import re

WORDS_PER_MINUTE = 200
MAX_CONTENT_CHARS = 50_000
MAX_FIELD_CHARS = 500

_HORIZONTAL_WS = re.compile(r"[^\S\n]+")
_EXCESS_NEWLINES = re.compile(r"\n\s*\n\s*\n+")


def word_count(text: str | None) -> int:
    if not text:
        return 0
    return len(text.split())


def reading_minutes(words: int) -> int:
    return math.ceil(max(words, 0) / WORDS_PER_MINUTE)


def reading_time(words: int) -> str:
    """Format the estimated reading time, e.g. ``"2 min read"`` for 400 words."""
    return f"{reading_minutes(words)} min read"


def clean_text(text: str | None, *, limit: int = MAX_FIELD_CHARS) -> str:
    """Collapse all whitespace in a short metadata field and cap its length."""
    if not text:
        return ""
    return " ".join(text.split())[:limit]


def clean_content(text: str | None, *, limit: int = MAX_CONTENT_CHARS) -> str:
    """Normalise an extracted body while keeping paragraph breaks.

    Runs of spaces and tabs collapse to one space, lines are trimmed, three or
    more consecutive line breaks collapse to a single blank line, and the
    result is truncated to ``limit`` characters.
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "")
    lines = [_HORIZONTAL_WS.sub(" ", line).strip() for line in text.split("\n")]
    collapsed = _EXCESS_NEWLINES.sub("\n\n", "\n".join(lines)).strip()
    return collapsed[:limit]


__all__ = [
    "MAX_CONTENT_CHARS",
    "WORDS_PER_MINUTE",
    "clean_content",
    "clean_text",
    "reading_minutes",
    "reading_time",
    "word_count",
]
