"""Whitespace and punctuation cleanup for text shown to end users."""

from __future__ import annotations

import re

_SPACE_BEFORE_PUNCT = re.compile(r"\s+([.,;:!?])")
_REPEATED_PERIODS = re.compile(r"\.{2,}")
_REPEATED_WHITESPACE = re.compile(r"\s{2,}")


def tidy(text: str) -> str:
    """Normalize punctuation spacing, repeated periods and runs of whitespace.

    Steps run in a fixed order (space before punctuation, repeated periods,
    repeated whitespace, trim) so that ``tidy(tidy(t)) == tidy(t)``.

    Args:
        text: Any text, including the empty string.

    Returns:
        The cleaned text.
    """
    text = _SPACE_BEFORE_PUNCT.sub(r"\1", text)
    text = _REPEATED_PERIODS.sub(".", text)
    text = _REPEATED_WHITESPACE.sub(" ", text)
    return text.strip()
