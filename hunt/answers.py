"""Answer canonicalisation for code-word comparison."""

from __future__ import annotations

import re
from typing import Any

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")


def normalize(raw: Any) -> str:
    """
    Return the canonical form of a submitted or expected answer.

    Surrounding whitespace is trimmed, text is lowercased, anything outside
    ``[a-z0-9 -]`` is dropped and whitespace runs collapse to one space.
    ``None`` and non-string values are coerced rather than rejected.
    """
    if raw is None:
        return ""
    text = str(raw).strip().lower()
    text = _DISALLOWED.sub("", text)
    # Dropping characters can expose new edge or doubled whitespace.
    return _WHITESPACE.sub(" ", text).strip()


def answers_match(expected: Any, given: Any) -> bool:
    """Compare two answers after normalisation."""
    return normalize(expected) == normalize(given)


__all__ = ["answers_match", "normalize"]
