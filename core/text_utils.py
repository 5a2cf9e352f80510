"""Shared text processing utilities for assistant CLIs."""
from __future__ import annotations

import re

__all__ = [
    "center_text",
    "slugify",
    "truncate",
    "contains_any",
]


def center_text(text: str, width: int) -> str:
    """Pad text on both sides to exactly ``width`` columns (left-biased).

    Text longer than ``width`` is returned unchanged.
    """
    if len(text) >= width:
        return text
    padding = (width - len(text)) // 2
    return " " * padding + text + " " * (width - padding - len(text))


def slugify(text: str) -> str:
    """Lowercase and replace every non-alphanumeric character with '-'.

    Examples:
        'Q4 Planning: Review' -> 'q4-planning--review'
    """
    return re.sub(r"[^a-z0-9]", "-", (text or "").lower())


def truncate(text: str, limit: int = 200, suffix: str = "...") -> str:
    """Cut text at ``limit`` characters, appending ``suffix`` when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + suffix


def contains_any(text: str, needles) -> bool:
    """True if any needle occurs in text (case-sensitive substring match)."""
    return any(n in text for n in needles)
