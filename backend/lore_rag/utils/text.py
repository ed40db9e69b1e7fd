"""Text processing helpers."""

from __future__ import annotations


def cache_key(text: str) -> str:
    """Trim and case-fold text for use as a lookup key."""
    return text.strip().lower()
