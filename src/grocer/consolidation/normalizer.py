"""Matching keys for shopping item names."""

from __future__ import annotations

_MIN_SINGULAR_LENGTH = 3


def normalize_name(name: str) -> str:
    """Return the merge key for a display name.

    Lowercases, collapses whitespace and drops one trailing ``s`` from keys
    longer than three characters. The singularization is intentionally naive:
    "tomatoes" becomes "tomatoe" and "glass" becomes "glas". Only the key is
    affected; display names are stored untouched.
    """

    collapsed = " ".join(name.lower().split())
    if collapsed.endswith("s") and len(collapsed) > _MIN_SINGULAR_LENGTH:
        return collapsed[:-1]
    return collapsed


__all__ = ["normalize_name"]
