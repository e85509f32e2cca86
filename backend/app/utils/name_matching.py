"""
backend/app/utils/name_matching.py

Purpose:
    Normalized containment helpers shared by every fixture comparison. A
    participant variant "matches" a fixture field when its normalized form is
    a substring of the field's normalized form.

Notes:
    - Substring (not token) matching keeps "sinner" matching "jannik sinner"
      and "cerundolo" matching "francisco cerundolo".
    - Empty variants never match anything.
"""

from __future__ import annotations

from typing import Iterable

from app.services.name_normalizer import normalize_plain


def name_contains(haystack: str, variant: str) -> bool:
    """Return True when the normalized variant appears inside the normalized haystack."""
    needle = normalize_plain(variant)
    if not needle:
        return False
    return needle in normalize_plain(haystack)


def contains_any(haystack: str, variants: Iterable[str]) -> bool:
    """Return True when any of the variants is contained in the haystack."""
    return any(name_contains(haystack, variant) for variant in variants)
