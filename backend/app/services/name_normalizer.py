"""
backend/app/services/name_normalizer.py

Purpose:
    Turn an OCR'd match description ("J. Sinner vs F. Cerúndolo") into the
    per-side name variants used to search and compare fixtures.

Dependencies:
    - re
    - unicodedata
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

_SPACE_RE = re.compile(r"\s+")
_TOKEN_SPLIT_RE = re.compile(r"[\s/]+")
# En/em dashes always separate sides; a plain hyphen only when spaced, so
# "Auger-Aliassime" survives.
_DASH_SEPARATOR_RE = re.compile(r"\s*[–—]\s*|\s+-\s+")
_VS_SPLIT_RE = re.compile(r"\s*\bvs\b\.?\s*", re.IGNORECASE)
# A lone "v" is only a separator between spaced words, and only when no "vs" is present
_V_SPLIT_RE = re.compile(r"\s+v\.?\s+", re.IGNORECASE)
# Country codes, seeds and qualifiers: "(ITA)", "[1]", "(WC)"
_QUALIFIER_RE = re.compile(r"\([^)]*\)|\[[^\]]*\]")
_EDGE_PUNCT_RE = re.compile(r"^[\W_]+|[\W_]+$")

# Curated accent restorations: search backends that index the accented
# spelling miss the stripped one. Not a general transliterator.
_DIACRITIC_ALTERNATIVES = {
    "cerundolo": "cerúndolo",
    "carreno": "carreño",
    "munar": "muñar",
    "baez": "báez",
    "martinez": "martínez",
    "krejcikova": "krejčíková",
    "muchova": "muchová",
    "vondrousova": "vondroušová",
    "siniakova": "siniaková",
    "bouzkova": "bouzková",
}


@dataclass(frozen=True)
class SideVariants:
    left: tuple[str, ...]
    right: tuple[str, ...]
    match_text: str = ""

    def all_variants(self) -> tuple[str, ...]:
        return self.left + self.right


def normalize_plain(raw: str) -> str:
    """
    Canonical comparison form for participant names.

    Steps:
        1. NFD decomposition + combining mark removal
        2. lowercase
        3. period removal ("J." -> "J")
        4. whitespace collapse + trim
    """
    text = unicodedata.normalize("NFD", str(raw or ""))
    text = "".join(ch for ch in text if not unicodedata.combining(ch)).lower()
    text = text.replace(".", "")
    return _SPACE_RE.sub(" ", text).strip()


def split_sides(text: str) -> list[str]:
    """Split a match description on "vs" (or a spaced lone "v"); returns [] when fewer than two sides."""
    base = _DASH_SEPARATOR_RE.sub(" vs ", str(text or ""))
    splitter = _VS_SPLIT_RE if _VS_SPLIT_RE.search(base) else _V_SPLIT_RE
    sides = [part.strip() for part in splitter.split(base)]
    sides = [side for side in sides if side]
    if len(sides) < 2:
        return []
    return sides


def _name_tokens(text: str) -> list[str]:
    """Normalized tokens with edge punctuation removed ("sinner," -> "sinner", "o'connell" kept)."""
    tokens = (_EDGE_PUNCT_RE.sub("", tok) for tok in _TOKEN_SPLIT_RE.split(normalize_plain(text)))
    return [tok for tok in tokens if tok]


def _surname(tokens: list[str]) -> str:
    strong = [tok for tok in tokens if len(tok) > 1]
    return strong[-1] if strong else tokens[-1]


def expand_variants(side: str) -> list[str]:
    """
    Normalized search variants for one side.

    Two or more tokens yield the name without single-letter initials and the
    last real token (usually the surname). A doubles side ("Ann/Kim") yields
    every partner's surname instead of only the last one. A single token is
    its own variant. Bracketed qualifiers ("(ITA)", "[3]") are dropped.
    """
    cleaned = _QUALIFIER_RE.sub(" ", str(side or ""))
    tokens = _name_tokens(cleaned)
    if not tokens:
        return []
    if len(tokens) == 1:
        return [tokens[0]]

    variants: list[str] = []
    strong = [tok for tok in tokens if len(tok) > 1]
    if strong:
        variants.append(" ".join(strong))

    partners = [p for p in (_name_tokens(part) for part in cleaned.split("/")) if p]
    surnames = [_surname(p) for p in partners] if len(partners) > 1 else [_surname(tokens)]
    for surname in surnames:
        if surname not in variants:
            variants.append(surname)
    return variants


def add_diacritic_alternatives(variant: str) -> list[str]:
    """Return the variant plus any curated accented spellings of it."""
    out = [variant]
    for plain, accented in _DIACRITIC_ALTERNATIVES.items():
        if plain in variant:
            alternative = variant.replace(plain, accented)
            if alternative not in out:
                out.append(alternative)
    return out


def side_variants(side: str) -> list[str]:
    """All variants for one side, de-duplicated in first-seen order."""
    seen: list[str] = []
    for variant in expand_variants(side):
        for candidate in add_diacritic_alternatives(variant):
            if candidate not in seen:
                seen.append(candidate)
    return seen


def build_side_variants(match_text: str) -> SideVariants | None:
    """Variants for the first two sides of a match description, or None if unsplittable."""
    sides = split_sides(match_text)
    if not sides:
        return None
    left = side_variants(sides[0])
    right = side_variants(sides[1])
    if not left or not right:
        return None
    return SideVariants(left=tuple(left), right=tuple(right), match_text=str(match_text).strip())
