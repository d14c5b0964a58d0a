"""
Size Labels - Canonical names for measurement systems
======================================================
Maps free-text row/column labels ("Europe", "Royaume-Uni", "Pointure",
"Longueur du pied (cm)") to a short code (EU, UK, US, cm, JP, brand) and a
display label.

Families are checked in order and the first match wins: a label can contain
keywords of several families ("Longueur pied (cm)"), so order matters.
Labels matching nothing pass through unchanged.
"""

import re
import unicodedata
from typing import Iterable, List, Optional, Sequence, Tuple

from models import SizeRow

# (code, display label, keywords) in priority order
LABEL_FAMILIES: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("EU", "Europe", ("europe", "eu")),
    ("UK", "Royaume-Uni", ("royaume", "uk")),
    ("US", "Etats-Unis", ("etats", "usa", "us", "unis")),
    ("cm", "Longueur pied", ("longueur", "cm", "pied")),
    ("JP", "Japon", ("japon", "jp")),
]

STANDARD_CODES = ("EU", "UK", "US", "cm")

# Keywords this short only match as a whole run of letters
SHORT_KEYWORD_LENGTH = 3


def strip_accents(text: str) -> str:
    """Remove diacritics: 'États-Unis' -> 'Etats-Unis'."""
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c))


def normalize_text(text: Optional[str]) -> str:
    return strip_accents(text or "").strip().lower()


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Case/accent-insensitive keyword test.

    Short keywords (eu, uk, us, cm, men...) must stand alone as a run of
    letters, so 'eu' does not fire inside 'longueur' but does in '42EU'.
    """
    haystack = normalize_text(text)
    for keyword in keywords:
        needle = normalize_text(keyword)
        if not needle:
            continue
        if len(needle) <= SHORT_KEYWORD_LENGTH:
            if re.search(rf"(?<![a-z]){re.escape(needle)}(?![a-z])", haystack):
                return True
        elif needle in haystack:
            return True
    return False


def _match_family(label: str, brands: Sequence[str]) -> Optional[Tuple[str, str]]:
    for code, display, keywords in LABEL_FAMILIES:
        if contains_keyword(label, keywords):
            return code, display
    for brand in brands:
        if contains_keyword(label, [brand]):
            return brand, brand
    return None


def short_label(raw: str, brands: Sequence[str] = ()) -> str:
    """Canonical code for a label, or the trimmed label when unrecognized."""
    label = (raw or "").strip()
    match = _match_family(label, brands)
    return match[0] if match else label


def long_label(raw: str, brands: Sequence[str] = ()) -> str:
    """Display name for a code or raw label."""
    label = (raw or "").strip()
    match = _match_family(label, brands)
    return match[1] if match else label


def make_row(raw_label: str, values: List[str], brands: Sequence[str] = ()) -> SizeRow:
    return SizeRow(
        label=long_label(raw_label, brands),
        short_label=short_label(raw_label, brands),
        values=values,
    )


def standardize_rows(rows: List[SizeRow],
                     allowed: Sequence[str] = STANDARD_CODES) -> List[SizeRow]:
    """Keep the brand row plus rows whose code is allowed, in order."""
    if not rows:
        return []
    return [rows[0]] + [r for r in rows[1:] if r.short_label in allowed]
