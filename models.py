"""
Models - Data structures shared by adapters, locators and the exporter
=======================================================================
Everything is assembled inside one adapter run and handed to the exporter.
Only Product.size_guide_id / size_guide_match are written after creation.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

GENDER_MEN = "Homme"
GENDER_WOMEN = "Femme"
GENDER_KIDS = "Enfant"
GENDER_UNISEX = "Unisex"

GENDERS = (GENDER_MEN, GENDER_WOMEN, GENDER_KIDS, GENDER_UNISEX)

DEFAULT_TYPE = "Shoes"

# Reasons recorded by the guide assignment pass
MATCH_GENDER = "gender"
MATCH_SINGLE_GUIDE = "single-guide"
MATCH_FALLBACK = "fallback"

_GENDER_SUFFIX_RE = re.compile(r"\((%s)\)\s*$" % "|".join(GENDERS))


@dataclass
class SizeRow:
    """One measurement system of a size guide."""

    label: str
    short_label: str
    values: List[str] = field(default_factory=list)


@dataclass
class SizeGuide:
    """A brand size table. Row 0 is the anchor scale."""

    id: int
    brand: str
    url: str
    rows: List[SizeRow] = field(default_factory=list)

    @property
    def gender(self) -> Optional[str]:
        """Gender carried by a brand suffix like 'Kleman (Homme)'."""
        match = _GENDER_SUFFIX_RE.search(self.brand)
        return match.group(1) if match else None

    @property
    def width(self) -> int:
        return max((len(r.values) for r in self.rows), default=0)


@dataclass
class Product:
    """A product discovered on a site."""

    name: str
    url: str
    gender: str = GENDER_UNISEX
    type: str = DEFAULT_TYPE
    size_guide_id: Optional[int] = None
    size_guide_match: str = ""


@dataclass
class ScrapingResult:
    products: List[Product] = field(default_factory=list)
    size_guides: List[SizeGuide] = field(default_factory=list)

    def guide_by_id(self, guide_id: Optional[int]) -> Optional[SizeGuide]:
        for guide in self.size_guides:
            if guide.id == guide_id:
                return guide
        return None


def gendered_brand(brand: str, gender: str) -> str:
    """Format a brand name for a gender-split guide."""
    return f"{brand} ({gender})"
