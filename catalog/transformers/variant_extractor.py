"""
Variant extraction for scraped product titles.

Pulls a size, color and material token out of a free-text listing title and
derives the "base name" that variants of the same product share, e.g.
"Anchor Chain 8mm Black" -> base name "Anchor Chain", size "8mm",
color "black".

Also hosts the price parser shared by the grouping engine and catalog
queries.
"""

import math
import re
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict

# =====================================================
# VOCABULARIES
# =====================================================

LENGTH_UNITS = ("mm", "cm", "m", "inch", "in", "ft", "'", '"')

APPAREL_SIZES = ("XXS", "XS", "S", "M", "L", "XL", "XXL", "XXXL", "2XL", "3XL")

WEIGHT_VOLUME_UNITS = ("kg", "g", "L", "ml", "liter", "litre", "gal", "gallon")

COLOR_WORDS = (
    "black",
    "white",
    "red",
    "blue",
    "green",
    "yellow",
    "orange",
    "purple",
    "pink",
    "grey",
    "gray",
    "brown",
    "navy",
    "beige",
    "silver",
    "gold",
    "chrome",
    "stainless",
    "brass",
)

MATERIAL_WORDS = (
    "stainless steel",
    "steel",
    "aluminum",
    "aluminium",
    "plastic",
    "nylon",
    "polyester",
    "rubber",
    "silicone",
    "leather",
    "canvas",
    "wood",
    "teak",
    "brass",
    "copper",
    "zinc",
    "chrome",
)

CURRENCY_SYMBOLS = "€$£¥₹"


def _alternation(words: Iterable[str]) -> str:
    # Longest first so "XXL" wins over "XL" and "gallon" over "gal"
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


# =====================================================
# PATTERNS
# =====================================================

_NUMBER = r"\d+(?:\.\d+)?"

_LENGTH_UNIT = r"""(?:(?i:mm|cm|inch|in|ft|m)|'|")"""

# "3M" on its own is the adhesives brand, not three metres
_BRAND_GUARD = r"(?!3M\b)"

# "15x60cm", "50mmx50m", "14mm x 10m", "8mm", "6'"
DIMENSION_RE = re.compile(
    rf"\b{_BRAND_GUARD}{_NUMBER}"
    rf"(?:{_LENGTH_UNIT}?\s*[xX]\s*{_NUMBER}{_LENGTH_UNIT}"
    rf"|{_LENGTH_UNIT}(?:\s*[xX]\s*{_NUMBER}{_LENGTH_UNIT}?)?)"
    r"(?![A-Za-z0-9])"
)

# Multi-letter sizes in any case ("xl", "Xxl"); lone S/M/L only in capitals,
# since a lowercase "s" or "m" is usually a possessive or a unit.
_APPAREL_SIZE = (
    rf"(?:(?i:{_alternation(s for s in APPAREL_SIZES if len(s) > 1)})"
    rf"|{_alternation(s for s in APPAREL_SIZES if len(s) == 1)})"
)

APPAREL_SIZE_RE = re.compile(rf"\b({_APPAREL_SIZE})\b")

WEIGHT_VOLUME_RE = re.compile(
    rf"\b{_NUMBER}(?:{_alternation(WEIGHT_VOLUME_UNITS)})\b", re.IGNORECASE
)

SIZE_NUMBER_RE = re.compile(r"(?:\bsize|\bno\.?|#)\s*(\d+)\b", re.IGNORECASE)

COLOR_RE = re.compile(rf"\b({_alternation(COLOR_WORDS)})\b", re.IGNORECASE)

MATERIAL_RE = re.compile(
    r"\b("
    + "|".join(
        r"\s*".join(re.escape(part) for part in word.split())
        for word in sorted(MATERIAL_WORDS, key=len, reverse=True)
    )
    + r")\b",
    re.IGNORECASE,
)

# Base-name clean-up only touches trailing noise, so proper names that contain
# a color or material word ("Blue Water Polish") survive.
TRAILING_COLOR_RE = re.compile(
    rf"\s+({_alternation(COLOR_WORDS)})\s*$", re.IGNORECASE
)
TRAILING_APPAREL_SIZE_RE = re.compile(rf"\s+({_APPAREL_SIZE})\s*$")
TRAILING_WEIGHT_VOLUME_RE = re.compile(
    rf"\s+{_NUMBER}(?:{_alternation(WEIGHT_VOLUME_UNITS)})\s*$", re.IGNORECASE
)

_WHITESPACE_RE = re.compile(r"\s+")
_CURRENCY_RE = re.compile(f"[{re.escape(CURRENCY_SYMBOLS)}]")
_EUROPEAN_DECIMAL_RE = re.compile(r",\d{2}$")
_NUMBER_PREFIX_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")

_MATERIAL_LOOKUP = {word.replace(" ", ""): word for word in MATERIAL_WORDS}


class VariantInfo(BaseModel):
    """Variant attributes extracted from a single listing title."""

    model_config = ConfigDict(frozen=True)

    base_name: str
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None


# =====================================================
# SIZE MATCHERS (tried in order, first hit wins)
# =====================================================


def match_dimension(title: str) -> Optional[str]:
    match = DIMENSION_RE.search(title)
    return match.group(0) if match else None


def match_apparel_size(title: str) -> Optional[str]:
    match = APPAREL_SIZE_RE.search(title)
    return match.group(1) if match else None


def match_weight_volume(title: str) -> Optional[str]:
    match = WEIGHT_VOLUME_RE.search(title)
    return match.group(0) if match else None


def match_size_number(title: str) -> Optional[str]:
    """Match "Size 8", "No. 12" or "#4" and return the bare number."""
    match = SIZE_NUMBER_RE.search(title)
    return match.group(1) if match else None


SIZE_MATCHERS: tuple[Callable[[str], Optional[str]], ...] = (
    match_dimension,
    match_apparel_size,
    match_weight_volume,
    match_size_number,
)


def first_match_or_none(
    matchers: Iterable[Callable[[str], Optional[str]]], text: str
) -> Optional[str]:
    """Return the first non-empty token produced by ``matchers`` on ``text``."""
    return next((token for token in (m(text) for m in matchers) if token), None)


def extract_color(title: str) -> Optional[str]:
    match = COLOR_RE.search(title)
    return match.group(1).lower() if match else None


def extract_material(title: str) -> Optional[str]:
    match = MATERIAL_RE.search(title)
    if not match:
        return None
    key = _WHITESPACE_RE.sub("", match.group(1).lower())
    return _MATERIAL_LOOKUP.get(key, key)


def derive_base_name(title: str) -> str:
    """
    Strip variant noise from a title.

    Removes every dimension token, then a trailing color word, a trailing
    apparel size and a trailing weight/volume token, in that order.
    """
    base = DIMENSION_RE.sub("", title)
    base = TRAILING_COLOR_RE.sub("", base)
    base = TRAILING_APPAREL_SIZE_RE.sub("", base)
    base = TRAILING_WEIGHT_VOLUME_RE.sub("", base)
    return _WHITESPACE_RE.sub(" ", base).strip()


def extract_variant_info(title: str) -> VariantInfo:
    """Extract base name, size, color and material from a listing title."""
    return VariantInfo(
        base_name=derive_base_name(title),
        size=first_match_or_none(SIZE_MATCHERS, title),
        color=extract_color(title),
        material=extract_material(title),
    )


def parse_price(price: Optional[str]) -> float:
    """
    Parse a display price such as "€45.00" or "1.234,56" into a float.

    Unparseable input returns 0.0, which callers treat as "no price".
    """
    if not price:
        return 0.0

    cleaned = _WHITESPACE_RE.sub("", _CURRENCY_RE.sub("", str(price)))

    if _EUROPEAN_DECIMAL_RE.search(cleaned):
        # "1.234,56": dots group thousands, the last comma is the decimal mark
        whole, decimals = cleaned.rsplit(",", 1)
        cleaned = whole.replace(".", "").replace(",", "") + "." + decimals
    else:
        cleaned = cleaned.replace(",", "")

    match = _NUMBER_PREFIX_RE.match(cleaned)
    if not match:
        return 0.0

    value = float(match.group(0))
    return value if math.isfinite(value) else 0.0
