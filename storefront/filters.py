# filters.py
"""
Filter normalization for catalog listings.

Turns the raw query string of a listing request into a `ProductFilters`
object: every field explicit, every value validated. Bad input never
raises here, it falls back to the defaults instead.
"""

import math
import re
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from storefront.settings import settings

MULTI_VALUE_PARAMS = ("gender", "brand", "category", "color", "size", "price")

# Largest offset a 64-bit database integer can hold.
MAX_OFFSET = 2 ** 63 - 1

_INTEGER = re.compile(r"-?[0-9]+")


class SortKey(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class PriceRange(BaseModel):
    """One `min-max` bucket. Either end may be open (None), never both."""
    min: Optional[float] = None
    max: Optional[float] = None

    class Config:
        frozen = True

    def label(self) -> str:
        if self.min is not None and self.max is not None:
            return f"${self.min:g} - ${self.max:g}"
        if self.min is not None:
            return f"Over ${self.min:g}"
        return f"Under ${self.max:g}"


class ProductFilters(BaseModel):
    """Normalized, immutable filter criteria for one listing request."""
    search: str = ""
    gender_slugs: Tuple[str, ...] = ()
    brand_slugs: Tuple[str, ...] = ()
    category_slugs: Tuple[str, ...] = ()
    color_slugs: Tuple[str, ...] = ()
    size_slugs: Tuple[str, ...] = ()
    price_ranges: Tuple[PriceRange, ...] = ()
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    sort: SortKey = SortKey.NEWEST
    page: int = 1
    limit: int = settings.DEFAULT_PAGE_LIMIT

    class Config:
        frozen = True

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_price_filter(self) -> bool:
        return bool(self.price_ranges) or self.min_price is not None or self.max_price is not None

    def active_filters(self) -> dict:
        """Compact description of the filters in use, for log context."""
        active = {}
        if self.search:
            active["search"] = self.search
        for name in ("gender_slugs", "brand_slugs", "category_slugs", "color_slugs", "size_slugs"):
            values = getattr(self, name)
            if values:
                active[name] = list(values)
        if self.price_ranges:
            active["price_ranges"] = [r.label() for r in self.price_ranges]
        if self.min_price is not None:
            active["min_price"] = self.min_price
        if self.max_price is not None:
            active["max_price"] = self.max_price
        active.update(sort=self.sort.value, page=self.page, limit=self.limit)
        return active


# ===================================================================
# Parsing helpers
# ===================================================================

def _values(raw: Mapping[str, Any], key: str) -> List[str]:
    """All raw values for `key`, whether the input was scalar, a list, or a multi-dict."""
    if hasattr(raw, "getlist"):
        found = raw.getlist(key)
    else:
        found = raw.get(key)
    if found is None:
        return []
    if isinstance(found, (list, tuple)):
        return [str(v) for v in found if v is not None]
    return [str(found)]


def _first(raw: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        values = _values(raw, key)
        if values:
            return values[0]
    return None


def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


def parse_amount(text: Optional[str]) -> Optional[float]:
    """A non-negative, finite number, or None."""
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def parse_price_range(text: str) -> Optional[PriceRange]:
    """
    Parses `"min-max"`, `"min-"` or `"-max"` into a PriceRange.

    Returns None for anything malformed: a missing separator, a
    non-numeric end, both ends empty, or min greater than max.
    """
    text = text.strip()
    if "-" not in text:
        return None
    low_text, _, high_text = text.partition("-")
    if not low_text.strip() and not high_text.strip():
        return None

    low = parse_amount(low_text)
    high = parse_amount(high_text)
    if (low_text.strip() and low is None) or (high_text.strip() and high is None):
        return None
    if low is not None and high is not None and low > high:
        return None
    return PriceRange(min=low, max=high)


def parse_int(text: Optional[str]) -> Optional[int]:
    """Plain decimal digits with an optional minus sign, or None."""
    if text is None:
        return None
    text = text.strip()
    if not _INTEGER.fullmatch(text):
        return None
    try:
        return int(text)
    except ValueError:
        # over the interpreter's digit limit for str -> int
        return None


def parse_sort(text: Optional[str]) -> SortKey:
    try:
        return SortKey((text or "").strip().lower())
    except ValueError:
        return SortKey.NEWEST


# ===================================================================
# Public entry point
# ===================================================================

def normalize_filters(raw: Optional[Mapping[str, Any]]) -> ProductFilters:
    """
    Builds a ProductFilters from raw query parameters.

    Args:
        raw: A mapping of parameter name to a string, a list of strings,
             or None. Starlette's `QueryParams` works as-is, so repeated
             keys such as `?color=red&color=blue` are all kept.

    Returns:
        A frozen ProductFilters with every field populated.
    """
    raw = raw or {}

    multi = {key: _unique(_values(raw, key)) for key in MULTI_VALUE_PARAMS}

    price_ranges = []
    for entry in multi["price"]:
        parsed = parse_price_range(entry)
        if parsed is not None and parsed not in price_ranges:
            price_ranges.append(parsed)

    page = parse_int(_first(raw, "page"))
    if page is None or page < 1:
        page = 1

    limit = parse_int(_first(raw, "limit"))
    if limit is None:
        limit = settings.DEFAULT_PAGE_LIMIT
    limit = max(1, min(limit, settings.MAX_PAGE_LIMIT))
    page = min(page, MAX_OFFSET // limit + 1)

    return ProductFilters(
        search=(_first(raw, "search", "q") or "").strip(),
        gender_slugs=multi["gender"],
        brand_slugs=multi["brand"],
        category_slugs=multi["category"],
        color_slugs=multi["color"],
        size_slugs=multi["size"],
        price_ranges=tuple(price_ranges),
        min_price=parse_amount(_first(raw, "min_price")),
        max_price=parse_amount(_first(raw, "max_price")),
        sort=parse_sort(_first(raw, "sort")),
        page=page,
        limit=limit,
    )
