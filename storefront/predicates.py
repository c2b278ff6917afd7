# predicates.py
"""
Listing predicates as data.

Filters are first described as `Predicate` tuples (kind + target +
operands) and only then folded into SQLAlchemy expressions. The
descriptor lists can be inspected without a database.

Two groups exist:
- product predicates, applied to the outer product query;
- variant predicates, applied to the variant subquery, so that a product
  matches when at least one of its variants satisfies all of them.
"""

from decimal import Decimal
from typing import Any, List, NamedTuple, Sequence, Tuple

from sqlalchemy import and_, false, func, or_, select, true

from storefront.filters import PriceRange, ProductFilters
from storefront.models import Brand, Category, Color, Gender, Product, ProductVariant, Size

# Sale price wins whenever it is set.
effective_price = func.coalesce(ProductVariant.sale_price, ProductVariant.price)


class Predicate(NamedTuple):
    kind: str
    target: Any
    operands: Tuple[Any, ...] = ()


# ===================================================================
# Builders
# ===================================================================

def product_predicates(filters: ProductFilters) -> List[Predicate]:
    """Conditions on the product row itself and its lookup dimensions."""
    preds = [Predicate("is_true", Product.is_published)]

    if filters.search:
        preds.append(Predicate("text_search", (Product.name, Product.description), (filters.search,)))

    for column, lookup, slugs in (
        (Product.gender_id, Gender, filters.gender_slugs),
        (Product.brand_id, Brand, filters.brand_slugs),
        (Product.category_id, Category, filters.category_slugs),
    ):
        if slugs:
            preds.append(Predicate("slug_in", column, (lookup, slugs)))

    return preds


def variant_predicates(filters: ProductFilters) -> List[Predicate]:
    """Conditions every qualifying variant has to meet at once."""
    preds = [
        Predicate("is_true", ProductVariant.is_active),
        Predicate("is_false", ProductVariant.is_deleted),
    ]

    if filters.color_slugs:
        preds.append(Predicate("slug_in", ProductVariant.color_id, (Color, filters.color_slugs)))
    if filters.size_slugs:
        preds.append(Predicate("slug_in", ProductVariant.size_id, (Size, filters.size_slugs)))

    if filters.price_ranges:
        preds.append(Predicate("price_ranges", effective_price, tuple(filters.price_ranges)))
    if filters.min_price is not None or filters.max_price is not None:
        preds.append(Predicate("price_bounds", effective_price, (filters.min_price, filters.max_price)))

    return preds


# ===================================================================
# Folding into SQLAlchemy
# ===================================================================

def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _bounds(column, low, high):
    parts = []
    if low is not None:
        parts.append(column >= Decimal(str(low)))
    if high is not None:
        parts.append(column <= Decimal(str(high)))
    return and_(*parts) if parts else true()


def to_clause(pred: Predicate):
    """Converts a single descriptor into a SQLAlchemy boolean expression."""
    if pred.kind == "is_true":
        return pred.target.is_(True)

    if pred.kind == "is_false":
        return pred.target.is_(False)

    if pred.kind == "text_search":
        (text,) = pred.operands
        pattern = f"%{_escape_like(text)}%"
        return or_(*(column.ilike(pattern, escape="\\") for column in pred.target))

    if pred.kind == "slug_in":
        lookup, slugs = pred.operands
        # Never correlated: the outer listing query may join the same lookup table.
        ids = select(lookup.id).where(lookup.slug.in_(list(slugs))).correlate(None)
        return pred.target.in_(ids)

    if pred.kind == "price_ranges":
        ranges: Sequence[PriceRange] = pred.operands
        if not ranges:
            return false()
        return or_(*(_bounds(pred.target, r.min, r.max) for r in ranges))

    if pred.kind == "price_bounds":
        low, high = pred.operands
        return _bounds(pred.target, low, high)

    raise ValueError(f"Unknown predicate kind: {pred.kind!r}")


def combine(preds: Sequence[Predicate]):
    """ANDs a list of descriptors together."""
    return and_(true(), *(to_clause(p) for p in preds))
