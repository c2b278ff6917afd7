# schemas.py
"""
Public response shapes and the row projector.

Listing queries return flat rows; the functions at the bottom of this
module turn them into these models. JSON keys are camelCase for the
frontend, attribute names stay snake_case in Python.
"""

import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from storefront.settings import settings


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ===================================================================
# Listings
# ===================================================================

class ProductListItem(CamelModel):
    """One product card in the catalog grid."""
    id: uuid.UUID
    name: str
    image_url: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    created_at: datetime
    subtitle: Optional[str] = None
    default_variant_id: Optional[uuid.UUID] = None


class VariantListItem(CamelModel):
    """One SKU row in the variant listing."""
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    sku: str
    image_url: Optional[str] = None
    price: Optional[float] = None
    sale_price: Optional[float] = None
    color_name: Optional[str] = None
    size_name: Optional[str] = None
    created_at: datetime
    subtitle: Optional[str] = None


class ProductListResult(CamelModel):
    items: List[ProductListItem]
    total_count: int


class VariantListResult(CamelModel):
    items: List[VariantListItem]
    total_count: int


# ===================================================================
# Facets & product detail
# ===================================================================

class LookupOut(CamelModel):
    id: uuid.UUID
    name: str
    slug: str


class ColorOut(LookupOut):
    hex_code: str


class SizeOut(LookupOut):
    sort_order: int


class Facets(CamelModel):
    genders: List[LookupOut]
    brands: List[LookupOut]
    categories: List[LookupOut]
    colors: List[ColorOut]
    sizes: List[SizeOut]


class SizeOption(CamelModel):
    """A purchasable size of the selected color."""
    variant_id: uuid.UUID
    sku: str
    size_id: uuid.UUID
    name: str
    slug: str
    sort_order: int
    price: Optional[float] = None
    sale_price: Optional[float] = None
    in_stock: int
    low_stock: bool
    max_quantity_per_order: int


class ImageOut(CamelModel):
    id: uuid.UUID
    url: str
    sort_order: int
    is_primary: bool


class ProductInfo(CamelModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    brand: Optional[LookupOut] = None
    category: Optional[LookupOut] = None
    gender: Optional[LookupOut] = None
    collections: List[LookupOut] = []
    default_variant_id: Optional[uuid.UUID] = None
    subtitle: Optional[str] = None
    created_at: datetime


class ProductDetail(CamelModel):
    product: ProductInfo
    available_colors: List[ColorOut]
    selected_color: Optional[ColorOut] = None
    sizes: List[SizeOption]
    images: List[ImageOut]
    thumbnail_url: Optional[str] = None


# ===================================================================
# Projector
# ===================================================================

def to_float(value: Any) -> Optional[float]:
    """Coerces DB decimals and numeric strings to float; None stays None."""
    if value is None:
        return None
    if isinstance(value, float):
        return value
    try:
        return float(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return None


def subtitle_for(gender_label: Optional[str]) -> Optional[str]:
    if not gender_label:
        return None
    return f"{gender_label} {settings.SUBTITLE_SUFFIX}"


def project_product_row(row) -> ProductListItem:
    return ProductListItem(
        id=row.id,
        name=row.name,
        image_url=row.image_url,
        min_price=to_float(row.min_price),
        max_price=to_float(row.max_price),
        created_at=row.created_at,
        subtitle=subtitle_for(row.gender_label),
        default_variant_id=row.default_variant_id,
    )


def project_variant_row(row) -> VariantListItem:
    return VariantListItem(
        id=row.id,
        product_id=row.product_id,
        product_name=row.product_name,
        sku=row.sku,
        image_url=row.image_url,
        price=to_float(row.price),
        sale_price=to_float(row.sale_price),
        color_name=row.color_name,
        size_name=row.size_name,
        created_at=row.created_at,
        subtitle=subtitle_for(row.gender_label),
    )
