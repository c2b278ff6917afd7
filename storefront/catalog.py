# catalog.py
"""
Catalog listing queries.

Two listing modes share the predicate rules from `predicates.py`:

- `list_products`: one row per product, with MIN/MAX effective price
  over the variants that satisfy the variant-level filters;
- `list_variants`: one row per active variant (SKU).

Both return the page of items plus the total match count, computed by a
second COUNT query over the same filtered statement. Products without
any qualifying active variant never appear in the catalog listing.

The module also serves the product detail page and the filter sidebar.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from storefront.filters import ProductFilters, SortKey
from storefront.images import resolve_image_url, with_representative_image
from storefront.models import (
    Brand, Category, Color, Gender, Product, ProductImage, ProductVariant, Size
)
from storefront.predicates import (
    combine, effective_price, product_predicates, variant_predicates
)
from storefront.schemas import (
    ColorOut, Facets, ImageOut, LookupOut, ProductDetail, ProductInfo,
    ProductListResult, SizeOption, SizeOut, VariantListResult,
    project_product_row, project_variant_row, subtitle_for, to_float
)

logger = logging.getLogger(__name__)


class CatalogQueryError(Exception):
    """A listing query failed at the database level."""


# ===================================================================
# Statement builders
# ===================================================================

def _matching_variants(filters: ProductFilters):
    """
    Variants satisfying every variant-level filter, each ranked inside its
    product: the default variant first, then the cheapest, then by id.
    Rank 1 is the product's representative variant.
    """
    return (
        select(
            ProductVariant.product_id.label("product_id"),
            ProductVariant.color_id.label("color_id"),
            effective_price.label("effective_price"),
            func.row_number().over(
                partition_by=ProductVariant.product_id,
                order_by=(
                    case((ProductVariant.id == Product.default_variant_id, 0), else_=1),
                    effective_price.asc(),
                    ProductVariant.id.asc(),
                ),
            ).label("variant_rank"),
        )
        .join(Product, Product.id == ProductVariant.product_id)
        .where(combine(variant_predicates(filters)))
        .subquery("matching_variants")
    )


def build_product_query(filters: ProductFilters):
    """
    Returns `(page_stmt, count_stmt)` for the catalog listing.

    The price aggregate is inner-joined, which drops products that have no
    matching variant. The image color context is the representative matching
    variant's color when a color filter is active, else the default variant's.
    """
    matching = _matching_variants(filters)
    prices = (
        select(
            matching.c.product_id,
            func.min(matching.c.effective_price).label("min_price"),
            func.max(matching.c.effective_price).label("max_price"),
        )
        .group_by(matching.c.product_id)
        .subquery("variant_prices")
    )
    product_where = combine(product_predicates(filters))

    base = (
        select(Product.id)
        .join(prices, prices.c.product_id == Product.id)
        .where(product_where)
    )
    count_stmt = select(func.count()).select_from(base.subquery("matched_products"))

    stmt = (
        select(
            Product.id,
            Product.name,
            Product.created_at,
            Product.default_variant_id,
            Gender.label.label("gender_label"),
            prices.c.min_price,
            prices.c.max_price,
        )
        .select_from(Product)
        .join(prices, prices.c.product_id == Product.id)
        .outerjoin(Gender, Gender.id == Product.gender_id)
    )

    if filters.color_slugs:
        representative = (
            select(matching.c.product_id, matching.c.color_id)
            .where(matching.c.variant_rank == 1)
            .subquery("representative_variant")
        )
        stmt = stmt.join(representative, representative.c.product_id == Product.id)
        color_context = representative.c.color_id
    else:
        default_variant = aliased(ProductVariant, name="default_variant")
        stmt = stmt.outerjoin(default_variant, default_variant.id == Product.default_variant_id)
        color_context = default_variant.color_id

    stmt = with_representative_image(stmt, Product.id, color_context).where(product_where)

    if filters.sort == SortKey.PRICE_ASC:
        order = (prices.c.min_price.asc(), Product.id.asc())
    elif filters.sort == SortKey.PRICE_DESC:
        order = (prices.c.max_price.desc(), Product.id.asc())
    else:
        order = (Product.created_at.desc(), Product.id.asc())

    stmt = stmt.order_by(*order).limit(filters.limit).offset(filters.offset)
    return stmt, count_stmt


def build_variant_query(filters: ProductFilters):
    """Returns `(page_stmt, count_stmt)` for the per-SKU listing."""
    where = combine(product_predicates(filters) + variant_predicates(filters))

    base = (
        select(ProductVariant.id)
        .join(Product, Product.id == ProductVariant.product_id)
        .where(where)
    )
    count_stmt = select(func.count()).select_from(base.subquery("matched_variants"))

    stmt = (
        select(
            ProductVariant.id,
            ProductVariant.product_id,
            Product.name.label("product_name"),
            ProductVariant.sku,
            ProductVariant.price,
            ProductVariant.sale_price,
            Color.name.label("color_name"),
            Size.name.label("size_name"),
            ProductVariant.created_at,
            Gender.label.label("gender_label"),
        )
        .select_from(ProductVariant)
        .join(Product, Product.id == ProductVariant.product_id)
        .outerjoin(Color, Color.id == ProductVariant.color_id)
        .outerjoin(Size, Size.id == ProductVariant.size_id)
        .outerjoin(Gender, Gender.id == Product.gender_id)
    )
    stmt = with_representative_image(stmt, ProductVariant.product_id, ProductVariant.color_id).where(where)

    if filters.sort == SortKey.PRICE_ASC:
        order = (effective_price.asc(), ProductVariant.id.asc())
    elif filters.sort == SortKey.PRICE_DESC:
        order = (effective_price.desc(), ProductVariant.id.asc())
    else:
        order = (ProductVariant.created_at.desc(), ProductVariant.id.asc())

    stmt = stmt.order_by(*order).limit(filters.limit).offset(filters.offset)
    return stmt, count_stmt


# ===================================================================
# Listing operations
# ===================================================================

async def _run_listing(db: AsyncSession, mode: str, page_stmt, count_stmt, filters: ProductFilters):
    try:
        total_count = (await db.execute(count_stmt)).scalar_one()
        rows = (await db.execute(page_stmt)).all() if total_count else []
    except SQLAlchemyError as e:
        logger.exception(f"Catalog {mode} query failed. Active filters: {filters.active_filters()}")
        raise CatalogQueryError(f"{mode} listing failed") from e
    return rows, total_count


async def list_products(db: AsyncSession, filters: ProductFilters) -> ProductListResult:
    """One page of published products matching `filters`, plus the total match count."""
    page_stmt, count_stmt = build_product_query(filters)
    rows, total_count = await _run_listing(db, "product", page_stmt, count_stmt, filters)
    return ProductListResult(
        items=[project_product_row(row) for row in rows],
        total_count=total_count,
    )


async def list_variants(db: AsyncSession, filters: ProductFilters) -> VariantListResult:
    """One page of active variants of published products matching `filters`."""
    page_stmt, count_stmt = build_variant_query(filters)
    rows, total_count = await _run_listing(db, "variant", page_stmt, count_stmt, filters)
    return VariantListResult(
        items=[project_variant_row(row) for row in rows],
        total_count=total_count,
    )


# ===================================================================
# Filter sidebar
# ===================================================================

async def list_facets(db: AsyncSession) -> Facets:
    """All lookup values the filter sidebar can offer."""
    genders = (await db.execute(select(Gender).order_by(Gender.label))).scalars().all()
    brands = (await db.execute(select(Brand).order_by(Brand.name))).scalars().all()
    categories = (await db.execute(select(Category).order_by(Category.name))).scalars().all()
    colors = (await db.execute(select(Color).order_by(Color.name))).scalars().all()
    sizes = (await db.execute(select(Size).order_by(Size.sort_order, Size.name))).scalars().all()

    return Facets(
        genders=[LookupOut(id=g.id, name=g.label, slug=g.slug) for g in genders],
        brands=[LookupOut.model_validate(b) for b in brands],
        categories=[LookupOut.model_validate(c) for c in categories],
        colors=[ColorOut.model_validate(c) for c in colors],
        sizes=[SizeOut.model_validate(s) for s in sizes],
    )


# ===================================================================
# Product detail
# ===================================================================

def _active_variant():
    return (ProductVariant.is_active.is_(True), ProductVariant.is_deleted.is_(False))


async def get_product_details(
    db: AsyncSession, product_id: uuid.UUID, color_slug: Optional[str] = None
) -> Optional[ProductDetail]:
    """
    Everything the product page needs for one color of a published product.

    The selected color is the requested slug when the product has it,
    else the default variant's color, else the first available color.
    The thumbnail is the representative image for the selected color.
    Returns None when the product does not exist or is unpublished.
    """
    product = (
        await db.execute(
            select(Product)
            .where(Product.id == product_id, Product.is_published.is_(True))
            .options(
                selectinload(Product.brand),
                selectinload(Product.category),
                selectinload(Product.gender),
                selectinload(Product.collections),
            )
        )
    ).scalar_one_or_none()
    if product is None:
        return None

    colors = (
        await db.execute(
            select(Color)
            .where(
                Color.id.in_(
                    select(ProductVariant.color_id).where(
                        ProductVariant.product_id == product_id, *_active_variant()
                    )
                )
            )
            .order_by(Color.name, Color.id)
        )
    ).scalars().all()

    info = ProductInfo(
        id=product.id,
        name=product.name,
        description=product.description,
        brand=LookupOut.model_validate(product.brand) if product.brand else None,
        category=LookupOut.model_validate(product.category) if product.category else None,
        gender=(
            LookupOut(id=product.gender.id, name=product.gender.label, slug=product.gender.slug)
            if product.gender else None
        ),
        collections=[LookupOut.model_validate(c) for c in product.collections],
        default_variant_id=product.default_variant_id,
        subtitle=subtitle_for(product.gender.label if product.gender else None),
        created_at=product.created_at,
    )

    selected = None
    if color_slug:
        selected = next((c for c in colors if c.slug == color_slug), None)
    if selected is None and product.default_variant_id is not None:
        default_color_id = (
            await db.execute(
                select(ProductVariant.color_id).where(ProductVariant.id == product.default_variant_id)
            )
        ).scalar_one_or_none()
        selected = next((c for c in colors if c.id == default_color_id), None)
    if selected is None and colors:
        selected = colors[0]

    thumbnail_url = await resolve_image_url(db, product_id, selected.id if selected else None)

    if selected is None:
        return ProductDetail(
            product=info, available_colors=[], selected_color=None, sizes=[], images=[],
            thumbnail_url=thumbnail_url,
        )

    size_rows = (
        await db.execute(
            select(ProductVariant, Size)
            .join(Size, Size.id == ProductVariant.size_id)
            .where(
                ProductVariant.product_id == product_id,
                ProductVariant.color_id == selected.id,
                *_active_variant(),
            )
            .order_by(Size.sort_order, Size.name)
        )
    ).all()
    sizes = [
        SizeOption(
            variant_id=variant.id,
            sku=variant.sku,
            size_id=size.id,
            name=size.name,
            slug=size.slug,
            sort_order=size.sort_order,
            price=to_float(variant.price),
            sale_price=to_float(variant.sale_price),
            in_stock=variant.in_stock,
            low_stock=0 < variant.in_stock <= variant.low_stock_threshold,
            max_quantity_per_order=variant.max_quantity_per_order,
        )
        for variant, size in size_rows
    ]

    images = (
        await db.execute(
            select(ProductImage)
            .where(ProductImage.product_id == product_id, ProductImage.color_id == selected.id)
            .order_by(ProductImage.sort_order, ProductImage.id)
        )
    ).scalars().all()
    if not images:
        images = (
            await db.execute(
                select(ProductImage)
                .where(ProductImage.product_id == product_id, ProductImage.color_id.is_(None))
                .order_by(ProductImage.sort_order, ProductImage.id)
            )
        ).scalars().all()

    return ProductDetail(
        product=info,
        available_colors=[ColorOut.model_validate(c) for c in colors],
        selected_color=ColorOut.model_validate(selected),
        sizes=sizes,
        images=[ImageOut.model_validate(i) for i in images],
        thumbnail_url=thumbnail_url,
    )
