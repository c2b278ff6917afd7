# images.py
"""
Representative image resolution.

Every listing row gets at most one image URL, picked in this order:

1. the best image of the row's (product, color) pair;
2. the best image of the product in any color;
3. nothing (the frontend shows a placeholder).

"Best" means primary images first, then ascending sort order, then id.
Both scopes are ranked with ROW_NUMBER() windows over `product_images`
and joined into the listing query as two subqueries, so resolution
happens inside the same round trip as the listing itself.
"""

from typing import NamedTuple, Optional

from sqlalchemy import and_, func, select

from storefront.models import ProductImage

_IMAGE_ORDER = (
    ProductImage.is_primary.desc(),
    ProductImage.sort_order.asc(),
    ProductImage.id.asc(),
)


def ranked_images():
    """All product images with their rank inside each fallback scope."""
    return select(
        ProductImage.product_id,
        ProductImage.color_id,
        ProductImage.url,
        func.row_number().over(
            partition_by=(ProductImage.product_id, ProductImage.color_id),
            order_by=_IMAGE_ORDER,
        ).label("color_rank"),
        func.row_number().over(
            partition_by=ProductImage.product_id,
            order_by=_IMAGE_ORDER,
        ).label("product_rank"),
    )


class ImageScopes(NamedTuple):
    """The two ranked subqueries plus the coalesced URL expression."""
    specific: object
    broad: object
    url: object


def image_scopes() -> ImageScopes:
    specific = ranked_images().subquery("specific_image")
    broad = ranked_images().subquery("broad_image")
    return ImageScopes(specific=specific, broad=broad, url=func.coalesce(specific.c.url, broad.c.url))


def with_representative_image(stmt, product_id_col, color_id_col):
    """
    Outer-joins both image scopes onto `stmt` and adds an `image_url`
    column for the product in `product_id_col` under the color context
    in `color_id_col`. A NULL color context never matches the specific
    scope, so such rows fall through to the product-wide image.
    """
    scopes = image_scopes()
    return (
        stmt.add_columns(scopes.url.label("image_url"))
        .outerjoin(
            scopes.specific,
            and_(
                scopes.specific.c.product_id == product_id_col,
                scopes.specific.c.color_id == color_id_col,
                scopes.specific.c.color_rank == 1,
            ),
        )
        .outerjoin(
            scopes.broad,
            and_(
                scopes.broad.c.product_id == product_id_col,
                scopes.broad.c.product_rank == 1,
            ),
        )
    )


async def resolve_image_url(db, product_id, color_id=None) -> Optional[str]:
    """
    Resolves the representative image of a single product outside of a
    listing. Used for the product page thumbnail.
    """
    scopes = image_scopes()
    if color_id is None:
        stmt = select(scopes.broad.c.url).select_from(scopes.broad)
    else:
        stmt = (
            select(scopes.url)
            .select_from(scopes.broad)
            .outerjoin(
                scopes.specific,
                and_(
                    scopes.specific.c.product_id == scopes.broad.c.product_id,
                    scopes.specific.c.color_id == color_id,
                    scopes.specific.c.color_rank == 1,
                ),
            )
        )
    stmt = stmt.where(
        scopes.broad.c.product_id == product_id,
        scopes.broad.c.product_rank == 1,
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()
