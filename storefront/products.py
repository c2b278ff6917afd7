# products.py
import uuid
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront import catalog
from storefront.catalog import CatalogQueryError
from storefront.db import get_db
from storefront.filters import normalize_filters
from storefront.schemas import Facets, ProductDetail, ProductListResult, VariantListResult

# --- Configuration & Setup ---
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/products", tags=["Products"])

LISTING_FAILED = "Unable to load products right now."


# --- API Endpoints ---

@router.get("", response_model=ProductListResult, summary="List catalog products")
async def list_products(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Lists published products, one card per product.

    Supported query parameters: `search`, `gender`, `brand`, `category`,
    `color`, `size`, `price` (repeatable, `min-max` / `min-` / `-max`),
    `min_price`, `max_price`, `sort` (`newest`, `price_asc`, `price_desc`),
    `page` and `limit`. Unknown or malformed values fall back to defaults.
    """
    filters = normalize_filters(request.query_params)
    try:
        return await catalog.list_products(db, filters)
    except CatalogQueryError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=LISTING_FAILED)


@router.get("/variants", response_model=VariantListResult, summary="List variants (SKUs)")
async def list_variants(request: Request, db: AsyncSession = Depends(get_db)):
    """Lists active variants of published products; same filters as the product listing."""
    filters = normalize_filters(request.query_params)
    try:
        return await catalog.list_variants(db, filters)
    except CatalogQueryError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=LISTING_FAILED)


@router.get("/facets", response_model=Facets, summary="Filter options for the catalog sidebar")
async def list_facets(db: AsyncSession = Depends(get_db)):
    return await catalog.list_facets(db)


@router.get("/{product_id}", response_model=ProductDetail, summary="Product page data")
async def get_product(
    product_id: uuid.UUID,
    color: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """
    Returns a published product with its colors, and the sizes and images
    of the selected color (`?color=<slug>`, else the default color).
    """
    details = await catalog.get_product_details(db, product_id, color)
    if details is None:
        logger.info(f"Product {product_id} not found or unpublished.")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return details
