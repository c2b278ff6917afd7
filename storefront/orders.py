# orders.py
import uuid
import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth import get_current_user_id
from storefront.db import get_db
from storefront.models import Order, OrderItem, Product, ProductVariant
from storefront.schemas import CamelModel, to_float

# --- Configuration & Setup ---
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["Orders"])

UNKNOWN_PRODUCT = "Unknown Product"


# --- Pydantic Schemas for Data Validation ---

class OrderItemOut(CamelModel):
    id: uuid.UUID
    product_name: str
    quantity: int
    price_at_purchase: Optional[float] = None


class OrderOut(CamelModel):
    id: uuid.UUID
    status: str
    total_amount: float
    created_at: datetime
    items: List[OrderItemOut]


# --- Queries ---

async def get_user_orders(db: AsyncSession, user_id: uuid.UUID) -> List[OrderOut]:
    """
    All orders of `user_id`, newest first, each with its line items.

    Items whose variant or product has since been removed still show up,
    under a placeholder product name.
    """
    query = (
        select(
            Order.id.label("order_id"),
            Order.status,
            Order.total_amount,
            Order.created_at,
            OrderItem.id.label("item_id"),
            OrderItem.quantity,
            OrderItem.price_at_purchase,
            Product.name.label("product_name"),
        )
        .select_from(Order)
        .outerjoin(OrderItem, OrderItem.order_id == Order.id)
        .outerjoin(ProductVariant, ProductVariant.id == OrderItem.product_variant_id)
        .outerjoin(Product, Product.id == ProductVariant.product_id)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id, OrderItem.id)
    )
    rows = (await db.execute(query)).all()

    # Group the flat rows back into orders, keeping query order.
    orders: Dict[uuid.UUID, OrderOut] = {}
    for row in rows:
        order = orders.get(row.order_id)
        if order is None:
            order = OrderOut(
                id=row.order_id,
                status=row.status,
                total_amount=to_float(row.total_amount) or 0.0,
                created_at=row.created_at,
                items=[],
            )
            orders[row.order_id] = order
        if row.item_id is not None:
            order.items.append(
                OrderItemOut(
                    id=row.item_id,
                    product_name=row.product_name or UNKNOWN_PRODUCT,
                    quantity=row.quantity or 1,
                    price_at_purchase=to_float(row.price_at_purchase),
                )
            )

    logger.info(f"Loaded {len(orders)} orders for user {user_id}.")
    return list(orders.values())


# --- Order History Endpoint ---

@router.get("/me", response_model=List[OrderOut])
async def get_my_orders(
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Retrieves all orders for the currently logged-in user."""
    return await get_user_orders(db, user_id)
