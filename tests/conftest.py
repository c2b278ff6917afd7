"""
Shared fixtures: an in-memory SQLite database per test and a small
helper for seeding catalog rows.
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.db import Base
from storefront.models import (
    Brand, Category, Collection, Color, Gender, Order, OrderItem, Product,
    ProductImage, ProductVariant, Size
)

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine():
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        yield session


class CatalogSeeder:
    """Adds catalog rows with sensible defaults; call `commit()` when done."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._clock = datetime(2024, 1, 1, 12, 0, 0)
        self._sku = 0
        self._default_color = None
        self._default_size = None

    def _tick(self) -> datetime:
        self._clock += timedelta(minutes=1)
        return self._clock

    def gender(self, label: str, slug: str = None) -> Gender:
        row = Gender(id=uuid.uuid4(), label=label, slug=slug or label.lower())
        self.session.add(row)
        return row

    def brand(self, name: str, slug: str = None) -> Brand:
        row = Brand(id=uuid.uuid4(), name=name, slug=slug or name.lower())
        self.session.add(row)
        return row

    def category(self, name: str, slug: str = None) -> Category:
        row = Category(id=uuid.uuid4(), name=name, slug=slug or name.lower())
        self.session.add(row)
        return row

    def collection(self, name: str, slug: str = None) -> Collection:
        row = Collection(id=uuid.uuid4(), name=name, slug=slug or name.lower())
        self.session.add(row)
        return row

    def color(self, name: str, slug: str = None, hex_code: str = "#000000") -> Color:
        row = Color(id=uuid.uuid4(), name=name, slug=slug or name.lower(), hex_code=hex_code)
        self.session.add(row)
        return row

    def size(self, name: str, slug: str = None, sort_order: int = 0) -> Size:
        row = Size(id=uuid.uuid4(), name=name, slug=slug or name.lower(), sort_order=sort_order)
        self.session.add(row)
        return row

    @property
    def default_color(self) -> Color:
        if self._default_color is None:
            self._default_color = self.color("Black")
        return self._default_color

    @property
    def default_size(self) -> Size:
        if self._default_size is None:
            self._default_size = self.size("M", sort_order=20)
        return self._default_size

    def product(self, name: str, *, gender=None, brand=None, category=None,
                published=True, description=None, created_at=None) -> Product:
        row = Product(
            id=uuid.uuid4(),
            name=name,
            description=description,
            gender_id=gender.id if gender else None,
            brand_id=brand.id if brand else None,
            category_id=category.id if category else None,
            is_published=published,
            created_at=created_at or self._tick(),
        )
        self.session.add(row)
        return row

    def variant(self, product: Product, price, *, color=None, size=None, sale_price=None,
                active=True, deleted=False, default=False, in_stock=20,
                low_stock_threshold=10, sku=None) -> ProductVariant:
        self._sku += 1
        row = ProductVariant(
            id=uuid.uuid4(),
            product_id=product.id,
            sku=sku or f"SKU-{self._sku:04d}",
            price=Decimal(str(price)),
            sale_price=Decimal(str(sale_price)) if sale_price is not None else None,
            color_id=(color or self.default_color).id,
            size_id=(size or self.default_size).id,
            in_stock=in_stock,
            low_stock_threshold=low_stock_threshold,
            is_active=active,
            is_deleted=deleted,
            created_at=self._tick(),
        )
        self.session.add(row)
        if default:
            product.default_variant_id = row.id
        return row

    def image(self, product: Product, url: str, *, color=None, primary=False, sort_order=0) -> ProductImage:
        row = ProductImage(
            id=uuid.uuid4(),
            product_id=product.id,
            color_id=color.id if color else None,
            url=url,
            is_primary=primary,
            sort_order=sort_order,
        )
        self.session.add(row)
        return row

    def order(self, user_id, total, *, status="paid", created_at=None) -> Order:
        row = Order(
            id=uuid.uuid4(),
            user_id=user_id,
            status=status,
            total_amount=Decimal(str(total)),
            created_at=created_at or self._tick(),
        )
        self.session.add(row)
        return row

    def order_item(self, order: Order, variant=None, quantity=1, price=None) -> OrderItem:
        row = OrderItem(
            id=uuid.uuid4(),
            order_id=order.id,
            product_variant_id=variant.id if variant else None,
            quantity=quantity,
            price_at_purchase=Decimal(str(price)) if price is not None else None,
        )
        self.session.add(row)
        return row

    async def commit(self):
        await self.session.commit()


@pytest.fixture
def seed(db):
    return CatalogSeeder(db)
