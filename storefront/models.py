# models.py
"""
Database models for the storefront.

This file defines all SQLAlchemy models used by the application,
providing a single source of truth for the database schema.

The catalog core only reads these tables; rows are written by the
admin back-office and the checkout flow.
"""

import uuid

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, Numeric,
    String, Table, Text, Uuid, func
)
from sqlalchemy.orm import relationship

from storefront.db import Base


# -----------------------
# Lookup / dimension tables
# -----------------------

class Gender(Base):
    __tablename__ = "genders"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    label = Column(String(64), nullable=False)
    slug = Column(String(64), unique=True, nullable=False, index=True)


class Brand(Base):
    __tablename__ = "brands"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    logo_url = Column(String(1024), nullable=True)


class Category(Base):
    __tablename__ = "categories"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=True)


class Color(Base):
    __tablename__ = "colors"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(64), nullable=False)
    slug = Column(String(64), unique=True, nullable=False, index=True)
    hex_code = Column(String(7), nullable=False)


class Size(Base):
    __tablename__ = "sizes"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(32), nullable=False)
    slug = Column(String(32), unique=True, nullable=False, index=True)
    sort_order = Column(Integer, nullable=False, default=0)  # display sequence


product_collections = Table(
    "product_collections",
    Base.metadata,
    Column("product_id", Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("collection_id", Uuid(as_uuid=True), ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True),
)


class Collection(Base):
    __tablename__ = "collections"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# -----------------------
# Catalog
# -----------------------

class Product(Base):
    __tablename__ = "products"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    brand_id = Column(Uuid(as_uuid=True), ForeignKey("brands.id", ondelete="SET NULL"), nullable=True, index=True)
    gender_id = Column(Uuid(as_uuid=True), ForeignKey("genders.id", ondelete="SET NULL"), nullable=True, index=True)
    is_published = Column(Boolean, nullable=False, default=False)
    # Plain column rather than a FK: products and variants would otherwise
    # reference each other.
    default_variant_id = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category")
    brand = relationship("Brand")
    gender = relationship("Gender")
    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")
    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan")
    collections = relationship("Collection", secondary=product_collections)


class ProductVariant(Base):
    __tablename__ = "product_variants"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    sku = Column(String(128), unique=True, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=True)
    cost_price = Column(Numeric(10, 2), nullable=True)
    color_id = Column(Uuid(as_uuid=True), ForeignKey("colors.id", ondelete="RESTRICT"), nullable=False, index=True)
    size_id = Column(Uuid(as_uuid=True), ForeignKey("sizes.id", ondelete="RESTRICT"), nullable=False, index=True)
    in_stock = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=10)  # "only x left" warning
    max_quantity_per_order = Column(Integer, nullable=False, default=10)
    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)  # soft delete
    weight = Column(Float, nullable=True)
    dimensions = Column(JSON, nullable=True)  # {"length": .., "width": .., "height": ..}
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    product = relationship("Product", back_populates="variants")
    color = relationship("Color")
    size = relationship("Size")


class ProductImage(Base):
    """
    Images belong to a (product, color) pair, not to a single variant.
    A NULL color_id marks a default image usable for any color.
    """
    __tablename__ = "product_images"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    color_id = Column(Uuid(as_uuid=True), ForeignKey("colors.id", ondelete="CASCADE"), nullable=True, index=True)
    url = Column(String(1024), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    product = relationship("Product", back_populates="images")


# -----------------------
# Orders
# -----------------------

class Order(Base):
    __tablename__ = "orders"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    # Values: pending, paid, shipped, delivered, cancelled
    total_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_variant_id = Column(Uuid(as_uuid=True), ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    price_at_purchase = Column(Numeric(10, 2), nullable=True)

    order = relationship("Order", back_populates="items")
