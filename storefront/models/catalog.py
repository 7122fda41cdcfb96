"""Catalog models: categories, products, variants and attributes."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from .users import new_id, utcnow

if TYPE_CHECKING:
    from .collections import Collection
    from .media import Media


class Category(Base):
    """Product category, optionally nested under a parent category."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    parent_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    parent: Mapped[Category | None] = relationship(
        "Category", remote_side="Category.id", back_populates="children"
    )
    children: Mapped[list[Category]] = relationship(
        "Category", back_populates="parent", passive_deletes=True
    )


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("categories.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    category: Mapped[Category] = relationship("Category")
    variants: Mapped[list[ProductVariant]] = relationship(
        "ProductVariant",
        back_populates="product",
        passive_deletes=True,
        order_by="ProductVariant.sku",
    )
    images: Mapped[list[ProductImage]] = relationship(
        "ProductImage",
        back_populates="product",
        passive_deletes=True,
        order_by="ProductImage.display_order",
    )
    collections: Mapped[list[Collection]] = relationship(
        "Collection",
        secondary="product_collections",
        viewonly=True,
        order_by="Collection.name",
    )


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    sku: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )

    product: Mapped[Product] = relationship("Product", back_populates="variants")
    attribute_values: Mapped[list[AttributeValue]] = relationship(
        "AttributeValue",
        secondary="attribute_value_to_variant",
        viewonly=True,
        order_by="AttributeValue.value",
    )


class Attribute(Base):
    """A named product dimension such as ``Color`` or ``Size``."""

    __tablename__ = "attributes"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    values: Mapped[list[AttributeValue]] = relationship(
        "AttributeValue",
        back_populates="attribute",
        passive_deletes=True,
        order_by="AttributeValue.value",
    )


class AttributeValue(Base):
    __tablename__ = "attribute_values"
    __table_args__ = (
        UniqueConstraint("attribute_id", "value", name="uq_attribute_values_attribute_value"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    attribute_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("attributes.id", ondelete="CASCADE"),
        nullable=False,
    )

    attribute: Mapped[Attribute] = relationship("Attribute", back_populates="values")


class AttributeValueToVariant(Base):
    """Link table between attribute values and product variants."""

    __tablename__ = "attribute_value_to_variant"

    attribute_value_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("attribute_values.id", ondelete="CASCADE"),
        primary_key=True,
    )
    product_variant_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("product_variants.id", ondelete="CASCADE"),
        primary_key=True,
    )


class ProductImage(Base):
    __tablename__ = "product_images"
    __table_args__ = (
        UniqueConstraint("product_id", "media_id", name="uq_product_images_product_media"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    media_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("media.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    product: Mapped[Product] = relationship("Product", back_populates="images")
    media: Mapped[Media] = relationship("Media")


Index("ix_products_category_id", Product.category_id)
Index("ix_products_created_at", Product.created_at)
Index("ix_product_variants_product_id", ProductVariant.product_id)
Index("ix_product_variants_price", ProductVariant.price)
Index("ix_categories_parent_id", Category.parent_id)
