"""Persistence for products, categories and attributes."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import models

_PRODUCT_LOAD_OPTIONS = (
    selectinload(models.Product.category),
    selectinload(models.Product.variants)
    .selectinload(models.ProductVariant.attribute_values)
    .selectinload(models.AttributeValue.attribute),
    selectinload(models.Product.images).selectinload(models.ProductImage.media),
    selectinload(models.Product.collections),
)


@dataclass(slots=True)
class VariantData:
    sku: str
    price: float
    stock_quantity: int = 0
    # (attribute name, value) pairs
    attributes: list[tuple[str, str]] = field(default_factory=list)


@dataclass(slots=True)
class ProductQuery:
    page: int = 1
    limit: int = 10
    search: str | None = None
    category_id: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    sort: str = "newest"


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


class ProductRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # --- categories ---------------------------------------------------------

    async def get_category(self, category_id: str) -> models.Category | None:
        return await self.db.get(models.Category, category_id)

    async def get_category_detail(self, category_id: str) -> models.Category | None:
        result = await self.db.execute(
            sa.select(models.Category)
            .where(models.Category.id == category_id)
            .options(
                selectinload(models.Category.parent),
                selectinload(models.Category.children),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_category_by(self, *, slug: str | None = None, name: str | None = None) -> models.Category | None:
        stmt = sa.select(models.Category)
        if slug is not None:
            stmt = stmt.where(models.Category.slug == slug)
        if name is not None:
            stmt = stmt.where(models.Category.name == name)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def list_categories(self, *, page: int, limit: int) -> tuple[list[models.Category], int]:
        total = await self.db.scalar(sa.select(sa.func.count()).select_from(models.Category))
        result = await self.db.execute(
            sa.select(models.Category)
            .options(
                selectinload(models.Category.parent),
                selectinload(models.Category.children),
            )
            .order_by(models.Category.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars()), int(total or 0)

    async def save_category(self, category: models.Category) -> models.Category:
        self.db.add(category)
        await self._commit()
        return category

    async def delete_categories(self, ids: Sequence[str]) -> int:
        result = await self.db.execute(
            sa.delete(models.Category).where(models.Category.id.in_(ids))
        )
        await self._commit()
        return int(result.rowcount or 0)

    # --- attributes ---------------------------------------------------------

    async def get_attribute(self, attribute_id: str) -> models.Attribute | None:
        result = await self.db.execute(
            sa.select(models.Attribute)
            .where(models.Attribute.id == attribute_id)
            .options(selectinload(models.Attribute.values))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_attribute_by_name(self, name: str) -> models.Attribute | None:
        result = await self.db.execute(
            sa.select(models.Attribute).where(models.Attribute.name == name)
        )
        return result.scalar_one_or_none()

    async def list_attributes(self, *, page: int, limit: int) -> tuple[list[models.Attribute], int]:
        total = await self.db.scalar(sa.select(sa.func.count()).select_from(models.Attribute))
        result = await self.db.execute(
            sa.select(models.Attribute)
            .options(selectinload(models.Attribute.values))
            .order_by(models.Attribute.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars()), int(total or 0)

    async def save_attribute(self, attribute: models.Attribute) -> models.Attribute:
        self.db.add(attribute)
        await self._commit()
        return attribute

    async def delete_attributes(self, ids: Sequence[str]) -> int:
        result = await self.db.execute(
            sa.delete(models.Attribute).where(models.Attribute.id.in_(ids))
        )
        await self._commit()
        return int(result.rowcount or 0)

    # --- products -----------------------------------------------------------

    async def get_product(self, product_id: str) -> models.Product | None:
        result = await self.db.execute(
            sa.select(models.Product)
            .where(models.Product.id == product_id)
            .options(*_PRODUCT_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_product_by_slug(self, slug: str) -> models.Product | None:
        result = await self.db.execute(
            sa.select(models.Product).where(models.Product.slug == slug)
        )
        return result.scalar_one_or_none()

    async def existing_media_ids(self, ids: Sequence[str]) -> set[str]:
        if not ids:
            return set()
        result = await self.db.execute(
            sa.select(models.Media.id).where(models.Media.id.in_(ids))
        )
        return set(result.scalars())

    async def existing_collection_ids(self, ids: Sequence[str]) -> set[str]:
        if not ids:
            return set()
        result = await self.db.execute(
            sa.select(models.Collection.id).where(models.Collection.id.in_(ids))
        )
        return set(result.scalars())

    async def existing_skus(self, skus: Sequence[str], *, exclude_product_id: str | None = None) -> set[str]:
        if not skus:
            return set()
        stmt = sa.select(models.ProductVariant.sku).where(models.ProductVariant.sku.in_(skus))
        if exclude_product_id is not None:
            stmt = stmt.where(models.ProductVariant.product_id != exclude_product_id)
        result = await self.db.execute(stmt)
        return set(result.scalars())

    async def list_products(self, query: ProductQuery) -> tuple[list[models.Product], int]:
        conditions: list[sa.ColumnElement[bool]] = []
        if query.search:
            conditions.append(models.Product.name.icontains(query.search, autoescape=True))
        if query.category_id:
            conditions.append(models.Product.category_id == query.category_id)
        if query.min_price is not None or query.max_price is not None:
            # A product matches when any one of its variants is inside the range
            price_conditions = [models.ProductVariant.product_id == models.Product.id]
            if query.min_price is not None:
                price_conditions.append(models.ProductVariant.price >= query.min_price)
            if query.max_price is not None:
                price_conditions.append(models.ProductVariant.price <= query.max_price)
            conditions.append(sa.exists().where(*price_conditions))

        total = await self.db.scalar(
            sa.select(sa.func.count(models.Product.id)).where(*conditions)
        )

        min_price = (
            sa.select(sa.func.min(models.ProductVariant.price))
            .where(models.ProductVariant.product_id == models.Product.id)
            .correlate(models.Product)
            .scalar_subquery()
        )
        order_by = {
            "newest": (models.Product.created_at.desc(), models.Product.id),
            "oldest": (models.Product.created_at.asc(), models.Product.id),
            "price_asc": (min_price.asc(), models.Product.id),
            "price_desc": (min_price.desc(), models.Product.id),
        }[query.sort]

        result = await self.db.execute(
            sa.select(models.Product)
            .where(*conditions)
            .options(*_PRODUCT_LOAD_OPTIONS)
            .order_by(*order_by)
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
        return list(result.scalars()), int(total or 0)

    async def _get_or_create_attribute(
        self, name: str, cache: dict[str, models.Attribute]
    ) -> models.Attribute:
        attribute = cache.get(name)
        if attribute is None:
            attribute = await self.find_attribute_by_name(name)
            if attribute is None:
                attribute = models.Attribute(name=name)
                self.db.add(attribute)
                await self.db.flush()
            cache[name] = attribute
        return attribute

    async def _get_or_create_value(
        self,
        attribute: models.Attribute,
        value: str,
        cache: dict[tuple[str, str], models.AttributeValue],
    ) -> models.AttributeValue:
        key = (attribute.id, value)
        record = cache.get(key)
        if record is None:
            result = await self.db.execute(
                sa.select(models.AttributeValue).where(
                    models.AttributeValue.attribute_id == attribute.id,
                    models.AttributeValue.value == value,
                )
            )
            record = result.scalar_one_or_none()
            if record is None:
                record = models.AttributeValue(attribute_id=attribute.id, value=value)
                self.db.add(record)
                await self.db.flush()
            cache[key] = record
        return record

    async def _add_variants(self, product_id: str, variants: Sequence[VariantData]) -> None:
        attributes: dict[str, models.Attribute] = {}
        values: dict[tuple[str, str], models.AttributeValue] = {}
        for data in variants:
            variant = models.ProductVariant(
                product_id=product_id,
                sku=data.sku,
                price=data.price,
                stock_quantity=data.stock_quantity,
            )
            self.db.add(variant)
            await self.db.flush()
            linked: set[str] = set()
            for name, value in data.attributes:
                attribute = await self._get_or_create_attribute(name, attributes)
                attribute_value = await self._get_or_create_value(attribute, value, values)
                if attribute_value.id in linked:
                    continue
                linked.add(attribute_value.id)
                self.db.add(
                    models.AttributeValueToVariant(
                        attribute_value_id=attribute_value.id,
                        product_variant_id=variant.id,
                    )
                )
            await self.db.flush()

    def _add_images(self, product_id: str, media_ids: Sequence[str]) -> None:
        self.db.add_all(
            models.ProductImage(product_id=product_id, media_id=media_id, display_order=index)
            for index, media_id in enumerate(_unique(media_ids))
        )

    async def link_collections(self, product_id: str, collection_ids: Sequence[str]) -> None:
        """Associate collections with a product, skipping existing links."""

        wanted = _unique(collection_ids)
        if not wanted:
            return
        result = await self.db.execute(
            sa.select(models.ProductCollection.collection_id).where(
                models.ProductCollection.product_id == product_id,
                models.ProductCollection.collection_id.in_(wanted),
            )
        )
        existing = set(result.scalars())
        self.db.add_all(
            models.ProductCollection(product_id=product_id, collection_id=collection_id)
            for collection_id in wanted
            if collection_id not in existing
        )

    async def create_product(
        self,
        *,
        name: str,
        slug: str,
        description: str,
        category_id: str,
        media_ids: Sequence[str],
        collection_ids: Sequence[str],
        variants: Sequence[VariantData],
    ) -> str:
        """Write the product and everything hanging off it in one transaction."""

        try:
            product = models.Product(
                name=name, slug=slug, description=description, category_id=category_id
            )
            self.db.add(product)
            await self.db.flush()
            self._add_images(product.id, media_ids)
            await self.link_collections(product.id, collection_ids)
            await self._add_variants(product.id, variants)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return product.id

    async def update_product(
        self,
        product: models.Product,
        *,
        fields: dict[str, object],
        media_ids: Sequence[str] | None = None,
        collection_ids: Sequence[str] | None = None,
        variants: Sequence[VariantData] | None = None,
    ) -> None:
        """Apply ``fields`` and replace the given child collections atomically."""

        try:
            for key, value in fields.items():
                setattr(product, key, value)
            self.db.add(product)
            if media_ids is not None:
                await self.db.execute(
                    sa.delete(models.ProductImage).where(
                        models.ProductImage.product_id == product.id
                    )
                )
                self._add_images(product.id, media_ids)
            if collection_ids is not None:
                await self.db.execute(
                    sa.delete(models.ProductCollection).where(
                        models.ProductCollection.product_id == product.id
                    )
                )
                await self.link_collections(product.id, collection_ids)
            if variants is not None:
                await self.db.execute(
                    sa.delete(models.ProductVariant).where(
                        models.ProductVariant.product_id == product.id
                    )
                )
                await self._add_variants(product.id, variants)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def delete_products(self, ids: Sequence[str]) -> int:
        result = await self.db.execute(
            sa.delete(models.Product).where(models.Product.id.in_(ids))
        )
        await self._commit()
        return int(result.rowcount or 0)
