"""Catalog rules for products, categories and attributes."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .. import models, schemas
from ..errors import BadRequestError, ConflictError, NotFoundError, ValidationError
from ..repositories import ProductQuery, ProductRepository, VariantData

logger = logging.getLogger("storefront.catalog")

_DATASET = "storefront-api.catalog"


def _variant_data(variants: Sequence[schemas.VariantInput]) -> list[VariantData]:
    return [
        VariantData(
            sku=variant.sku,
            price=variant.price,
            stock_quantity=variant.stock,
            attributes=[(item.name, item.value) for item in variant.attributes],
        )
        for variant in variants
    ]


def page_meta(*, total: int, page: int, limit: int) -> schemas.PageMeta:
    return schemas.PageMeta(
        total=total,
        page=page,
        limit=limit,
        total_pages=(total + limit - 1) // limit if limit else 0,
    )


class ProductService:
    def __init__(self, repo: ProductRepository) -> None:
        self.repo = repo

    # --- products -----------------------------------------------------------

    async def _check_references(
        self,
        *,
        category_id: str | None,
        media_ids: Sequence[str] | None,
        collection_ids: Sequence[str] | None,
    ) -> None:
        if category_id is not None and await self.repo.get_category(category_id) is None:
            raise NotFoundError("Category not found")
        if media_ids:
            missing = set(media_ids) - await self.repo.existing_media_ids(media_ids)
            if missing:
                raise NotFoundError(
                    "Media not found", errors={"mediaIds": sorted(missing)}
                )
        if collection_ids:
            missing = set(collection_ids) - await self.repo.existing_collection_ids(
                collection_ids
            )
            if missing:
                raise NotFoundError(
                    "Collection not found", errors={"collectionIds": sorted(missing)}
                )

    async def _check_skus(
        self, variants: Sequence[schemas.VariantInput], *, product_id: str | None = None
    ) -> None:
        skus = [variant.sku for variant in variants]
        if len(set(skus)) != len(skus):
            duplicates = sorted({sku for sku in skus if skus.count(sku) > 1})
            raise ValidationError(
                "Variant SKUs must be unique", errors={"variants": duplicates}
            )
        taken = await self.repo.existing_skus(skus, exclude_product_id=product_id)
        if taken:
            raise ConflictError("SKU already exists", errors={"sku": sorted(taken)})

    async def create_product(self, data: schemas.ProductCreate) -> models.Product:
        # Everything is validated before the first insert
        await self._check_references(
            category_id=data.category_id,
            media_ids=data.media_ids,
            collection_ids=data.collection_ids,
        )
        if await self.repo.find_product_by_slug(data.slug) is not None:
            raise ConflictError("Product with this slug already exists")
        await self._check_skus(data.variants)

        product_id = await self.repo.create_product(
            name=data.name,
            slug=data.slug,
            description=data.description,
            category_id=data.category_id,
            media_ids=data.media_ids,
            collection_ids=data.collection_ids,
            variants=_variant_data(data.variants),
        )
        logger.info(
            "Product created",
            extra={
                "event_dataset": _DATASET,
                "event_action": "product_created",
                "product_id": product_id,
            },
        )
        return await self.get_product(product_id)

    async def list_products(self, query: schemas.ProductFilter) -> schemas.ProductPage:
        if (
            query.min_price is not None
            and query.max_price is not None
            and query.min_price > query.max_price
        ):
            raise ValidationError(errors={"maxPrice": "maxPrice must not be below minPrice"})
        products, total = await self.repo.list_products(
            ProductQuery(
                page=query.page,
                limit=query.limit,
                search=query.search,
                category_id=query.category_id,
                min_price=query.min_price,
                max_price=query.max_price,
                sort=query.sort,
            )
        )
        return schemas.ProductPage(
            data=[schemas.ProductRead.model_validate(item) for item in products],
            meta=page_meta(total=total, page=query.page, limit=query.limit),
        )

    async def get_product(self, product_id: str) -> models.Product:
        product = await self.repo.get_product(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    async def update_product(self, product_id: str, data: schemas.ProductUpdate) -> models.Product:
        product = await self.get_product(product_id)
        await self._check_references(
            category_id=data.category_id,
            media_ids=data.media_ids,
            collection_ids=data.collection_ids,
        )
        if data.slug is not None and data.slug != product.slug:
            if await self.repo.find_product_by_slug(data.slug) is not None:
                raise ConflictError("Product with this slug already exists")
        if data.variants is not None:
            if not data.variants:
                raise BadRequestError("A product needs at least one variant")
            await self._check_skus(data.variants, product_id=product.id)

        fields = data.model_dump(
            include={"name", "description", "slug", "category_id"}, exclude_none=True
        )
        await self.repo.update_product(
            product,
            fields=fields,
            media_ids=data.media_ids,
            collection_ids=data.collection_ids,
            variants=_variant_data(data.variants) if data.variants is not None else None,
        )
        logger.info(
            "Product updated",
            extra={
                "event_dataset": _DATASET,
                "event_action": "product_updated",
                "product_id": product.id,
            },
        )
        return await self.get_product(product.id)

    async def delete_product(self, product_id: str) -> None:
        await self.get_product(product_id)
        await self.repo.delete_products([product_id])
        logger.info(
            "Product deleted",
            extra={
                "event_dataset": _DATASET,
                "event_action": "product_deleted",
                "product_id": product_id,
            },
        )

    async def delete_products(self, ids: Sequence[str]) -> int:
        return await self.repo.delete_products(ids)

    # --- categories ---------------------------------------------------------

    async def _check_category_clash(
        self, *, name: str | None, slug: str | None, current_id: str | None = None
    ) -> None:
        if slug is not None:
            existing = await self.repo.find_category_by(slug=slug)
            if existing is not None and existing.id != current_id:
                raise ConflictError("Category with this slug already exists")
        if name is not None:
            existing = await self.repo.find_category_by(name=name)
            if existing is not None and existing.id != current_id:
                raise ConflictError("Category with this name already exists")

    async def create_category(self, data: schemas.CategoryCreate) -> models.Category:
        await self._check_category_clash(name=data.name, slug=data.slug)
        if data.parent_id and await self.repo.get_category(data.parent_id) is None:
            raise NotFoundError("Parent category not found")
        category = await self.repo.save_category(
            models.Category(name=data.name, slug=data.slug, parent_id=data.parent_id)
        )
        return await self.get_category(category.id)

    async def list_categories(self, *, page: int, limit: int) -> schemas.CategoryPage:
        categories, total = await self.repo.list_categories(page=page, limit=limit)
        return schemas.CategoryPage(
            data=[schemas.CategoryDetail.model_validate(item) for item in categories],
            meta=page_meta(total=total, page=page, limit=limit),
        )

    async def get_category(self, category_id: str) -> models.Category:
        category = await self.repo.get_category_detail(category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def _check_not_ancestor(self, category_id: str, parent: models.Category) -> None:
        seen = {parent.id}
        while parent.parent_id is not None and parent.parent_id not in seen:
            if parent.parent_id == category_id:
                raise BadRequestError("A category cannot be moved under its own subcategory")
            seen.add(parent.parent_id)
            next_parent = await self.repo.get_category(parent.parent_id)
            if next_parent is None:
                return
            parent = next_parent

    async def update_category(
        self, category_id: str, data: schemas.CategoryUpdate
    ) -> models.Category:
        category = await self.get_category(category_id)
        await self._check_category_clash(
            name=data.name, slug=data.slug, current_id=category.id
        )
        if data.parent_id is not None:
            if data.parent_id == category.id:
                raise BadRequestError("A category cannot be its own parent")
            parent = await self.repo.get_category(data.parent_id)
            if parent is None:
                raise NotFoundError("Parent category not found")
            await self._check_not_ancestor(category.id, parent)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is None and key != "parent_id":
                continue
            setattr(category, key, value)
        await self.repo.save_category(category)
        return await self.get_category(category.id)

    async def delete_category(self, category_id: str) -> None:
        await self.get_category(category_id)
        await self.repo.delete_categories([category_id])

    async def delete_categories(self, ids: Sequence[str]) -> int:
        return await self.repo.delete_categories(ids)

    # --- attributes ---------------------------------------------------------

    async def create_attribute(self, data: schemas.AttributeCreate) -> models.Attribute:
        if await self.repo.find_attribute_by_name(data.name) is not None:
            raise ConflictError("Attribute already exists")
        attribute = await self.repo.save_attribute(models.Attribute(name=data.name))
        return await self.get_attribute(attribute.id)

    async def list_attributes(self, *, page: int, limit: int) -> schemas.AttributePage:
        attributes, total = await self.repo.list_attributes(page=page, limit=limit)
        return schemas.AttributePage(
            data=[schemas.AttributeDetail.model_validate(item) for item in attributes],
            meta=page_meta(total=total, page=page, limit=limit),
        )

    async def get_attribute(self, attribute_id: str) -> models.Attribute:
        attribute = await self.repo.get_attribute(attribute_id)
        if attribute is None:
            raise NotFoundError("Attribute not found")
        return attribute

    async def update_attribute(
        self, attribute_id: str, data: schemas.AttributeUpdate
    ) -> models.Attribute:
        attribute = await self.get_attribute(attribute_id)
        if data.name is not None and data.name != attribute.name:
            if await self.repo.find_attribute_by_name(data.name) is not None:
                raise ConflictError("Attribute already exists")
            attribute.name = data.name
            await self.repo.save_attribute(attribute)
        return await self.get_attribute(attribute.id)

    async def delete_attribute(self, attribute_id: str) -> None:
        await self.get_attribute(attribute_id)
        await self.repo.delete_attributes([attribute_id])

    async def delete_attributes(self, ids: Sequence[str]) -> int:
        return await self.repo.delete_attributes(ids)
