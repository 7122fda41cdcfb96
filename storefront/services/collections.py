"""Curated collections of products."""

from __future__ import annotations

import logging

from .. import models, schemas
from ..errors import ConflictError, NotFoundError
from ..repositories import CollectionRepository
from .products import page_meta

logger = logging.getLogger("storefront.collections")


class CollectionService:
    def __init__(self, repo: CollectionRepository) -> None:
        self.repo = repo

    async def _check_clash(
        self, *, name: str | None, slug: str | None, current_id: str | None = None
    ) -> None:
        if slug is not None:
            existing = await self.repo.find_by(slug=slug)
            if existing is not None and existing.id != current_id:
                raise ConflictError("Collection with this slug already exists")
        if name is not None:
            existing = await self.repo.find_by(name=name)
            if existing is not None and existing.id != current_id:
                raise ConflictError("Collection with this name already exists")

    async def create(self, data: schemas.CollectionCreate) -> models.Collection:
        await self._check_clash(name=data.name, slug=data.slug)
        collection = await self.repo.save(
            models.Collection(
                name=data.name,
                slug=data.slug,
                description=data.description,
                image_url=str(data.image_url) if data.image_url else None,
                is_active=data.is_active,
            )
        )
        logger.info(
            "Collection created",
            extra={
                "event_dataset": "storefront-api.collections",
                "event_action": "collection_created",
                "collection_id": collection.id,
            },
        )
        return await self.get(collection.id)

    async def list(self, *, page: int, limit: int) -> schemas.CollectionPage:
        collections, total = await self.repo.list_collections(page=page, limit=limit)
        return schemas.CollectionPage(
            data=[schemas.CollectionDetail.model_validate(item) for item in collections],
            meta=page_meta(total=total, page=page, limit=limit),
        )

    async def get(self, collection_id: str) -> models.Collection:
        collection = await self.repo.get_with_products(collection_id)
        if collection is None:
            raise NotFoundError("Collection not found")
        return collection

    async def update(self, collection_id: str, data: schemas.CollectionUpdate) -> models.Collection:
        collection = await self.get(collection_id)
        await self._check_clash(name=data.name, slug=data.slug, current_id=collection.id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is None and key in {"name", "slug", "is_active"}:
                continue
            if key == "image_url" and value is not None:
                value = str(value)
            setattr(collection, key, value)
        await self.repo.save(collection)
        return await self.get(collection.id)

    async def delete(self, collection_id: str) -> None:
        collection = await self.get(collection_id)
        await self.repo.delete(collection)

    async def add_products(self, collection_id: str, product_ids: list[str]) -> models.Collection:
        collection = await self.get(collection_id)
        missing = set(product_ids) - await self.repo.existing_product_ids(product_ids)
        if missing:
            raise NotFoundError("Product not found", errors={"productIds": sorted(missing)})
        added = await self.repo.add_products(collection.id, product_ids)
        logger.info(
            "Products added to collection",
            extra={
                "event_dataset": "storefront-api.collections",
                "event_action": "collection_products_added",
                "collection_id": collection.id,
                "added_count": added,
            },
        )
        return await self.get(collection.id)
