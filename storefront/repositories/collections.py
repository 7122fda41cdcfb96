"""Persistence for product collections."""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import models


class CollectionRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def get(self, collection_id: str) -> models.Collection | None:
        return await self.db.get(models.Collection, collection_id)

    async def get_with_products(self, collection_id: str) -> models.Collection | None:
        result = await self.db.execute(
            sa.select(models.Collection)
            .where(models.Collection.id == collection_id)
            .options(selectinload(models.Collection.products))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by(self, *, slug: str | None = None, name: str | None = None) -> models.Collection | None:
        stmt = sa.select(models.Collection)
        if slug is not None:
            stmt = stmt.where(models.Collection.slug == slug)
        if name is not None:
            stmt = stmt.where(models.Collection.name == name)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def list_collections(self, *, page: int, limit: int) -> tuple[list[models.Collection], int]:
        total = await self.db.scalar(sa.select(sa.func.count()).select_from(models.Collection))
        result = await self.db.execute(
            sa.select(models.Collection)
            .options(selectinload(models.Collection.products))
            .order_by(models.Collection.created_at.desc(), models.Collection.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars()), int(total or 0)

    async def save(self, collection: models.Collection) -> models.Collection:
        self.db.add(collection)
        await self._commit()
        return collection

    async def delete(self, collection: models.Collection) -> None:
        await self.db.execute(
            sa.delete(models.Collection).where(models.Collection.id == collection.id)
        )
        await self._commit()

    async def existing_product_ids(self, ids: Sequence[str]) -> set[str]:
        result = await self.db.execute(
            sa.select(models.Product.id).where(models.Product.id.in_(ids))
        )
        return set(result.scalars())

    async def add_products(self, collection_id: str, product_ids: Sequence[str]) -> int:
        """Link products to the collection and return how many links were new."""

        wanted = list(dict.fromkeys(product_ids))
        result = await self.db.execute(
            sa.select(models.ProductCollection.product_id).where(
                models.ProductCollection.collection_id == collection_id,
                models.ProductCollection.product_id.in_(wanted),
            )
        )
        existing = set(result.scalars())
        missing = [product_id for product_id in wanted if product_id not in existing]
        self.db.add_all(
            models.ProductCollection(product_id=product_id, collection_id=collection_id)
            for product_id in missing
        )
        await self._commit()
        return len(missing)
