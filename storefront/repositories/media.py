"""Persistence for media files and folders."""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import models


class MediaRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # --- folders ------------------------------------------------------------

    async def get_folder(self, folder_id: str) -> models.MediaFolder | None:
        return await self.db.get(models.MediaFolder, folder_id)

    async def find_folder(self, name: str, parent_id: str | None) -> models.MediaFolder | None:
        stmt = sa.select(models.MediaFolder).where(models.MediaFolder.name == name)
        if parent_id is None:
            stmt = stmt.where(models.MediaFolder.parent_id.is_(None))
        else:
            stmt = stmt.where(models.MediaFolder.parent_id == parent_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def list_folders(self) -> list[models.MediaFolder]:
        result = await self.db.execute(
            sa.select(models.MediaFolder)
            .options(
                selectinload(models.MediaFolder.media),
                selectinload(models.MediaFolder.children),
            )
            .order_by(models.MediaFolder.name, models.MediaFolder.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars())

    async def save_folder(self, folder: models.MediaFolder) -> models.MediaFolder:
        self.db.add(folder)
        await self._commit()
        return folder

    async def folder_is_empty(self, folder_id: str) -> bool:
        media = await self.db.scalar(
            sa.select(sa.func.count())
            .select_from(models.Media)
            .where(models.Media.folder_id == folder_id)
        )
        children = await self.db.scalar(
            sa.select(sa.func.count())
            .select_from(models.MediaFolder)
            .where(models.MediaFolder.parent_id == folder_id)
        )
        return not media and not children

    async def delete_folder(self, folder: models.MediaFolder) -> None:
        await self.db.execute(
            sa.delete(models.MediaFolder).where(models.MediaFolder.id == folder.id)
        )
        await self._commit()

    # --- media --------------------------------------------------------------

    async def get_media(self, media_id: str) -> models.Media | None:
        return await self.db.get(models.Media, media_id)

    async def get_media_many(self, ids: Sequence[str]) -> list[models.Media]:
        result = await self.db.execute(
            sa.select(models.Media).where(models.Media.id.in_(ids))
        )
        return list(result.scalars())

    async def list_media(
        self, *, folder_id: str | None, page: int, limit: int
    ) -> tuple[list[models.Media], int]:
        conditions = []
        if folder_id:
            conditions.append(models.Media.folder_id == folder_id)
        total = await self.db.scalar(
            sa.select(sa.func.count()).select_from(models.Media).where(*conditions)
        )
        result = await self.db.execute(
            sa.select(models.Media)
            .where(*conditions)
            .order_by(models.Media.created_at.desc(), models.Media.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars()), int(total or 0)

    async def add_media(self, records: Sequence[models.Media]) -> list[models.Media]:
        """Insert all ``records`` in a single transaction."""

        self.db.add_all(records)
        await self._commit()
        return list(records)

    async def delete_media(self, ids: Sequence[str]) -> int:
        result = await self.db.execute(
            sa.delete(models.Media).where(models.Media.id.in_(ids))
        )
        await self._commit()
        return int(result.rowcount or 0)
