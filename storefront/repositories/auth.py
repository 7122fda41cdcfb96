"""Persistence for accounts and refresh tokens."""

from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import models


class AuthRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_user_by_email(self, email: str) -> models.User | None:
        normalized = email.strip().lower()
        if not normalized:
            return None
        result = await self.db.execute(
            sa.select(models.User).where(sa.func.lower(models.User.email) == normalized)
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: str) -> models.User | None:
        return await self.db.get(models.User, user_id)

    async def get_user_by_google_id(self, google_id: str) -> models.User | None:
        result = await self.db.execute(
            sa.select(models.User).where(models.User.google_id == google_id)
        )
        return result.scalar_one_or_none()

    async def get_user_with_profile(self, user_id: str) -> models.User | None:
        result = await self.db.execute(
            sa.select(models.User)
            .where(models.User.id == user_id)
            .options(selectinload(models.User.profile))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_users(self, *, page: int, limit: int) -> tuple[list[models.User], int]:
        total = await self.db.scalar(sa.select(sa.func.count()).select_from(models.User))
        result = await self.db.execute(
            sa.select(models.User)
            .order_by(models.User.created_at.desc(), models.User.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars()), int(total or 0)

    async def create_user_with_profile(
        self,
        user: models.User,
        *,
        first_name: str,
        last_name: str,
    ) -> models.User:
        """Insert ``user`` and its profile in one transaction."""

        try:
            self.db.add(user)
            await self.db.flush()
            self.db.add(
                models.Profile(user_id=user.id, first_name=first_name, last_name=last_name)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return user

    async def save_user(self, user: models.User) -> models.User:
        self.db.add(user)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return user

    async def create_refresh_token(
        self,
        *,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        user_agent: str | None,
        ip: str | None,
    ) -> models.RefreshToken:
        record = models.RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            user_agent=user_agent,
            ip=ip,
        )
        self.db.add(record)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return record

    async def get_refresh_token(self, token_hash: str) -> models.RefreshToken | None:
        result = await self.db.execute(
            sa.select(models.RefreshToken).where(models.RefreshToken.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def rotate_refresh_token(
        self,
        old: models.RefreshToken,
        *,
        token_hash: str,
        expires_at: datetime,
        user_agent: str | None,
        ip: str | None,
    ) -> models.RefreshToken:
        """Revoke ``old`` and insert its replacement atomically."""

        replacement = models.RefreshToken(
            user_id=old.user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            user_agent=user_agent,
            ip=ip,
        )
        try:
            self.db.add(replacement)
            await self.db.flush()
            old.revoked = True
            old.replaced_by_id = replacement.id
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return replacement

    async def delete_refresh_token(self, record: models.RefreshToken) -> None:
        try:
            await self.db.delete(record)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
