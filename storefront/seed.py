"""Create the configured super administrator on startup."""

from __future__ import annotations

import logging

from . import models
from .config import Settings
from .database import Database
from .repositories import AuthRepository
from .security import PasswordHasher
from .services.auth import split_name

logger = logging.getLogger("storefront.seed")


async def seed_super_admin(database: Database, settings: Settings, hasher: PasswordHasher) -> bool:
    """Insert the super admin account if configured and missing.

    Returns ``True`` when an account was created.
    """

    config = settings.super_admin
    if config is None:
        logger.info(
            "Super admin seeding skipped",
            extra={"event_dataset": "storefront-api.app", "event_action": "seed_skipped"},
        )
        return False

    async with database.session_factory() as session:
        repo = AuthRepository(session)
        if await repo.get_user_by_email(config.email) is not None:
            return False
        first_name, last_name = split_name(config.name)
        user = models.User(
            email=config.email,
            password_hash=await hasher.ahash(config.password),
            name=config.name,
            role=models.UserRole.SUPER_ADMIN.value,
            email_verified=True,
        )
        await repo.create_user_with_profile(user, first_name=first_name, last_name=last_name)

    logger.info(
        "Super admin account created",
        extra={
            "event_dataset": "storefront-api.app",
            "event_action": "super_admin_seeded",
            "user_id": user.id,
        },
    )
    return True
