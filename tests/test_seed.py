import httpx
from sqlalchemy import func, select

from storefront import models
from storefront.config import load_settings
from storefront.create_tables import create_tables
from storefront.database import Database
from storefront.main import create_app
from storefront.security import PasswordHasher
from storefront.seed import seed_super_admin

from .conftest import build_env, login


async def _database(tmp_path) -> Database:
    settings = load_settings(build_env(tmp_path))
    await create_tables(settings.database_url)
    return Database(settings.database_url)


async def test_seed_creates_verified_super_admin(tmp_path):
    database = await _database(tmp_path)
    settings = load_settings(
        build_env(
            tmp_path,
            SUPER_ADMIN_EMAIL="owner@example.com",
            SUPER_ADMIN_PASSWORD="ownerpassword",
            SUPER_ADMIN_NAME="Shop Owner",
        )
    )
    hasher = PasswordHasher(rounds=4)
    try:
        assert await seed_super_admin(database, settings, hasher) is True
        # Running again leaves the existing account alone
        assert await seed_super_admin(database, settings, hasher) is False

        async with database.session_factory() as session:
            users = list((await session.execute(select(models.User))).scalars())
            profiles = await session.scalar(select(func.count()).select_from(models.Profile))
        assert len(users) == 1
        assert users[0].role == models.UserRole.SUPER_ADMIN.value
        assert users[0].email_verified is True
        assert hasher.verify("ownerpassword", users[0].password_hash)
        assert profiles == 1
    finally:
        await database.dispose()


async def test_seed_is_skipped_without_configuration(tmp_path):
    database = await _database(tmp_path)
    try:
        settings = load_settings(build_env(tmp_path))
        assert await seed_super_admin(database, settings, PasswordHasher(rounds=4)) is False
    finally:
        await database.dispose()


async def test_seeded_admin_can_sign_in_through_the_api(tmp_path):
    app = create_app(
        load_settings(
            build_env(
                tmp_path,
                SUPER_ADMIN_EMAIL="owner@example.com",
                SUPER_ADMIN_PASSWORD="ownerpassword",
            )
        )
    )
    await app.state.database.create_all()
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            response = await login(client, "owner@example.com", "ownerpassword")
    assert response.status_code == 200
    assert response.json()["result"]["user"]["role"] == models.UserRole.SUPER_ADMIN.value
