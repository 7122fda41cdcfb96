import itertools
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport
from sqlalchemy import select

from storefront import models
from storefront.config import load_settings
from storefront.main import create_app
from storefront.repositories import AuthRepository
from storefront.services.auth import split_name
from storefront.utils import notifications

TEST_PASSWORD = "supersecret"
ACCESS_SECRET = "access-secret-0123456789abcdef0123456789"
REFRESH_SECRET = "refresh-secret-0123456789abcdef012345678"
COOKIE_SECRET = "cookie-secret-0123456789abcdef0123456789"

_counter = itertools.count(1)  # used to create unique email addresses


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}{next(_counter)}@example.com"


def build_env(tmp_path, **overrides: str) -> dict[str, str]:
    env = {
        "DATABASE_URL": f"sqlite:///{tmp_path / 'storefront.db'}",
        "ACCESS_TOKEN_SECRET": ACCESS_SECRET,
        "REFRESH_TOKEN_SECRET": REFRESH_SECRET,
        "COOKIE_SECRET": COOKIE_SECRET,
        "APP_ENV": "test",
        "BCRYPT_ROUNDS": "4",
        "CLIENT_ORIGIN": "http://shop.test",
        "ALLOWED_ORIGINS": "http://allowed.example,https://shop.example.com,https://app.example.com",
        "LOG_DIR": str(tmp_path / "logs"),
        "REGISTER_RATE_LIMIT": "1000",
        "LOGIN_RATE_LIMIT": "1000",
        "FORGOT_PASSWORD_RATE_LIMIT": "1000",
        "GOOGLE_CLIENT_ID": "google-client-id",
        "GOOGLE_CLIENT_SECRET": "google-client-secret",
        "IMAGEKIT_PRIVATE_KEY": "private_test_key",
    }
    env.update(overrides)
    return env


@pytest.fixture
def settings(tmp_path):
    return load_settings(build_env(tmp_path))


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> list[dict[str, Any]]:
    """Capture account emails instead of talking to an SMTP server."""

    sent: list[dict[str, Any]] = []

    def fake_send(*, settings, message, logger, action_prefix, log_extra=None):
        sent.append(
            {
                "to": message["To"],
                "subject": message["Subject"],
                "body": message.get_content(),
                "action": action_prefix,
            }
        )
        return True

    monkeypatch.setattr(notifications, "send_email_via_smtp", fake_send)
    return sent


@pytest_asyncio.fixture
async def app(settings):
    application = create_app(settings)
    await application.state.database.create_all()
    try:
        yield application
    finally:
        application.dependency_overrides.clear()
        await application.state.database.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


async def get_user(app, email: str) -> models.User:
    async with app.state.database.session_factory() as session:
        result = await session.execute(select(models.User).where(models.User.email == email))
        return result.scalar_one()


async def update_user(app, email: str, **values: Any) -> None:
    async with app.state.database.session_factory() as session:
        result = await session.execute(select(models.User).where(models.User.email == email))
        user = result.scalar_one()
        for key, value in values.items():
            setattr(user, key, value)
        await session.commit()


async def create_user(
    app,
    *,
    email: str | None = None,
    password: str = TEST_PASSWORD,
    name: str = "Test User",
    role: str = models.UserRole.CUSTOMER.value,
    verified: bool = True,
) -> models.User:
    """Insert an account directly, bypassing the registration endpoint."""

    email = email or unique_email(role.lower())
    first_name, last_name = split_name(name)
    async with app.state.database.session_factory() as session:
        user = models.User(
            email=email,
            password_hash=app.state.password_hasher.hash(password),
            name=name,
            role=role,
            email_verified=verified,
        )
        await AuthRepository(session).create_user_with_profile(
            user, first_name=first_name, last_name=last_name
        )
    return user


async def register(client, email: str, password: str = TEST_PASSWORD, name: str = "Jane Doe"):
    return await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name},
    )


async def login(client, email: str, password: str = TEST_PASSWORD):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


async def auth_headers(client, app, role: str = models.UserRole.ADMIN.value) -> dict[str, str]:
    """Create a verified account with ``role`` and return bearer headers for it."""

    user = await create_user(app, role=role)
    response = await login(client, user.email)
    assert response.status_code == 200, response.text
    client.cookies.clear()
    token = response.json()["result"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}
