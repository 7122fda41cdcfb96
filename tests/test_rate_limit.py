import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from storefront.config import load_settings
from storefront.main import create_app
from storefront.rate_limit import RateLimiter

from .conftest import build_env, unique_email


@pytest_asyncio.fixture
async def limited_client(tmp_path):
    app = create_app(
        load_settings(
            build_env(tmp_path, FORGOT_PASSWORD_RATE_LIMIT="1", REGISTER_RATE_LIMIT="1")
        )
    )
    await app.state.database.create_all()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    await app.state.database.dispose()


async def test_rate_limit_respects_forwarded_for_header(limited_client):
    """Rate limiter should honor X-Forwarded-For for client IPs."""

    payload = {"email": unique_email("limited")}
    resp1 = await limited_client.post(
        "/api/auth/forgot-password", json=payload, headers={"X-Forwarded-For": "1.1.1.1"}
    )
    assert resp1.status_code == 404

    resp2 = await limited_client.post(
        "/api/auth/forgot-password", json=payload, headers={"X-Forwarded-For": "1.1.1.1"}
    )
    assert resp2.status_code == 429
    assert resp2.json()["success"] is False
    assert int(resp2.headers["Retry-After"]) >= 1

    resp3 = await limited_client.post(
        "/api/auth/forgot-password", json=payload, headers={"X-Forwarded-For": "2.2.2.2"}
    )
    assert resp3.status_code == 404


async def test_limits_are_tracked_per_endpoint(limited_client):
    headers = {"X-Forwarded-For": "3.3.3.3"}
    await limited_client.post(
        "/api/auth/forgot-password", json={"email": unique_email()}, headers=headers
    )

    response = await limited_client.post(
        "/api/auth/register",
        json={"email": unique_email(), "password": "supersecret", "name": "Jane Doe"},
        headers=headers,
    )
    assert response.status_code == 200


async def test_rate_limiter_hit_and_miss():
    """First request allowed, second blocked for same IP."""
    limiter = RateLimiter(1, 60)

    allowed, remaining, _ = await limiter.is_allowed("1.1.1.1")
    assert allowed
    assert remaining == 0
    allowed, _, retry_after = await limiter.is_allowed("1.1.1.1")
    assert not allowed
    assert 0 < retry_after <= 60

    allowed, _, _ = await limiter.is_allowed("2.2.2.2")
    assert allowed
