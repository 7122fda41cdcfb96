import httpx

from storefront import models
from storefront.api.deps import get_google_client
from storefront.config import REFRESH_COOKIE_NAME
from storefront.errors import UnauthorizedError
from storefront.providers.google import GoogleProfile

from .conftest import create_user, get_user, unique_email


class FakeGoogle:
    def __init__(self, profile: GoogleProfile, *, fail: Exception | None = None) -> None:
        self.profile = profile
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    async def verify_id_token(self, id_token: str) -> GoogleProfile:
        self.calls.append(("id_token", id_token))
        if self.fail is not None:
            raise self.fail
        if id_token == "bad-token":
            raise UnauthorizedError("Invalid Google token")
        return self.profile

    async def exchange_code(self, code: str) -> GoogleProfile:
        self.calls.append(("code", code))
        if self.fail is not None:
            raise self.fail
        return self.profile


def _install(app, fake: FakeGoogle) -> FakeGoogle:
    app.dependency_overrides[get_google_client] = lambda: fake
    return fake


def _profile(email: str | None = None, google_id: str = "google-123") -> GoogleProfile:
    return GoogleProfile(
        google_id=google_id,
        email=email or unique_email("google"),
        name="Grace Hopper",
        picture="https://lh3.example.com/avatar.png",
    )


async def test_google_login_creates_verified_account(client, app):
    profile = _profile()
    _install(app, FakeGoogle(profile))

    response = await client.post("/api/auth/google", json={"idToken": "good-token"})
    assert response.status_code == 200
    result = response.json()["result"]
    assert result["accessToken"]
    assert result["user"]["email"] == profile.email
    assert result["user"]["emailVerified"] is True
    assert response.cookies.get(REFRESH_COOKIE_NAME)

    user = await get_user(app, profile.email)
    assert user.google_id == profile.google_id
    assert user.avatar_url == profile.picture
    assert user.password_hash
    assert user.role == models.UserRole.CUSTOMER.value


async def test_google_login_links_existing_email_account(client, app):
    existing = await create_user(app, email=unique_email("linked"))
    _install(app, FakeGoogle(_profile(email=existing.email, google_id="google-link")))

    response = await client.post("/api/auth/google", json={"idToken": "good-token"})
    assert response.status_code == 200
    assert response.json()["result"]["user"]["id"] == existing.id

    user = await get_user(app, existing.email)
    assert user.google_id == "google-link"


async def test_google_login_finds_user_by_google_id(client, app):
    profile = _profile(google_id="google-stable")
    _install(app, FakeGoogle(profile))
    first = await client.post("/api/auth/google", json={"idToken": "good-token"})
    user_id = first.json()["result"]["user"]["id"]

    # Same Google account, address changed on Google's side
    _install(app, FakeGoogle(_profile(email=unique_email("changed"), google_id="google-stable")))
    second = await client.post("/api/auth/google", json={"idToken": "good-token"})
    assert second.status_code == 200
    assert second.json()["result"]["user"]["id"] == user_id


async def test_google_login_with_authorization_code(client, app):
    fake = _install(app, FakeGoogle(_profile()))
    response = await client.post("/api/auth/google", json={"code": "auth-code"})
    assert response.status_code == 200
    assert fake.calls == [("code", "auth-code")]


async def test_google_login_rejects_invalid_token(client, app):
    _install(app, FakeGoogle(_profile()))
    response = await client.post("/api/auth/google", json={"idToken": "bad-token"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid Google token"


async def test_google_login_upstream_failure_returns_502(client, app):
    _install(app, FakeGoogle(_profile(), fail=httpx.ConnectError("connection refused")))
    response = await client.post("/api/auth/google", json={"idToken": "good-token"})
    assert response.status_code == 502
    assert response.json()["success"] is False


async def test_google_login_requires_exactly_one_credential(client, app):
    _install(app, FakeGoogle(_profile()))
    response = await client.post("/api/auth/google", json={"idToken": "a", "code": "b"})
    assert response.status_code == 400

    response = await client.post("/api/auth/google", json={})
    assert response.status_code == 400
