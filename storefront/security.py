"""Password hashing and token helpers."""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any, cast

import anyio
import bcrypt
from jose import JWTError, jwt
from passlib.context import CryptContext
from passlib.handlers.bcrypt import _BcryptBackend

from .config import JWT_ALGORITHM, Settings
from .errors import UnauthorizedError

if not hasattr(bcrypt, "__about__"):
    bcrypt.__about__ = SimpleNamespace(__version__=bcrypt.__version__)

# Skip passlib's bcrypt backend self-tests that assume passwords >72 bytes
# silently truncate instead of raising ValueError under bcrypt>=5.
_BcryptBackend._workrounds_initialized = True

ACCESS_TOKEN_TYPE = "access"


def _now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (SQLite drops tzinfo)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class PasswordHasher:
    """bcrypt (SHA-256 pre-hashed) password hashing with a configurable cost."""

    def __init__(self, rounds: int) -> None:
        self._context = CryptContext(
            schemes=["bcrypt_sha256"],
            deprecated="auto",
            bcrypt_sha256__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return cast(str, self._context.hash(password))

    def verify(self, password: str, hashed_password: str | None) -> bool:
        if not hashed_password:
            return False
        try:
            return cast(bool, self._context.verify(password, hashed_password))
        except ValueError:
            # Unrecognised hash format
            return False

    # bcrypt is CPU bound; the async variants keep it off the event loop
    async def ahash(self, password: str) -> str:
        return await anyio.to_thread.run_sync(self.hash, password)

    async def averify(self, password: str, hashed_password: str | None) -> bool:
        return await anyio.to_thread.run_sync(self.verify, password, hashed_password)


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """Identity carried by a verified access token."""

    user_id: str
    email: str
    role: str


class TokenIssuer:
    """Sign and verify short-lived access tokens."""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.access_token_secret
        self._lifetime = settings.access_token_life

    def create_access_token(
        self, *, user_id: str, email: str, role: str
    ) -> tuple[str, datetime]:
        """Generate a signed JWT and return it with its expiry."""

        issued_at = _now()
        expire = issued_at + self._lifetime
        payload: dict[str, Any] = {
            "sub": user_id,
            "email": email,
            "role": role,
            "type": ACCESS_TOKEN_TYPE,
            "jti": str(uuid.uuid4()),
            "iat": int(issued_at.timestamp()),
            "exp": int(expire.timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        return token, expire

    def decode_access_token(self, token: str) -> AccessClaims:
        """Verify ``token`` and return its claims.

        Raises :class:`UnauthorizedError` for bad signatures, expired tokens or
        tokens that are not access tokens.
        """

        try:
            payload = jwt.decode(token, self._secret, algorithms=[JWT_ALGORITHM])
        except JWTError as exc:
            raise UnauthorizedError("Invalid or expired token") from exc
        user_id = payload.get("sub")
        if not user_id or payload.get("type") != ACCESS_TOKEN_TYPE:
            raise UnauthorizedError("Invalid or expired token")
        return AccessClaims(
            user_id=str(user_id),
            email=str(payload.get("email", "")),
            role=str(payload.get("role", "")),
        )


def generate_refresh_token() -> str:
    """Generate an opaque refresh token string."""

    return base64.urlsafe_b64encode(secrets.token_bytes(64)).decode().rstrip("=")


def hash_refresh_token(raw_token: str, secret: str) -> str:
    """Return the HMAC-SHA256 digest stored in place of the refresh token."""

    return hmac.new(
        secret.encode("utf-8"), raw_token.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def _cookie_signature(value: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode().rstrip("=")


def sign_cookie_value(value: str, secret: str) -> str:
    """Append an HMAC signature so a tampered cookie is rejected before any lookup."""

    return f"{value}.{_cookie_signature(value, secret)}"


def unsign_cookie_value(signed: str | None, secret: str) -> str | None:
    """Return the value of a signed cookie, or ``None`` when the signature is wrong."""

    if not signed:
        return None
    value, separator, signature = signed.rpartition(".")
    if not separator or not tokens_match(_cookie_signature(value, secret), signature):
        return None
    return value


def generate_secret_token() -> str:
    """Random token for email verification and password reset links."""

    return secrets.token_hex(32)


def tokens_match(expected: str | None, supplied: str | None) -> bool:
    if not expected or not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))
