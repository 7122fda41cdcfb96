"""Account lifecycle: registration, sign-in, token rotation and email flows."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from urllib.parse import urlsplit

from .. import models
from ..config import Settings
from ..errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ..logging import anonymize_ip, set_user_context
from ..providers.google import GoogleOAuthClient, GoogleProfile
from ..repositories import AuthRepository
from ..security import (
    PasswordHasher,
    TokenIssuer,
    as_utc,
    generate_refresh_token,
    generate_secret_token,
    hash_refresh_token,
    tokens_match,
)
from ..utils.external import call_external
from ..utils.notifications import RESET_TTL_HOURS, VERIFICATION_TTL_HOURS, AccountMailer

auth_logger = logging.getLogger("storefront.auth")

_DATASET = "storefront-api.auth"


def _now() -> datetime:
    return datetime.now(UTC)


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


def split_name(name: str) -> tuple[str, str]:
    """Return ``(first_name, last_name)`` for a display name.

    A single-word name is used for both parts.
    """

    parts = name.split()
    if not parts:
        return name, name
    first = parts[0]
    last = " ".join(parts[1:]) or first
    return first, last


@dataclass(frozen=True, slots=True)
class ClientInfo:
    """Where a credential request came from; stored with refresh tokens."""

    user_agent: str | None = None
    ip: str | None = None


@dataclass(slots=True)
class LoginResult:
    access_token: str
    expires_at: datetime
    refresh_token: str
    user: models.User


@dataclass(slots=True)
class RefreshResult:
    access_token: str
    expires_at: datetime
    refresh_token: str


class AuthService:
    def __init__(
        self,
        repo: AuthRepository,
        settings: Settings,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        mailer: AccountMailer,
        google: GoogleOAuthClient | None = None,
    ) -> None:
        self.repo = repo
        self.settings = settings
        self.hasher = hasher
        self.tokens = tokens
        self.mailer = mailer
        self.google = google

    def _hash(self, raw_token: str) -> str:
        return hash_refresh_token(raw_token, self.settings.refresh_token_secret)

    def _check_redirect(self, redirect_url: str | None) -> None:
        """Only let email links point at the storefront's own front ends."""

        if redirect_url is None:
            return
        origins = (self.settings.client_origin, *self.settings.allowed_origins)
        trusted = {_origin(origin) for origin in origins}
        if _origin(redirect_url) not in trusted:
            auth_logger.warning(
                "Untrusted redirect URL rejected",
                extra={"event_dataset": _DATASET, "event_action": "redirect_rejected"},
            )
            raise ValidationError(errors={"redirectUrl": "Redirect URL origin is not allowed"})

    async def _issue_tokens(self, user: models.User, client: ClientInfo) -> LoginResult:
        access_token, expires_at = self.tokens.create_access_token(
            user_id=user.id, email=user.email, role=user.role
        )
        refresh_token = generate_refresh_token()
        await self.repo.create_refresh_token(
            user_id=user.id,
            token_hash=self._hash(refresh_token),
            expires_at=_now() + self.settings.refresh_token_life,
            user_agent=client.user_agent,
            ip=client.ip,
        )
        set_user_context(user.id, user.role)
        return LoginResult(
            access_token=access_token,
            expires_at=expires_at,
            refresh_token=refresh_token,
            user=user,
        )

    async def _require_user(self, email: str) -> models.User:
        user = await self.repo.get_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def register(
        self,
        *,
        email: str,
        password: str,
        name: str,
        avatar_url: str | None = None,
        redirect_url: str | None = None,
    ) -> models.User:
        self._check_redirect(redirect_url)
        email = email.strip().lower()
        if await self.repo.get_user_by_email(email) is not None:
            raise ConflictError("User already exists")

        first_name, last_name = split_name(name)
        token = generate_secret_token()
        user = models.User(
            email=email,
            password_hash=await self.hasher.ahash(password),
            name=name,
            avatar_url=avatar_url,
            role=models.UserRole.CUSTOMER.value,
            email_verified=False,
            verification_token=token,
            verification_token_expires_at=_now() + timedelta(hours=VERIFICATION_TTL_HOURS),
        )
        await self.repo.create_user_with_profile(
            user, first_name=first_name, last_name=last_name
        )
        auth_logger.info(
            "User registered",
            extra={
                "event_dataset": _DATASET,
                "event_action": "user_registered",
                "user_id": user.id,
            },
        )
        self.mailer.send_verification_email(
            user_id=user.id,
            email=user.email,
            name=user.name,
            token=token,
            redirect_url=redirect_url,
        )
        return user

    async def login(self, *, email: str, password: str, client: ClientInfo) -> LoginResult:
        user = await self._require_user(email)
        if not await self.hasher.averify(password, user.password_hash):
            auth_logger.warning(
                "Authentication failed",
                extra={
                    "event_dataset": _DATASET,
                    "event_action": "login_failed",
                    "client_ip": anonymize_ip(client.ip),
                    "auth_method": "password",
                    "auth_failure_reason": "invalid_credentials",
                },
            )
            raise UnauthorizedError("Invalid email or password")
        if not user.email_verified:
            auth_logger.info(
                "Login blocked for unverified email",
                extra={
                    "event_dataset": _DATASET,
                    "event_action": "login_blocked",
                    "user_id": user.id,
                },
            )
            raise UnauthorizedError("Email not verified")

        result = await self._issue_tokens(user, client)
        auth_logger.info(
            "User logged in",
            extra={
                "event_dataset": _DATASET,
                "event_action": "login_succeeded",
                "auth_method": "password",
                "user_id": user.id,
            },
        )
        return result

    async def _resolve_google_user(self, profile: GoogleProfile) -> models.User:
        user = await self.repo.get_user_by_google_id(profile.google_id)
        if user is not None:
            return user

        user = await self.repo.get_user_by_email(profile.email)
        if user is not None:
            user.google_id = profile.google_id
            if not user.avatar_url and profile.picture:
                user.avatar_url = profile.picture
            # Google has already confirmed ownership of the address
            if not user.email_verified:
                user.email_verified = True
                user.verification_token = None
                user.verification_token_expires_at = None
            await self.repo.save_user(user)
            auth_logger.info(
                "Google account linked",
                extra={
                    "event_dataset": _DATASET,
                    "event_action": "google_account_linked",
                    "user_id": user.id,
                },
            )
            return user

        first_name, last_name = split_name(profile.name)
        user = models.User(
            email=profile.email,
            password_hash=await self.hasher.ahash(secrets.token_urlsafe(32)),
            name=profile.name,
            avatar_url=profile.picture,
            role=models.UserRole.CUSTOMER.value,
            email_verified=True,
            google_id=profile.google_id,
        )
        await self.repo.create_user_with_profile(
            user, first_name=first_name, last_name=last_name
        )
        auth_logger.info(
            "User registered via Google",
            extra={
                "event_dataset": _DATASET,
                "event_action": "user_registered",
                "auth_method": "google",
                "user_id": user.id,
            },
        )
        return user

    async def google_login(
        self,
        *,
        client: ClientInfo,
        id_token: str | None = None,
        code: str | None = None,
    ) -> LoginResult:
        if self.google is None:
            raise BadRequestError("Google sign-in is not available")
        if id_token:
            profile = await call_external(
                "google", self.google.verify_id_token(id_token), message="Google sign-in failed"
            )
        elif code:
            profile = await call_external(
                "google", self.google.exchange_code(code), message="Google sign-in failed"
            )
        else:
            raise BadRequestError("Google credential is required")

        user = await self._resolve_google_user(profile)
        result = await self._issue_tokens(user, client)
        auth_logger.info(
            "User logged in",
            extra={
                "event_dataset": _DATASET,
                "event_action": "login_succeeded",
                "auth_method": "google",
                "user_id": user.id,
            },
        )
        return result

    async def refresh(self, raw_token: str | None, *, client: ClientInfo) -> RefreshResult:
        if not raw_token:
            raise NotFoundError("Refresh token not found")
        record = await self.repo.get_refresh_token(self._hash(raw_token))
        if record is None:
            raise NotFoundError("Refresh token not found")
        if record.revoked:
            auth_logger.warning(
                "Revoked refresh token presented",
                extra={
                    "event_dataset": _DATASET,
                    "event_action": "refresh_token_reuse",
                    "user_id": record.user_id,
                    "refresh_token_id": record.id,
                },
            )
            raise UnauthorizedError("Refresh token revoked")
        if _now() > as_utc(record.expires_at):
            raise UnauthorizedError("Refresh token expired")

        user = await self.repo.get_user_by_id(record.user_id)
        if user is None:
            raise NotFoundError("User not found")

        new_token = generate_refresh_token()
        await self.repo.rotate_refresh_token(
            record,
            token_hash=self._hash(new_token),
            expires_at=_now() + self.settings.refresh_token_life,
            user_agent=record.user_agent or client.user_agent,
            ip=record.ip or client.ip,
        )
        access_token, expires_at = self.tokens.create_access_token(
            user_id=user.id, email=user.email, role=user.role
        )
        set_user_context(user.id, user.role)
        auth_logger.info(
            "Refresh token rotated",
            extra={
                "event_dataset": _DATASET,
                "event_action": "refresh_token_rotated",
                "user_id": user.id,
            },
        )
        return RefreshResult(
            access_token=access_token, expires_at=expires_at, refresh_token=new_token
        )

    async def logout(self, raw_token: str | None) -> None:
        if not raw_token:
            raise NotFoundError("Refresh token not found")
        record = await self.repo.get_refresh_token(self._hash(raw_token))
        if record is None:
            raise NotFoundError("Refresh token not found")
        user_id = record.user_id
        await self.repo.delete_refresh_token(record)
        auth_logger.info(
            "User logged out",
            extra={
                "event_dataset": _DATASET,
                "event_action": "logout",
                "user_id": user_id,
            },
        )

    async def get_profile(self, user_id: str) -> models.User:
        user = await self.repo.get_user_with_profile(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self, *, page: int, limit: int) -> tuple[list[models.User], int]:
        return await self.repo.list_users(page=page, limit=limit)

    async def verify_email(self, *, email: str, token: str) -> models.User:
        user = await self._require_user(email)
        if user.email_verified:
            raise BadRequestError("Email already verified")
        expires_at = user.verification_token_expires_at
        if (
            not tokens_match(user.verification_token, token)
            or expires_at is None
            or _now() > as_utc(expires_at)
        ):
            raise UnauthorizedError("Invalid or expired verification token")

        user.email_verified = True
        user.verification_token = None
        user.verification_token_expires_at = None
        await self.repo.save_user(user)
        auth_logger.info(
            "Email verified",
            extra={
                "event_dataset": _DATASET,
                "event_action": "email_verified",
                "user_id": user.id,
            },
        )
        return user

    async def resend_verification(self, *, email: str, redirect_url: str | None = None) -> None:
        self._check_redirect(redirect_url)
        user = await self._require_user(email)
        if user.email_verified:
            raise BadRequestError("Email already verified")
        # The pending token stays valid; only its expiry moves forward
        if not user.verification_token:
            user.verification_token = generate_secret_token()
        user.verification_token_expires_at = _now() + timedelta(hours=VERIFICATION_TTL_HOURS)
        await self.repo.save_user(user)
        self.mailer.send_verification_email(
            user_id=user.id,
            email=user.email,
            name=user.name,
            token=user.verification_token,
            redirect_url=redirect_url,
        )

    async def forgot_password(self, *, email: str, redirect_url: str | None = None) -> None:
        self._check_redirect(redirect_url)
        user = await self._require_user(email)
        if not user.email_verified:
            raise BadRequestError("Email not verified")
        token = generate_secret_token()
        user.reset_password_token = token
        user.reset_password_expires_at = _now() + timedelta(hours=RESET_TTL_HOURS)
        await self.repo.save_user(user)
        auth_logger.info(
            "Password reset requested",
            extra={
                "event_dataset": _DATASET,
                "event_action": "password_reset_requested",
                "user_id": user.id,
            },
        )
        self.mailer.send_password_reset_email(
            user_id=user.id,
            email=user.email,
            name=user.name,
            token=token,
            redirect_url=redirect_url,
        )

    async def reset_password(self, *, email: str, token: str, new_password: str) -> None:
        user = await self._require_user(email)
        expires_at = user.reset_password_expires_at
        if (
            not tokens_match(user.reset_password_token, token)
            or expires_at is None
            or _now() > as_utc(expires_at)
        ):
            auth_logger.warning(
                "Password reset attempt with invalid token",
                extra={
                    "event_dataset": _DATASET,
                    "event_action": "password_reset_failed",
                    "user_id": user.id,
                },
            )
            raise UnauthorizedError("Invalid or expired reset token")

        user.password_hash = await self.hasher.ahash(new_password)
        user.reset_password_token = None
        user.reset_password_expires_at = None
        await self.repo.save_user(user)
        auth_logger.info(
            "Password reset completed",
            extra={
                "event_dataset": _DATASET,
                "event_action": "password_reset_completed",
                "user_id": user.id,
            },
        )
