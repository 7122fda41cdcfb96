"""Environment-driven configuration for the storefront API."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from typing import Final

REFRESH_COOKIE_NAME: Final[str] = "refresh_token"
JWT_ALGORITHM: Final[str] = "HS256"

_DURATION_PATTERN = re.compile(r"^(\d+)([mhd])$")
_DURATION_UNITS = {"m": "minutes", "h": "hours", "d": "days"}
_MIN_SECRET_LENGTH = 32


class ConfigError(RuntimeError):
    """Raised when the environment does not describe a runnable service."""


def _get_env(
    env: Mapping[str, str],
    name: str,
    *,
    default: str | None = None,
    required: bool = False,
) -> str | None:
    value = env.get(name)
    if value is None or not value.strip():
        if required:
            raise ConfigError(f"Missing required environment variable: {name}")
        return default
    return value.strip()


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _get_env(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _get_list(env: Mapping[str, str], name: str) -> tuple[str, ...]:
    raw = _get_env(env, name, default="") or ""
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def parse_duration(value: str) -> timedelta:
    """Parse a ``<number><m|h|d>`` lifetime such as ``15m`` or ``7d``."""

    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        raise ConfigError(
            f"Invalid duration {value!r}; expected <number><m|h|d>, e.g. 15m or 7d"
        )
    amount = int(match.group(1))
    if amount <= 0:
        raise ConfigError(f"Duration must be positive, got {value!r}")
    return timedelta(**{_DURATION_UNITS[match.group(2)]: amount})


@dataclass(frozen=True, slots=True)
class SMTPConfig:
    host: str | None = None
    port: int = 587
    use_ssl: bool = False
    user: str | None = None
    password: str | None = None
    from_address: str = "no-reply@storefront.local"
    from_name: str = "Storefront"
    timeout: float = 10.0

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_address}>"


@dataclass(frozen=True, slots=True)
class ImageKitConfig:
    public_key: str | None = None
    private_key: str | None = None
    url_endpoint: str | None = None
    folder: str = "media-ak-shop"
    upload_url: str = "https://upload.imagekit.io/api/v1/files/upload"
    api_url: str = "https://api.imagekit.io/v1"


@dataclass(frozen=True, slots=True)
class GoogleConfig:
    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None


@dataclass(frozen=True, slots=True)
class SuperAdminConfig:
    email: str
    password: str
    name: str = "Super Admin"


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    period: int = 60
    register: int = 5
    login: int = 5
    forgot_password: int = 3


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable runtime configuration built once at startup."""

    database_url: str
    access_token_secret: str
    refresh_token_secret: str
    cookie_secret: str
    app_env: str = "development"
    access_token_life: timedelta = timedelta(minutes=15)
    refresh_token_life: timedelta = timedelta(days=7)
    bcrypt_rounds: int = 12
    allowed_origins: tuple[str, ...] = ()
    client_origin: str = "http://localhost:3000"
    log_dir: str = "logs"
    smtp: SMTPConfig = field(default_factory=SMTPConfig)
    imagekit: ImageKitConfig = field(default_factory=ImageKitConfig)
    google: GoogleConfig = field(default_factory=GoogleConfig)
    rate_limits: RateLimitConfig = field(default_factory=RateLimitConfig)
    super_admin: SuperAdminConfig | None = None

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cookie_secure(self) -> bool:
        return self.is_production

    @property
    def cookie_samesite(self) -> str:
        return "none" if self.is_production else "lax"

    @property
    def refresh_cookie_max_age(self) -> int:
        return int(self.refresh_token_life.total_seconds())

    def validate(self) -> None:
        """Reject combinations that are unsafe or cannot work."""

        if not 4 <= self.bcrypt_rounds <= 31:
            raise ConfigError("BCRYPT_ROUNDS must be between 4 and 31")
        if self.is_production:
            for name, secret in (
                ("ACCESS_TOKEN_SECRET", self.access_token_secret),
                ("REFRESH_TOKEN_SECRET", self.refresh_token_secret),
                ("COOKIE_SECRET", self.cookie_secret),
            ):
                if len(secret) < _MIN_SECRET_LENGTH:
                    raise ConfigError(
                        f"{name} must be at least {_MIN_SECRET_LENGTH} characters long"
                    )
            if self.access_token_secret == self.refresh_token_secret:
                raise ConfigError(
                    "ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ"
                )


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``)."""

    source: Mapping[str, str] = os.environ if env is None else env

    super_admin: SuperAdminConfig | None = None
    admin_email = _get_env(source, "SUPER_ADMIN_EMAIL")
    admin_password = _get_env(source, "SUPER_ADMIN_PASSWORD")
    if admin_email and admin_password:
        super_admin = SuperAdminConfig(
            email=admin_email.lower(),
            password=admin_password,
            name=_get_env(source, "SUPER_ADMIN_NAME", default="Super Admin") or "Super Admin",
        )

    smtp_timeout_raw = _get_env(source, "SMTP_TIMEOUT", default="10") or "10"
    try:
        smtp_timeout = float(smtp_timeout_raw)
    except ValueError as exc:
        raise ConfigError("SMTP_TIMEOUT must be a number") from exc

    settings = Settings(
        database_url=_get_env(source, "DATABASE_URL", required=True) or "",
        access_token_secret=_get_env(source, "ACCESS_TOKEN_SECRET", required=True) or "",
        refresh_token_secret=_get_env(source, "REFRESH_TOKEN_SECRET", required=True) or "",
        cookie_secret=_get_env(source, "COOKIE_SECRET", required=True) or "",
        app_env=(_get_env(source, "APP_ENV", default="development") or "development").lower(),
        access_token_life=parse_duration(
            _get_env(source, "ACCESS_TOKEN_LIFE", default="15m") or "15m"
        ),
        refresh_token_life=parse_duration(
            _get_env(source, "REFRESH_TOKEN_LIFE", default="7d") or "7d"
        ),
        bcrypt_rounds=_get_int(source, "BCRYPT_ROUNDS", 12),
        allowed_origins=_get_list(source, "ALLOWED_ORIGINS"),
        client_origin=_get_env(source, "CLIENT_ORIGIN", default="http://localhost:3000")
        or "http://localhost:3000",
        log_dir=_get_env(source, "LOG_DIR", default="logs") or "logs",
        smtp=SMTPConfig(
            host=_get_env(source, "SMTP_HOST"),
            port=_get_int(source, "SMTP_PORT", 587),
            use_ssl=_get_bool(source, "SMTP_SSL", False),
            user=_get_env(source, "SMTP_USER"),
            password=_get_env(source, "SMTP_PASSWORD"),
            from_address=_get_env(
                source, "MAIL_FROM_ADDRESS", default="no-reply@storefront.local"
            )
            or "no-reply@storefront.local",
            from_name=_get_env(source, "MAIL_FROM_NAME", default="Storefront") or "Storefront",
            timeout=smtp_timeout,
        ),
        imagekit=ImageKitConfig(
            public_key=_get_env(source, "IMAGEKIT_PUBLIC_KEY"),
            private_key=_get_env(source, "IMAGEKIT_PRIVATE_KEY"),
            url_endpoint=_get_env(source, "IMAGEKIT_URL_ENDPOINT"),
            folder=_get_env(source, "IMAGEKIT_FOLDER", default="media-ak-shop")
            or "media-ak-shop",
        ),
        google=GoogleConfig(
            client_id=_get_env(source, "GOOGLE_CLIENT_ID"),
            client_secret=_get_env(source, "GOOGLE_CLIENT_SECRET"),
            redirect_uri=_get_env(source, "GOOGLE_REDIRECT_URI"),
        ),
        rate_limits=RateLimitConfig(
            period=_get_int(source, "RATE_PERIOD", 60),
            register=_get_int(source, "REGISTER_RATE_LIMIT", 5),
            login=_get_int(source, "LOGIN_RATE_LIMIT", 5),
            forgot_password=_get_int(source, "FORGOT_PASSWORD_RATE_LIMIT", 3),
        ),
        super_admin=super_admin,
    )
    settings.validate()
    return settings


@lru_cache
def get_settings() -> Settings:
    """Return the process settings, loading them on first use."""

    return load_settings()


# Security header defaults keep browsers on HTTPS and enforce safe resource loading.
SECURITY_HEADERS: Final[dict[str, str]] = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
}
