"""Shared FastAPI dependencies: settings, identity and service wiring."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..database import get_async_db
from ..errors import ForbiddenError, UnauthorizedError
from ..logging import set_user_context
from ..models import UserRole
from ..providers.google import GoogleOAuthClient
from ..providers.imagekit import ImageKitClient
from ..repositories import (
    AuthRepository,
    CollectionRepository,
    MediaRepository,
    ProductRepository,
)
from ..security import AccessClaims, PasswordHasher, TokenIssuer
from ..services import (
    AuthService,
    CollectionService,
    LogViewer,
    MediaFolderService,
    MediaService,
    ProductService,
)
from ..utils.notifications import AccountMailer

_bearer = HTTPBearer(auto_error=False)
_db_dependency = Depends(get_async_db)

CATALOG_ROLES = (UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value, UserRole.STAFF.value)
ADMIN_ROLES = (UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_google_client(request: Request) -> GoogleOAuthClient:
    return GoogleOAuthClient(get_settings(request).google)


def get_cdn_client(request: Request) -> ImageKitClient:
    return ImageKitClient(get_settings(request).imagekit)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> AccessClaims:
    """Return the identity of the bearer token sent with the request."""

    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required. Token missing.")
    claims = tokens.decode_access_token(credentials.credentials)
    set_user_context(claims.user_id, claims.role)
    return claims


def require_roles(
    *roles: str,
) -> Callable[..., Coroutine[Any, Any, AccessClaims]]:
    """Build a dependency that only lets the given roles through."""

    allowed = frozenset(roles)

    async def dependency(user: AccessClaims = Depends(get_current_user)) -> AccessClaims:
        if user.role not in allowed:
            raise ForbiddenError("Access denied")
        return user

    return dependency


require_catalog_staff = require_roles(*CATALOG_ROLES)
require_admin = require_roles(*ADMIN_ROLES)


def get_auth_service(
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenIssuer = Depends(get_token_issuer),
    google: GoogleOAuthClient = Depends(get_google_client),
    db: AsyncSession = _db_dependency,
) -> AuthService:
    return AuthService(
        AuthRepository(db),
        settings,
        hasher,
        tokens,
        AccountMailer(settings, background_tasks),
        google=google,
    )


def get_product_service(db: AsyncSession = _db_dependency) -> ProductService:
    return ProductService(ProductRepository(db))


def get_collection_service(db: AsyncSession = _db_dependency) -> CollectionService:
    return CollectionService(CollectionRepository(db))


def get_media_service(
    cdn: ImageKitClient = Depends(get_cdn_client),
    db: AsyncSession = _db_dependency,
) -> MediaService:
    return MediaService(MediaRepository(db), cdn)


def get_media_folder_service(db: AsyncSession = _db_dependency) -> MediaFolderService:
    return MediaFolderService(MediaRepository(db))


def get_log_viewer(settings: Settings = Depends(get_settings)) -> LogViewer:
    return LogViewer(settings.log_dir)
