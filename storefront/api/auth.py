"""Authentication API endpoints."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import ORJSONResponse

from .. import schemas
from ..config import REFRESH_COOKIE_NAME, Settings
from ..rate_limit import (
    enforce_forgot_password_rate_limit,
    enforce_login_rate_limit,
    enforce_register_rate_limit,
)
from ..security import AccessClaims, sign_cookie_value, unsign_cookie_value
from ..services import AuthService, ClientInfo
from ..services.products import page_meta
from ..utils.network import get_client_ip
from .deps import get_auth_service, get_current_user, get_settings, require_admin
from .responses import cache_busting_headers, success

router = APIRouter(prefix="/auth", tags=["auth"])

_service_dependency = Depends(get_auth_service)
_settings_dependency = Depends(get_settings)
_current_user_dependency = Depends(get_current_user)

_REFRESH_COOKIE_PATH = "/"


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("user-agent"),
        ip=getattr(request.state, "client_ip", None) or get_client_ip(request),
    )


def _expires_in(expires_at: datetime) -> int:
    return max(0, int((expires_at - datetime.now(UTC)).total_seconds()))


def _set_refresh_cookie(response: Response, value: str, settings: Settings) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=sign_cookie_value(value, settings.cookie_secret),
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        max_age=settings.refresh_cookie_max_age,
        path=_REFRESH_COOKIE_PATH,
    )


def _refresh_cookie(request: Request, settings: Settings) -> str | None:
    return unsign_cookie_value(request.cookies.get(REFRESH_COOKIE_NAME), settings.cookie_secret)


def _clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path=_REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,  # type: ignore[arg-type]
    )


def _redirect(value: object | None) -> str | None:
    return str(value) if value is not None else None


@router.post("/register", dependencies=[Depends(enforce_register_rate_limit)])
async def register(
    payload: schemas.RegisterRequest,
    service: AuthService = _service_dependency,
) -> ORJSONResponse:
    """Create an account and email a verification link."""

    user = await service.register(
        email=payload.email,
        password=payload.password,
        name=payload.name,
        avatar_url=payload.avatar_url,
        redirect_url=_redirect(payload.redirect_url),
    )
    return success(
        "User registered successfully. Please check your email to verify your account.",
        schemas.UserRead.model_validate(user),
    )


@router.post("/login", dependencies=[Depends(enforce_login_rate_limit)])
async def login(
    payload: schemas.LoginRequest,
    request: Request,
    service: AuthService = _service_dependency,
    settings: Settings = _settings_dependency,
) -> ORJSONResponse:
    result = await service.login(
        email=payload.email, password=payload.password, client=_client_info(request)
    )
    response = success(
        "Login successful",
        schemas.AuthResult(
            access_token=result.access_token,
            expires_in=_expires_in(result.expires_at),
            user=schemas.UserRead.model_validate(result.user),
        ),
    )
    _set_refresh_cookie(response, result.refresh_token, settings)
    return cache_busting_headers(response)


@router.post("/google", dependencies=[Depends(enforce_login_rate_limit)])
async def google_login(
    payload: schemas.GoogleLoginRequest,
    request: Request,
    service: AuthService = _service_dependency,
    settings: Settings = _settings_dependency,
) -> ORJSONResponse:
    """Sign in with a Google ID token or an authorization code."""

    result = await service.google_login(
        client=_client_info(request), id_token=payload.id_token, code=payload.code
    )
    response = success(
        "Login successful",
        schemas.AuthResult(
            access_token=result.access_token,
            expires_in=_expires_in(result.expires_at),
            user=schemas.UserRead.model_validate(result.user),
        ),
    )
    _set_refresh_cookie(response, result.refresh_token, settings)
    return cache_busting_headers(response)


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    service: AuthService = _service_dependency,
    settings: Settings = _settings_dependency,
) -> ORJSONResponse:
    """Rotate the refresh cookie and issue a new access token."""

    result = await service.refresh(
        _refresh_cookie(request, settings), client=_client_info(request)
    )
    response = success(
        "Token refreshed successfully",
        schemas.AuthResult(
            access_token=result.access_token,
            expires_in=_expires_in(result.expires_at),
        ),
    )
    _set_refresh_cookie(response, result.refresh_token, settings)
    return cache_busting_headers(response)


@router.post("/logout")
async def logout(
    request: Request,
    service: AuthService = _service_dependency,
    settings: Settings = _settings_dependency,
) -> ORJSONResponse:
    await service.logout(_refresh_cookie(request, settings))
    response = success("Logout successful")
    _clear_refresh_cookie(response, settings)
    return cache_busting_headers(response)


@router.get("/me")
async def me(
    user: AccessClaims = _current_user_dependency,
    service: AuthService = _service_dependency,
) -> ORJSONResponse:
    account = await service.get_profile(user.user_id)
    return success(
        "Profile retrieved successfully", schemas.UserWithProfile.model_validate(account)
    )


@router.post("/verify-email")
async def verify_email(
    payload: schemas.VerifyEmailRequest,
    service: AuthService = _service_dependency,
) -> ORJSONResponse:
    await service.verify_email(email=payload.email, token=payload.token)
    return success("Email verified successfully")


@router.post("/resend-verify-email", dependencies=[Depends(enforce_forgot_password_rate_limit)])
async def resend_verify_email(
    payload: schemas.EmailRequest,
    service: AuthService = _service_dependency,
) -> ORJSONResponse:
    await service.resend_verification(
        email=payload.email, redirect_url=_redirect(payload.redirect_url)
    )
    return success("Verification email sent")


@router.post("/forgot-password", dependencies=[Depends(enforce_forgot_password_rate_limit)])
async def forgot_password(
    payload: schemas.EmailRequest,
    service: AuthService = _service_dependency,
) -> ORJSONResponse:
    await service.forgot_password(
        email=payload.email, redirect_url=_redirect(payload.redirect_url)
    )
    return success("Password reset email sent")


@router.post("/reset-password")
async def reset_password(
    payload: schemas.ResetPasswordRequest,
    service: AuthService = _service_dependency,
) -> ORJSONResponse:
    await service.reset_password(
        email=payload.email, token=payload.token, new_password=payload.password
    )
    return cache_busting_headers(success("Password reset successfully"))


@router.get("/users", dependencies=[Depends(require_admin)])
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: AuthService = _service_dependency,
) -> ORJSONResponse:
    users, total = await service.list_users(page=page, limit=limit)
    return success(
        "Users retrieved successfully",
        schemas.UserPage(
            data=[schemas.UserRead.model_validate(user) for user in users],
            meta=page_meta(total=total, page=page, limit=limit),
        ),
    )
