"""FastAPI application factory for the Storefront API."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import api_router
from .api.responses import failure
from .config import SECURITY_HEADERS, Settings, get_settings
from .database import Database
from .errors import AppError
from .logging import configure_logging
from .middleware.logging import LoggingMiddleware
from .middleware.security import SecureHeadersMiddleware
from .rate_limit import RateLimits
from .security import PasswordHasher, TokenIssuer
from .seed import seed_super_admin

logger = logging.getLogger("storefront.main")
error_logger = logging.getLogger("storefront.errors")

_DB_RETRY_AFTER_SECONDS = "600"
_DATASET = "storefront-api.app"


def _set_request_id_header(response: Response, request: Request) -> None:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers["X-Request-ID"] = request_id


def _field_errors(errors: list[Any]) -> dict[str, str]:
    """Collapse pydantic error entries into ``{field: message}``."""

    fields: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        fields.setdefault(field, str(error.get("msg", "Invalid value")))
    return fields


def _validation_response(request: Request, errors: list[Any]) -> Response:
    logger.warning(
        "Request validation failed",
        extra={
            "event_dataset": _DATASET,
            "event_action": "validation_failed",
            "http_status_code": status.HTTP_400_BAD_REQUEST,
            "http_request_method": request.method,
            "url_path": request.url.path,
            "validation_error_count": len(errors),
        },
    )
    response = failure(
        "Validation failed",
        status_code=status.HTTP_400_BAD_REQUEST,
        errors=_field_errors(errors),
    )
    _set_request_id_header(response, request)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure onto the ``{success: false, ...}`` envelope."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
        return _validation_response(request, list(exc.errors()))

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> Response:
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            level,
            "Request failed",
            extra={
                "event_dataset": _DATASET,
                "event_action": "app_error",
                "http_status_code": exc.status_code,
                "http_request_method": request.method,
                "url_path": request.url.path,
                "error_type": type(exc).__name__,
                "error_message": exc.message[:256],
            },
        )
        response = failure(
            exc.message,
            status_code=exc.status_code,
            errors=exc.errors,
            headers=exc.headers,
        )
        _set_request_id_header(response, request)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        response = failure(
            detail,
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )
        _set_request_id_header(response, request)
        return response

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> Response:
        logger.warning(
            "Database constraint violated",
            extra={
                "event_dataset": _DATASET,
                "event_action": "integrity_error",
                "http_status_code": status.HTTP_409_CONFLICT,
                "http_request_method": request.method,
                "url_path": request.url.path,
                "error_type": type(exc.orig).__name__ if exc.orig else type(exc).__name__,
            },
        )
        response = failure(
            "Resource conflicts with existing data",
            status_code=status.HTTP_409_CONFLICT,
        )
        _set_request_id_header(response, request)
        return response

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> Response:
        """Convert transient database errors into a cache-friendly 503 response."""

        error_logger.exception(
            "Database error while handling request",
            extra={
                "event_dataset": _DATASET,
                "event_action": "database_error",
                "http_status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
                "http_request_method": request.method,
                "url_path": request.url.path,
                "error_type": type(exc).__name__,
            },
        )
        response = failure(
            "Temporary database issue. Please retry later.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            headers={"Retry-After": _DB_RETRY_AFTER_SECONDS, "Cache-Control": "no-store"},
        )
        response.headers["Pragma"] = "no-cache"
        _set_request_id_header(response, request)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
        error_logger.exception(
            "Unhandled error while handling request",
            extra={
                "event_dataset": _DATASET,
                "event_action": "unhandled_error",
                "http_status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "http_request_method": request.method,
                "url_path": request.url.path,
                "error_type": type(exc).__name__,
            },
        )
        response = failure(
            "Internal Server Error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        _set_request_id_header(response, request)
        return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build an application bound to ``settings`` (loaded from the environment by default)."""

    settings = settings or get_settings()
    configure_logging(settings.log_dir)

    database = Database(settings.database_url)
    password_hasher = PasswordHasher(settings.bcrypt_rounds)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await seed_super_admin(database, settings, password_hasher)
        logger.info(
            "Application started",
            extra={"event_dataset": _DATASET, "event_action": "startup", "app_env": settings.app_env},
        )
        try:
            yield
        finally:
            await database.dispose()

    app = FastAPI(
        title="Storefront API",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.password_hasher = password_hasher
    app.state.token_issuer = TokenIssuer(settings)
    app.state.rate_limits = RateLimits.from_config(settings.rate_limits)

    app.add_middleware(SecureHeadersMiddleware, headers=SECURITY_HEADERS)
    app.add_middleware(LoggingMiddleware)
    # configure CORS using a controlled list of allowed origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins or (settings.client_origin,)),
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type"],
        allow_credentials=True,
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
