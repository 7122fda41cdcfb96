"""Per-request values copied onto every log record emitted while serving it."""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass

request_id_ctx_var: ContextVar[str | None] = ContextVar("storefront_request_id", default=None)
client_ip_ctx_var: ContextVar[str | None] = ContextVar("storefront_client_ip", default=None)
user_id_ctx_var: ContextVar[str | None] = ContextVar("storefront_user_id", default=None)
user_role_ctx_var: ContextVar[str | None] = ContextVar("storefront_user_role", default=None)


@dataclass(frozen=True)
class RequestContextTokens:
    request_id: Token[str | None]
    client_ip: Token[str | None]
    user_id: Token[str | None]
    user_role: Token[str | None]


def bind_request_context(request_id: str, client_ip: str | None = None) -> RequestContextTokens:
    """Start a request with a fresh identity; the caller is anonymous until authenticated."""

    return RequestContextTokens(
        request_id=request_id_ctx_var.set(request_id),
        client_ip=client_ip_ctx_var.set(client_ip),
        user_id=user_id_ctx_var.set(None),
        user_role=user_role_ctx_var.set(None),
    )


def reset_request_context(tokens: RequestContextTokens) -> None:
    user_role_ctx_var.reset(tokens.user_role)
    user_id_ctx_var.reset(tokens.user_id)
    client_ip_ctx_var.reset(tokens.client_ip)
    request_id_ctx_var.reset(tokens.request_id)


def set_user_context(user_id: str | None, role: str | None = None) -> None:
    user_id_ctx_var.set(user_id)
    user_role_ctx_var.set(role if user_id else None)
