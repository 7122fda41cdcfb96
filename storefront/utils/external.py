"""Wrapper for calls to third-party services."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from ..errors import AppError, UpstreamServiceError

logger = logging.getLogger("storefront.external")

T = TypeVar("T")


async def call_external(service: str, call: Awaitable[T], *, message: str | None = None) -> T:
    """Await ``call`` and turn any failure into a 502 ``UpstreamServiceError``.

    Application errors raised by the provider wrappers pass through untouched.
    """

    try:
        return await call
    except AppError:
        raise
    except Exception as exc:
        logger.error(
            "External service call failed",
            extra={
                "event_dataset": "storefront-api.external",
                "event_action": "external_call_failed",
                "upstream_service": service,
                "error_type": type(exc).__name__,
                "error_message": str(exc)[:256],
            },
            exc_info=True,
        )
        raise UpstreamServiceError(message or f"{service} request failed") from exc
