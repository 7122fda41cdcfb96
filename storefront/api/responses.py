"""Response envelope shared by every endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import status
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from ..schemas import dump

_CACHE_BUSTER_HEADER_VALUES = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _serialise(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return dump(result)
    if isinstance(result, list):
        return [_serialise(item) for item in result]
    return result


def success(
    message: str,
    result: Any = None,
    *,
    status_code: int = status.HTTP_200_OK,
) -> ORJSONResponse:
    """Wrap ``result`` in ``{success, message, result}``."""

    payload: dict[str, Any] = {"success": True, "message": message}
    if result is not None:
        payload["result"] = _serialise(result)
    return ORJSONResponse(payload, status_code=status_code)


def failure(
    message: str,
    *,
    status_code: int,
    errors: Any = None,
    headers: dict[str, str] | None = None,
) -> ORJSONResponse:
    payload: dict[str, Any] = {"success": False, "message": message}
    if errors:
        payload["errors"] = errors
    return ORJSONResponse(payload, status_code=status_code, headers=headers)


def cache_busting_headers(response: ORJSONResponse) -> ORJSONResponse:
    response.headers.update(_CACHE_BUSTER_HEADER_VALUES)
    return response
