"""Utilities for removing sensitive data from log records."""

from __future__ import annotations

import re
from typing import Any

SENSITIVE_KEYWORDS = {
    "authorization",
    "cookie",
    "password",
    "secret",
    "token",
    "apikey",
    "api_key",
    "private_key",
}
# Keys that only look sensitive
SAFE_KEYS = {"token_type", "refresh_token_id"}
MASKED_VALUE = "<redacted>"
MAX_FIELD_LENGTH = 1024


def _normalize_key(key: str) -> str:
    snake = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", key)
    snake = re.sub(r"[^a-zA-Z0-9]+", "_", snake)
    return snake.strip("_").lower()


def _is_sensitive(key: str | None) -> bool:
    if not key:
        return False
    normalized = _normalize_key(key)
    if normalized in SAFE_KEYS:
        return False
    return any(keyword in normalized for keyword in SENSITIVE_KEYWORDS)


def sanitize_value(key: Any, value: Any) -> Any:
    """Redact sensitive information and limit field size."""

    key_text = key if isinstance(key, str) else None
    if isinstance(value, str):
        if _is_sensitive(key_text):
            return MASKED_VALUE
        if len(value) > MAX_FIELD_LENGTH:
            return value[:MAX_FIELD_LENGTH] + "…[truncated]"
        return value
    if isinstance(value, dict):
        return {k: sanitize_value(k, v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        sanitized = [sanitize_value(key, item) for item in value]
        return tuple(sanitized) if isinstance(value, tuple) else sanitized
    return value
