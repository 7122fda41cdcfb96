"""Logging filters that enrich and sanitise records."""

from __future__ import annotations

import logging

from .context import client_ip_ctx_var, request_id_ctx_var, user_id_ctx_var, user_role_ctx_var
from .privacy import sanitize_value

_CONTEXT_ATTRIBUTES = (
    ("request_id", request_id_ctx_var),
    ("client_ip", client_ip_ctx_var),
    ("user_id", user_id_ctx_var),
    ("user_role", user_role_ctx_var),
)
_UNTOUCHED = frozenset({"exc_info", "exc_text", "stack_info", "msg", "args"})


class PrivacyFilter(logging.Filter):
    """Ensure credentials and tokens never hit the logs."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for key in list(record.__dict__.keys()):
            if key not in _UNTOUCHED:
                record.__dict__[key] = sanitize_value(key, record.__dict__[key])
        if isinstance(record.args, dict):
            record.args = {k: sanitize_value(k, v) for k, v in record.args.items()}
        return True


class RequestContextFilter(logging.Filter):
    """Copy request scoped context onto records that do not set the fields themselves."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for attribute, ctx_var in _CONTEXT_ATTRIBUTES:
            value = ctx_var.get()
            if value and not getattr(record, attribute, None):
                setattr(record, attribute, value)
        return True
