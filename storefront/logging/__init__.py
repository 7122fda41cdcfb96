"""Logging utilities organised into focused modules."""

from .config import COMBINED_LOG_FILE, ERROR_LOG_FILE, configure_logging
from .context import (
    RequestContextTokens,
    bind_request_context,
    client_ip_ctx_var,
    request_id_ctx_var,
    reset_request_context,
    set_user_context,
    user_id_ctx_var,
    user_role_ctx_var,
)
from .filters import PrivacyFilter, RequestContextFilter
from .formatter import ECSJsonFormatter, FIELD_MAP, SERVICE_NAME
from .handlers import SecureWatchedFileHandler
from .ip_utils import anonymize_ip
from .privacy import sanitize_value

__all__ = [
    "COMBINED_LOG_FILE",
    "ERROR_LOG_FILE",
    "configure_logging",
    "RequestContextTokens",
    "bind_request_context",
    "client_ip_ctx_var",
    "request_id_ctx_var",
    "reset_request_context",
    "set_user_context",
    "user_id_ctx_var",
    "user_role_ctx_var",
    "PrivacyFilter",
    "RequestContextFilter",
    "ECSJsonFormatter",
    "FIELD_MAP",
    "SERVICE_NAME",
    "SecureWatchedFileHandler",
    "anonymize_ip",
    "sanitize_value",
]
