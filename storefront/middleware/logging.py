"""Request/response logging middleware that emits structured JSON logs."""

from __future__ import annotations

import logging
import os
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from ..logging import anonymize_ip, bind_request_context, reset_request_context
from ..utils.network import get_client_ip


def _load_float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind request context and emit one access log line per request."""

    noise_paths = {"/health", "/healthz"}

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("storefront.access")
        self.slow_request_ns = int(_load_float_env("SLOW_REQUEST_MS", 500.0) * 1_000_000)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_ns = time.perf_counter_ns()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        client_ip = get_client_ip(request)
        request.state.client_ip = client_ip
        client_ip_logged = anonymize_ip(client_ip)
        tokens = bind_request_context(request_id=request_id, client_ip=client_ip_logged)

        status_code = 500
        error_type: str | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            error_type = type(exc).__name__
            raise
        finally:
            duration_ns = time.perf_counter_ns() - start_ns
            if not (request.url.path in self.noise_paths and status_code < 400):
                log_level = logging.INFO
                if status_code >= 500:
                    log_level = logging.ERROR
                elif status_code >= 400:
                    log_level = logging.WARNING

                extra = {
                    "http_request_method": request.method,
                    "url_path": request.url.path,
                    "url_query": request.url.query or None,
                    "http_status_code": status_code,
                    "event_duration": duration_ns,
                    "client_ip": client_ip_logged,
                    "user_agent": request.headers.get("User-Agent") or None,
                    "event_dataset": "storefront-api.access",
                }
                if duration_ns >= self.slow_request_ns:
                    extra["event_action"] = "slow_request"
                if error_type:
                    extra["error_type"] = error_type
                self.logger.log(
                    log_level,
                    f"{request.method} {request.url.path} -> {status_code}",
                    extra=extra,
                )
            reset_request_context(tokens)
