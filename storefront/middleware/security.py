"""Middleware that injects security headers for every response."""

from collections.abc import Mapping

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp


class SecureHeadersMiddleware(BaseHTTPMiddleware):
    """Apply configured security headers to success and error responses."""

    def __init__(self, app: ASGIApp, headers: Mapping[str, str | None] | None = None) -> None:
        super().__init__(app)
        self._headers: Mapping[str, str | None] = headers or {}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        forwarded_proto = request.headers.get("x-forwarded-proto", "").lower()
        is_https = request.url.scheme == "https" or forwarded_proto == "https"

        for header, value in self._headers.items():
            if not value:
                continue
            # HSTS only means something over TLS
            if header.lower() == "strict-transport-security" and not is_https:
                continue
            response.headers.setdefault(header, value)
        return response
