import asyncio
import time
from collections import defaultdict, deque
from dataclasses import dataclass

from fastapi import Request

from .config import RateLimitConfig
from .errors import TooManyRequestsError
from .utils.network import get_client_ip


class RateLimiter:
    """Simple in-memory sliding window rate limiter."""

    def __init__(self, limit: int, period: int) -> None:
        self.limit = limit
        self.period = period
        self.history: dict[str, deque] = defaultdict(deque)
        self.lock = asyncio.Lock()

    async def is_allowed(self, key: str) -> tuple[bool, int, float]:
        now = time.monotonic()
        cutoff = now - self.period
        async with self.lock:
            q = self.history[key]
            while q and q[0] <= cutoff:
                q.popleft()
            if len(q) >= self.limit:
                retry_after = self.period - (now - q[0])
                return False, 0, retry_after
            q.append(now)
            remaining = self.limit - len(q)
        return True, remaining, 0.0


@dataclass
class RateLimits:
    """Per-application limiters for the credential endpoints."""

    register: RateLimiter
    login: RateLimiter
    forgot_password: RateLimiter

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> "RateLimits":
        return cls(
            register=RateLimiter(config.register, config.period),
            login=RateLimiter(config.login, config.period),
            forgot_password=RateLimiter(config.forgot_password, config.period),
        )


async def _enforce(request: Request, limiter: RateLimiter) -> None:
    allowed, remaining, retry_after = await limiter.is_allowed(get_client_ip(request))
    if not allowed:
        raise TooManyRequestsError(
            "Too many requests, please try again later.",
            headers={
                "Retry-After": str(max(1, int(retry_after))),
                "X-RateLimit-Remaining": "0",
            },
        )
    request.state.rate_limit_remaining = remaining


async def enforce_register_rate_limit(request: Request) -> None:
    await _enforce(request, request.app.state.rate_limits.register)


async def enforce_login_rate_limit(request: Request) -> None:
    """Shared by password and Google sign-in."""
    await _enforce(request, request.app.state.rate_limits.login)


async def enforce_forgot_password_rate_limit(request: Request) -> None:
    await _enforce(request, request.app.state.rate_limits.forgot_password)
