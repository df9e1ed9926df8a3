"""Per-client request quotas.

Fixed-window counters from `limits` (the engine behind slowapi), keyed by
slowapi's client-address helper. The check runs as the first dependency of a
limited route, so it does not depend on how the router tree is mounted.
The limit string uses the `limits` notation, e.g. ``"20/minute"``.
"""
from __future__ import annotations

import time

from fastapi import Request
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from slowapi.util import get_remote_address

from clarifia.core.errors import RateLimited
from clarifia.core.settings import Settings


class RateLimiter:
    def __init__(self, limit: str, enabled: bool = True):
        self.limit = parse(limit)
        self.enabled = enabled
        self._window = FixedWindowRateLimiter(MemoryStorage())

    def hit(self, key: str) -> bool:
        """Count one request for `key`; False once the window is used up."""
        return self._window.hit(self.limit, key)

    def retry_after(self, key: str) -> int:
        reset_at, _ = self._window.get_window_stats(self.limit, key)
        return max(0, int(reset_at - time.time()))


def build_limiter(settings: Settings) -> RateLimiter:
    return RateLimiter(settings.rate_limit, enabled=settings.rate_limit_enabled)


def enforce_rate_limit(request: Request) -> None:
    limiter: RateLimiter = request.app.state.limiter
    if not limiter.enabled:
        return
    key = get_remote_address(request)
    if not limiter.hit(key):
        raise RateLimited(str(limiter.limit), limiter.retry_after(key))
