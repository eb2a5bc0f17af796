"""
Per-Client Rate Limiting.

Bounds how many synthesis requests one client may issue per window
(100 per hour by default). Every call to the provider costs money, so the
limiter runs before any validation or synthesis work.

Architecture:
    A fixed window per client key, stored as (window_start, count) in a
    dict guarded by a single threading.Lock. FastAPI runs synchronous
    handlers and dependencies in a threadpool, so the lock is what makes
    concurrent increments safe.

Window Rollover:
    A client's window resets lazily the next time it is seen after
    window_seconds have elapsed. Clients that never come back are swept
    out once the table grows beyond max_clients. A sweep records when the
    oldest surviving window ends and no further scan runs before then, so
    a table full of live clients is not rescanned on every request.

Usage:
    limiter = RateLimiter(limit=100, window_seconds=3600)

    decision = limiter.check("203.0.113.7")
    if not decision.allowed:
        return 429 with decision.headers()

Response Headers:
    X-RateLimit-Limit      - Quota per window
    X-RateLimit-Remaining  - Requests left in the current window
    X-RateLimit-Reset      - Seconds until the window resets
    Retry-After            - Same as X-RateLimit-Reset, on rejection only
"""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from ipa_server.core.logging import debug, get_logger, verbose

_LOG = get_logger("ipa-server.rate_limit")


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of one admission check.

    Attributes:
        allowed: Whether the request was admitted (and counted).
        limit: Quota per window.
        remaining: Requests left in the current window after this one.
        reset_after: Seconds until the current window ends.
    """
    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    def headers(self) -> Dict[str, str]:
        """Advisory headers describing the client's quota."""
        reset = str(max(0, math.ceil(self.reset_after)))
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": reset,
        }
        if not self.allowed:
            headers["Retry-After"] = reset
        return headers


@dataclass
class RateLimiterStats:
    """Statistics for the rate limiter."""
    limit: int
    window_seconds: float
    tracked_clients: int
    total_admitted: int
    total_rejected: int


class RateLimiter:
    """
    Fixed-window request counter keyed by client identity.

    Args:
        limit: Admitted requests per window per client.
        window_seconds: Window length (3600 for an hourly quota).
        max_clients: Table size above which expired entries are swept.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        limit: int = 100,
        window_seconds: float = 3600.0,
        max_clients: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")

        self.limit = limit
        self.window_seconds = float(window_seconds)
        self.max_clients = max_clients
        self._clock = clock

        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[float, int]] = {}
        # No window in the table can expire before this instant
        self._next_expiry = float("-inf")
        self._total_admitted = 0
        self._total_rejected = 0

    def check(self, key: str) -> RateLimitDecision:
        """
        Admit or reject one request for key.

        Admitted requests are counted against the current window;
        rejected ones are not.
        """
        now = self._clock()
        with self._lock:
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0

            reset_after = start + self.window_seconds - now

            if count >= self.limit:
                self._windows[key] = (start, count)
                self._total_rejected += 1
                verbose(_LOG, "rate_limited", client=key, reset_after=round(reset_after, 1))
                return RateLimitDecision(False, self.limit, 0, reset_after)

            count += 1
            self._windows[key] = (start, count)
            self._total_admitted += 1

            if len(self._windows) > self.max_clients and now >= self._next_expiry:
                self._sweep(now)

            return RateLimitDecision(True, self.limit, self.limit - count, reset_after)

    def _sweep(self, now: float) -> None:
        """
        Drop clients whose window has expired. Caller holds the lock.

        Records when the oldest surviving window ends; until then a full
        table has nothing to evict and the scan is skipped.
        """
        expired = []
        oldest_start = now
        for k, (start, _) in self._windows.items():
            if now - start >= self.window_seconds:
                expired.append(k)
            elif start < oldest_start:
                oldest_start = start
        for k in expired:
            del self._windows[k]
        self._next_expiry = oldest_start + self.window_seconds
        debug(_LOG, "rate_limit_sweep", evicted=len(expired), remaining=len(self._windows))

    def reset(self) -> None:
        """Forget all clients."""
        with self._lock:
            self._windows.clear()
            self._next_expiry = float("-inf")

    def stats(self) -> RateLimiterStats:
        with self._lock:
            return RateLimiterStats(
                limit=self.limit,
                window_seconds=self.window_seconds,
                tracked_clients=len(self._windows),
                total_admitted=self._total_admitted,
                total_rejected=self._total_rejected,
            )
