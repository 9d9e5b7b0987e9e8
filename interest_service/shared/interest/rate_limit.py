"""Per-process fixed-window rate limiting for the interest form."""

import math
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict

from fastapi import Request

RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("INTEREST_RATE_LIMIT_MAX", "5"))
RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get("INTEREST_RATE_LIMIT_WINDOW_SECONDS", str(60 * 60)))
RATE_LIMIT_MAX_ENTRIES = 10000


def get_client_ip(request: Request) -> str:
    """
    Best-effort client IP for rate limiting.
    Clients without any proxy header all share the "unknown" bucket.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    for header in ("X-Real-IP", "CF-Connecting-IP"):
        value = request.headers.get(header)
        if value and value.strip():
            return value.strip()
    return "unknown"


@dataclass
class RateLimitEntry:
    count: int
    window_reset_at: float


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float

    @property
    def reset_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.reset_at, tz=timezone.utc)

    def retry_after_seconds(self, now: float) -> int:
        return max(1, math.ceil(self.reset_at - now))


class FixedWindowRateLimiter:
    """
    Counts requests per key in fixed windows that reset wholesale.

    State lives in this process only: it is lost on restart and not shared
    between instances. The map is bounded; expired entries are swept when it
    fills up, then the entry closest to expiry is dropped.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        max_entries: int = RATE_LIMIT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self.clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def hit(self, key: str) -> RateLimitResult:
        """Record a request for key and report whether it is allowed."""
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)

            if entry is None or now > entry.window_reset_at:
                if entry is None:
                    self._make_room(now)
                entry = RateLimitEntry(count=1, window_reset_at=now + self.window_seconds)
                self._entries[key] = entry
                return RateLimitResult(True, self.max_requests - 1, entry.window_reset_at)

            if entry.count >= self.max_requests:
                return RateLimitResult(False, 0, entry.window_reset_at)

            entry.count += 1
            return RateLimitResult(True, self.max_requests - entry.count, entry.window_reset_at)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def _make_room(self, now: float) -> None:
        # Caller holds the lock
        if len(self._entries) < self.max_entries:
            return
        expired = [k for k, e in self._entries.items() if now > e.window_reset_at]
        for k in expired:
            del self._entries[k]
        while len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].window_reset_at)
            del self._entries[oldest]
