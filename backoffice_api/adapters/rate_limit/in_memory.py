"""In-memory window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Windows start at an identifier's first request and hard-reset once they
  elapse, so up to ``2 * max_requests`` may pass around a window boundary.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from backoffice_api.adapters.rate_limit.base import (
    DEFAULT_RATE_LIMIT_CONFIG,
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitEntry,
    RateLimitInfo,
)

logger = logging.getLogger(__name__)

# Expired entries are swept once the table grows past this many identifiers.
SWEEP_THRESHOLD = 1000


def _now_ms() -> float:
    return time.time() * 1000


class InMemoryRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping one counter per identifier.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        default_config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
        clock: Callable[[], float] = _now_ms,
        sweep_threshold: int = SWEEP_THRESHOLD,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            default_config: Window applied when a call passes no config.
            clock: Time source returning milliseconds.
            sweep_threshold: Table size above which expired entries are purged.
        """
        self._default_config = default_config
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._lock = threading.Lock()
        self._entries: dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def default_config(self) -> RateLimitConfig:
        return self._default_config

    def _sweep_expired_locked(self, now: float, window_ms: int) -> None:
        expired = [
            key for key, entry in self._entries.items() if now - entry.window_start > window_ms
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": len(expired), "remaining_entries": len(self._entries)},
            )

    def check(self, identifier: str, config: RateLimitConfig | None = None) -> bool:
        cfg = config or self._default_config
        now = self._clock()

        with self._lock:
            if len(self._entries) > self._sweep_threshold:
                self._sweep_expired_locked(now, cfg.window_ms)

            entry = self._entries.get(identifier)
            if entry is None or now - entry.window_start > cfg.window_ms:
                self._entries[identifier] = RateLimitEntry(count=1, window_start=now)
                return False

            entry.count += 1
            return entry.count > cfg.max_requests

    def info(self, identifier: str, config: RateLimitConfig | None = None) -> RateLimitInfo:
        cfg = config or self._default_config
        now = self._clock()

        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None:
                return RateLimitInfo(remaining=cfg.max_requests, reset_in=0)

            elapsed = now - entry.window_start
            if elapsed > cfg.window_ms:
                return RateLimitInfo(remaining=cfg.max_requests, reset_in=0)

            return RateLimitInfo(
                remaining=max(0, cfg.max_requests - entry.count),
                reset_in=int(cfg.window_ms - elapsed),
            )

    def reset(self) -> None:
        """Drop every tracked identifier."""

        with self._lock:
            self._entries.clear()
