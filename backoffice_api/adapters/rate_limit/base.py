"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Window configuration applied to a check.

    Attributes:
        window_ms: Window length in milliseconds.
        max_requests: Requests allowed per identifier within one window.
    """

    window_ms: int
    max_requests: int


DEFAULT_RATE_LIMIT_CONFIG = RateLimitConfig(window_ms=60_000, max_requests=10)


@dataclass
class RateLimitEntry:
    """Per-identifier counter for the current window.

    Attributes:
        count: Requests observed since ``window_start``.
        window_start: Clock reading (ms) when the window began.
    """

    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitInfo:
    """Read-only quota snapshot for an identifier.

    Attributes:
        remaining: Requests left in the current window (never negative).
        reset_in: Milliseconds until the window resets (0 when no window).
    """

    remaining: int
    reset_in: int


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str, config: RateLimitConfig | None = None) -> bool:
        """Record a request for ``identifier`` and report whether it is blocked.

        Args:
            identifier: Throttling bucket key (e.g., ``ip:1.2.3.4``, ``user:<id>``).
            config: Optional per-call override of the default window.

        Returns:
            True if the caller exceeded the limit, False otherwise.
        """
        raise NotImplementedError

    @abstractmethod
    def info(self, identifier: str, config: RateLimitConfig | None = None) -> RateLimitInfo:
        """Return remaining quota without recording a request."""
        raise NotImplementedError
