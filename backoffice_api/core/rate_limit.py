"""Rate limiting wiring for FastAPI routes.

This module connects the rate limiting adapter to the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on dependency functions only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.

Rate limiting strategy:
- Per client IP before authentication (``ip:<address>``).
- Per authenticated user afterwards (``user:<id>``).
"""

from __future__ import annotations

import hashlib
import logging
import math

from fastapi import Request, status
from fastapi.responses import JSONResponse

from backoffice_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitConfig
from backoffice_api.adapters.rate_limit.in_memory import InMemoryRateLimiter
from backoffice_api.core.config import settings
from backoffice_api.core.errors import RateLimitExceededError

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60
RATE_LIMIT_ERROR = "Limite de requisições excedido"


_limiter: AbstractRateLimiter | None = None


def current_rate_limit_config() -> RateLimitConfig:
    return RateLimitConfig(
        window_ms=settings.app.rate_limit_window_ms,
        max_requests=settings.app.rate_limit_max_requests,
    )


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests. The
    window configuration is read from settings on every check, so tests can
    change it without rebuilding the limiter.
    """

    global _limiter

    if _limiter is None:
        _limiter = InMemoryRateLimiter(default_config=current_rate_limit_config())

    return _limiter


def set_rate_limiter(limiter: AbstractRateLimiter | None) -> None:
    """Replace (or drop, with None) the process-wide limiter."""

    global _limiter
    _limiter = limiter


def create_rate_limit_response(
    retry_after_seconds: int = DEFAULT_RETRY_AFTER_SECONDS,
    message: str | None = None,
) -> JSONResponse:
    """Build the standard 429 Too Many Requests response.

    Args:
        retry_after_seconds: Seconds the client should wait before retrying.
        message: Optional human-readable hint; a default one is derived from
            the retry delay.

    Returns:
        JSONResponse with ``Retry-After`` header and
        ``{error, message, retryAfter}`` body.
    """

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": RATE_LIMIT_ERROR,
            "message": message
            or f"Por favor, aguarde {retry_after_seconds} segundos antes de tentar novamente.",
            "retryAfter": retry_after_seconds,
        },
        headers={"Retry-After": str(retry_after_seconds)},
    )


def client_ip(request: Request) -> str:
    """Best-effort client address, honouring proxy headers."""

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing identities."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _retry_after_seconds(limiter: AbstractRateLimiter, key: str, config: RateLimitConfig) -> int:
    reset_in_ms = limiter.info(key, config).reset_in
    return max(1, math.ceil(reset_in_ms / 1000))


def enforce_rate_limit(key: str, *, message: str | None = None) -> None:
    """Consume one request from ``key``'s budget.

    Args:
        key: Namespaced limiter identifier.
        message: Client-facing hint used when blocked.

    Raises:
        RateLimitExceededError: When the identifier is over its limit.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter()
    config = current_rate_limit_config()
    key_type = key.split(":", 1)[0]

    if not limiter.check(key, config):
        return

    retry_after = _retry_after_seconds(limiter, key, config)
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_type": key_type,
            "key_hash": _hash_limiter_key(key),
            "limit": config.max_requests,
            "window_ms": config.window_ms,
            "retry_after_s": retry_after,
        },
    )
    raise RateLimitExceededError(
        code="rate_limit_exceeded",
        message=message
        or f"Por favor, aguarde {retry_after} segundos antes de tentar novamente.",
        retry_after_seconds=retry_after,
    )


async def enforce_ip_rate_limit(request: Request) -> None:
    """FastAPI dependency throttling by client IP."""

    enforce_rate_limit(f"ip:{client_ip(request)}")


def enforce_user_rate_limit(user_id: str) -> None:
    """Throttle an authenticated user independently of their address."""

    enforce_rate_limit(
        f"user:{user_id}",
        message="Você está enviando muitas requisições. Aguarde um momento.",
    )
