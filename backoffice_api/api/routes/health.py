from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Does not touch the backend store or the rate limiter, so it stays
    available while either is degraded.
    """

    return {"status": "ok"}
