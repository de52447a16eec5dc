"""Cash-flow projection service.

Orchestrates a projection request: validates the horizon, reads the company's
movements from the store, classifies the rows and reduces them into daily
points.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from backoffice_api.adapters.store.base import AbstractMovementStore
from backoffice_api.core.config import settings
from backoffice_api.core.errors import InvalidArgumentError
from backoffice_api.services.cash_flow_projector import (
    ProjectionPoint,
    movements_from_rows,
    project,
)

logger = logging.getLogger(__name__)


def validate_horizon(days: int, max_days: int | None = None) -> int:
    """Check a client-supplied horizon against the configured bounds.

    Args:
        days: Requested number of days.
        max_days: Upper bound; defaults to ``settings.app.projection_max_days``.

    Returns:
        The validated horizon.

    Raises:
        InvalidArgumentError: If ``days`` is outside ``[1, max_days]``.
    """
    limit = max_days if max_days is not None else settings.app.projection_max_days
    if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= limit:
        raise InvalidArgumentError(
            code="invalid_horizon",
            message=f"'days' must be an integer between 1 and {limit}",
            details={"field": "days", "min_value": 1, "max_value": limit, "actual_value": days},
        )
    return days


class CashFlowService:
    """Computes projections for a company from its stored movements."""

    def __init__(self, store: AbstractMovementStore) -> None:
        self._store = store

    async def project(
        self,
        company_id: str,
        days: int,
        *,
        today: date | None = None,
    ) -> list[ProjectionPoint]:
        """Project the company's daily balance over ``days`` starting today.

        Args:
            company_id: Tenant whose movements are projected.
            days: Horizon length in days.
            today: Reference date override (defaults to the local date).

        Returns:
            Exactly ``days`` projection points.

        Raises:
            InvalidArgumentError: If ``days`` is out of bounds.
            StoreAppError: If the movements cannot be read.
        """
        days = validate_horizon(days)
        reference = today or date.today()

        logger.info(
            "cash_flow.projection_requested",
            extra={"company_id": company_id, "days": days},
        )

        rows = await self._store.fetch_movements(
            company_id,
            reference,
            reference + timedelta(days=days),
        )
        movements = movements_from_rows(rows)
        points = project(movements, days, reference)

        logger.info(
            "cash_flow.projection_computed",
            extra={
                "company_id": company_id,
                "days": days,
                "rows": len(rows),
                "movements": len(movements),
                "closing_balance": str(points[-1].balance),
            },
        )
        return points
