"""Daily cash-flow projection over a fixed horizon.

Turns an unordered collection of dated receivables and payables into a dense
series of daily points with a running balance. Amounts are carried as
``Decimal`` so long horizons of small movements do not drift.

This module performs no I/O; callers fetch the rows and hand them in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from backoffice_api.core.errors import InvalidArgumentError, UnclassifiableMovementError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Backend ``type`` value for money expected in; everything else is a payable.
INFLOW_TYPE = "RECEIVABLE"


class Direction(str, Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"


@dataclass(frozen=True)
class Movement:
    """A single dated amount expected in or out.

    ``due_date`` is None when the source row carried no usable date; such
    movements never land in a bucket.
    """

    due_date: date | None
    amount: Decimal
    direction: Direction


@dataclass(frozen=True)
class ProjectionPoint:
    date: date
    balance: Decimal
    inflows: Decimal
    outflows: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "balance": self.balance,
            "inflows": self.inflows,
            "outflows": self.outflows,
        }


def _parse_due_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
        # Full ISO timestamps; only the calendar part matters.
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            pass
    raise UnclassifiableMovementError(
        code="unparseable_due_date",
        message="Movement due date is missing or not an ISO date",
        details={"field": "due_date", "actual_value": value},
    )


def _parse_amount(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise UnclassifiableMovementError(
            code="unparseable_amount",
            message="Movement amount is missing or not numeric",
            details={"field": "net_amount", "actual_value": value},
        )
    try:
        # str() first so floats keep their printed value, not binary noise.
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise UnclassifiableMovementError(
            code="unparseable_amount",
            message="Movement amount is missing or not numeric",
            details={"field": "net_amount", "actual_value": value},
        ) from exc
    if not amount.is_finite():
        raise UnclassifiableMovementError(
            code="unparseable_amount",
            message="Movement amount must be finite",
            details={"field": "net_amount", "actual_value": value},
        )
    return amount


def movement_from_row(row: Mapping[str, Any]) -> Movement:
    """Classify a backend transaction row as a Movement.

    Args:
        row: Row with ``due_date``, ``type`` and ``net_amount`` (or ``amount``).

    Returns:
        Movement with a parsed date, Decimal amount and direction.

    Raises:
        UnclassifiableMovementError: If the date or amount cannot be parsed.
    """
    direction = Direction.INFLOW if row.get("type") == INFLOW_TYPE else Direction.OUTFLOW
    raw_amount = row.get("net_amount")
    if raw_amount is None:
        raw_amount = row.get("amount")
    return Movement(
        due_date=_parse_due_date(row.get("due_date")),
        amount=_parse_amount(raw_amount),
        direction=direction,
    )


def movements_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[Movement]:
    """Convert rows to movements, skipping rows that cannot be classified."""
    movements: list[Movement] = []
    skipped = 0
    for row in rows:
        try:
            movements.append(movement_from_row(row))
        except UnclassifiableMovementError as exc:
            skipped += 1
            logger.warning(
                "cash_flow.movement_skipped",
                extra={
                    "error_code": exc.code,
                    "movement_id": row.get("id"),
                },
            )
    if skipped:
        logger.info(
            "cash_flow.movements_skipped",
            extra={"skipped": skipped, "accepted": len(movements)},
        )
    return movements


def project(
    movements: Iterable[Movement],
    horizon_days: int,
    reference_date: date,
) -> list[ProjectionPoint]:
    """Project a daily running balance over ``horizon_days`` from ``reference_date``.

    Movements dated outside ``[reference_date, reference_date + horizon_days - 1]``
    or without a date are ignored. The balance starts at zero on the day
    before ``reference_date``.

    Args:
        movements: Movements to aggregate; not mutated.
        horizon_days: Number of daily points to emit (must be >= 1).
        reference_date: First day of the horizon.

    Returns:
        Exactly ``horizon_days`` points in ascending date order.

    Raises:
        InvalidArgumentError: If ``horizon_days`` is not a positive integer.
    """
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int) or horizon_days <= 0:
        raise InvalidArgumentError(
            code="invalid_horizon",
            message="Projection horizon must be a positive number of days",
            details={"field": "days", "min_value": 1, "actual_value": horizon_days},
        )

    last_day = reference_date + timedelta(days=horizon_days - 1)
    buckets: dict[date, list[Decimal]] = {}

    for movement in movements:
        due = movement.due_date
        if due is None or due < reference_date or due > last_day:
            continue
        sums = buckets.setdefault(due, [ZERO, ZERO])
        if movement.direction is Direction.INFLOW:
            sums[0] += movement.amount
        else:
            sums[1] += movement.amount

    points: list[ProjectionPoint] = []
    balance = ZERO
    for offset in range(horizon_days):
        day = reference_date + timedelta(days=offset)
        inflows, outflows = buckets.get(day, (ZERO, ZERO))
        balance += inflows - outflows
        points.append(ProjectionPoint(date=day, balance=balance, inflows=inflows, outflows=outflows))

    return points
