"""Pydantic schemas for cash-flow projection requests and responses."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Amounts leave the API as JSON numbers, not strings.
JsonNumber = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CashFlowProjectionRequest(BaseModel):
    """Optional body of a projection request."""

    model_config = ConfigDict(extra="ignore")

    days: int | None = Field(
        default=None,
        description="Horizon in days starting today (defaults to 30).",
    )
    organization_id: str | None = Field(
        default=None,
        description="Company to project; defaults to the caller's profile company.",
    )


class ProjectionPointResponse(BaseModel):
    """One day of the projection."""

    date: dt.date = Field(..., description="Calendar day (YYYY-MM-DD).")
    balance: JsonNumber = Field(
        ...,
        description="Running sum of inflows minus outflows from the first day through this one.",
    )
    inflows: JsonNumber = Field(..., description="Sum of receivables due this day.")
    outflows: JsonNumber = Field(..., description="Sum of payables due this day.")
