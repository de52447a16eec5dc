from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends

from backoffice_api.adapters.store.base import AbstractMovementStore, AuthenticatedUser
from backoffice_api.core.auth import get_current_user, get_movement_store, resolve_company_id
from backoffice_api.core.config import settings
from backoffice_api.core.rate_limit import enforce_ip_rate_limit, enforce_user_rate_limit
from backoffice_api.schemas.cash_flow import CashFlowProjectionRequest, ProjectionPointResponse
from backoffice_api.services.cash_flow_service import CashFlowService

router = APIRouter(tags=["Cash flow"])


@router.post(
    "/cash-flow/projection",
    response_model=list[ProjectionPointResponse],
    dependencies=[Depends(enforce_ip_rate_limit)],
)
async def cash_flow_projection(
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    store: Annotated[AbstractMovementStore, Depends(get_movement_store)],
    payload: Annotated[CashFlowProjectionRequest | None, Body()] = None,
) -> list[ProjectionPointResponse]:
    """Project the company's daily cash balance.

    Sums receivables and payables due on each day from today through the
    requested horizon and returns one point per day with the running balance.

    Args:
        user: Caller resolved from the bearer token.
        store: Movement store the projection reads from.
        payload: Optional ``{"days", "organization_id"}`` body.

    Returns:
        list[ProjectionPointResponse]: Exactly ``days`` contiguous daily points.

    Raises:
        InvalidArgumentError: 400 when ``days`` is out of range.
        AuthorizationAppError: 403 when no company can be resolved.
        StoreAppError: 502 when the backend cannot be read.
    """
    enforce_user_rate_limit(user.id)

    payload = payload or CashFlowProjectionRequest()
    days = payload.days if payload.days is not None else settings.app.projection_default_days
    company_id = await resolve_company_id(user, store, payload.organization_id)

    points = await CashFlowService(store).project(company_id, days)
    return [ProjectionPointResponse(**point.to_dict()) for point in points]
