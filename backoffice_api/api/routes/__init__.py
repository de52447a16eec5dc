from __future__ import annotations

from backoffice_api.api.routes.cash_flow import router as cash_flow_router
from backoffice_api.api.routes.health import router as health_router

__all__ = ["cash_flow_router", "health_router"]
