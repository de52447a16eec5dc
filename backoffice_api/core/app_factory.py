from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from backoffice_api.api.routes import cash_flow_router, health_router
from backoffice_api.core.auth import get_movement_store
from backoffice_api.core.config import settings
from backoffice_api.core.exception_handlers import setup_exception_handlers
from backoffice_api.core.logging import configure_logging
from backoffice_api.core.middleware import request_id_middleware
from backoffice_api.core.openapi import apply_openapi_customizations


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Only close a store that was actually created during the app's lifetime
    if get_movement_store.cache_info().currsize:
        await get_movement_store().aclose()
        get_movement_store.cache_clear()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Back-office API",
        description=(
            "API de automação financeira: projeção diária de fluxo de caixa a partir "
            "das contas a receber e a pagar da empresa. Requer token Bearer e "
            "aplica rate limit por IP e por usuário."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(cash_flow_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
