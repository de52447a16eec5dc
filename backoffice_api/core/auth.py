"""Bearer token authentication against the managed backend.

Access tokens are issued by the backend's auth service; this module only
forwards them to the store to resolve the owning user. Tokens are never
logged, only a short hash of them.

Design principles:
- Dependency Injection: used via FastAPI Depends() so tests can override the store
- Store-agnostic: works with any AbstractMovementStore implementation
"""

from __future__ import annotations

import hashlib
import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backoffice_api.adapters.store.base import AbstractMovementStore, AuthenticatedUser
from backoffice_api.adapters.store.factory import create_movement_store
from backoffice_api.core.errors import AuthenticationAppError, AuthorizationAppError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_movement_store() -> AbstractMovementStore:
    """Return the process-wide movement store, created on first use."""
    return create_movement_store()


def _token_hash(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:16]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    store: Annotated[AbstractMovementStore, Depends(get_movement_store)],
) -> AuthenticatedUser:
    """FastAPI dependency resolving the caller from ``Authorization: Bearer``.

    Raises:
        AuthenticationAppError: If the header is missing or the token is rejected.
    """
    if credentials is None or not credentials.credentials:
        logger.warning("auth.missing_token")
        raise AuthenticationAppError(
            code="authorization_required",
            message="Authorization header obrigatório",
        )

    token = credentials.credentials
    try:
        user = await store.get_user(token)
    except AuthenticationAppError:
        logger.warning("auth.invalid_token", extra={"token_hash": _token_hash(token)})
        raise

    logger.debug("auth.success", extra={"user_id": user.id})
    return user


async def resolve_company_id(
    user: AuthenticatedUser,
    store: AbstractMovementStore,
    organization_id: str | None = None,
) -> str:
    """Pick the company a request operates on.

    An explicit ``organization_id`` wins; otherwise the company linked to the
    user's profile is used.

    Raises:
        AuthorizationAppError: If the user has no company to fall back to.
    """
    if organization_id:
        return organization_id

    company_id = await store.get_profile_company_id(user.id)
    if not company_id:
        logger.warning("auth.company_not_found", extra={"user_id": user.id})
        raise AuthorizationAppError(
            code="company_not_found",
            message="Usuário sem empresa associada",
        )
    return company_id
