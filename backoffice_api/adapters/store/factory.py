"""Factory for the movement store adapter."""

from backoffice_api.adapters.store.base import AbstractMovementStore
from backoffice_api.adapters.store.supabase_client import SupabaseMovementStore
from backoffice_api.core.config import settings
from backoffice_api.core.errors import ConfigurationAppError


def create_movement_store() -> AbstractMovementStore:
    """Instantiate the movement store from settings.

    Returns:
        AbstractMovementStore: Configured store client.

    Raises:
        ConfigurationAppError: If the backend URL or service key is missing.
    """
    if not settings.store.url:
        raise ConfigurationAppError(
            code="store_missing_url",
            message="Movement store requires STORE_URL environment variable",
        )
    if not settings.store.service_key:
        raise ConfigurationAppError(
            code="store_missing_service_key",
            message="Movement store requires STORE_SERVICE_KEY environment variable",
        )

    return SupabaseMovementStore(
        url=settings.store.url,
        service_key=settings.store.service_key,
        timeout_seconds=settings.store.timeout_seconds,
        movements_table=settings.store.movements_table,
        profiles_table=settings.store.profiles_table,
    )
