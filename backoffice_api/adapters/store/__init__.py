"""Movement store adapter layer - abstracts over the managed backend."""

from backoffice_api.adapters.store.base import AbstractMovementStore, AuthenticatedUser
from backoffice_api.adapters.store.factory import create_movement_store
from backoffice_api.adapters.store.supabase_client import SupabaseMovementStore

__all__ = [
    "AbstractMovementStore",
    "AuthenticatedUser",
    "SupabaseMovementStore",
    "create_movement_store",
]
