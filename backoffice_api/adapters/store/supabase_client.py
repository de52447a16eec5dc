"""Supabase (PostgREST + GoTrue) movement store adapter."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from backoffice_api.adapters.store.base import AbstractMovementStore, AuthenticatedUser
from backoffice_api.core.errors import AuthenticationAppError, StoreAppError

logger = logging.getLogger(__name__)


class SupabaseMovementStore(AbstractMovementStore):
    """Reads users, profiles and transactions over the backend's HTTP API.

    Uses the service-role key, which bypasses row-level security: every query
    filters by company explicitly.
    """

    def __init__(
        self,
        url: str,
        service_key: str,
        *,
        timeout_seconds: float = 10.0,
        movements_table: str = "transactions",
        profiles_table: str = "profiles",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            url: Backend base URL.
            service_key: Service-role key for ``apikey``/``Authorization``.
            timeout_seconds: Timeout for each backend call.
            movements_table: Table holding receivables and payables.
            profiles_table: Table mapping users to companies.
            transport: Optional transport override (tests use MockTransport).
        """
        self._service_key = service_key
        self._movements_table = movements_table
        self._profiles_table = profiles_table
        self.client = httpx.AsyncClient(
            base_url=url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            headers={"apikey": service_key},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def _service_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._service_key}"}

    async def _get(self, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self.client.get(path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "store.request_failed",
                extra={"path": path, "error_type": type(exc).__name__},
            )
            raise StoreAppError(
                code="store_unavailable",
                message="Backend store is unavailable",
            ) from exc

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        if response.is_success:
            return
        logger.error(
            "store.unexpected_status",
            extra={"path": path, "status_code": response.status_code},
        )
        raise StoreAppError(
            code="store_unavailable",
            message="Backend store returned an error",
            details={"http_status": response.status_code},
        )

    async def get_user(self, access_token: str) -> AuthenticatedUser:
        path = "/auth/v1/user"
        response = await self._get(path, headers={"Authorization": f"Bearer {access_token}"})

        if response.status_code in (401, 403):
            raise AuthenticationAppError(
                code="invalid_token",
                message="Usuário não autenticado",
            )
        self._raise_for_status(response, path)

        data = response.json()
        if not isinstance(data, dict) or not data.get("id"):
            raise AuthenticationAppError(
                code="invalid_token",
                message="Usuário não autenticado",
            )
        return AuthenticatedUser(
            id=str(data["id"]),
            email=data.get("email"),
            metadata=data.get("user_metadata") or {},
        )

    async def get_profile_company_id(self, user_id: str) -> str | None:
        path = f"/rest/v1/{self._profiles_table}"
        response = await self._get(
            path,
            params={"select": "company_id", "id": f"eq.{user_id}", "limit": "1"},
            headers=self._service_headers(),
        )
        self._raise_for_status(response, path)

        rows = response.json()
        if not rows:
            return None
        company_id = rows[0].get("company_id")
        return str(company_id) if company_id else None

    async def fetch_movements(
        self,
        company_id: str,
        start: date,
        end: date,
    ) -> list[dict[str, Any]]:
        path = f"/rest/v1/{self._movements_table}"
        # Repeated due_date keys become an AND of both bounds in PostgREST.
        params = [
            ("select", "*"),
            ("company_id", f"eq.{company_id}"),
            ("due_date", f"gte.{start.isoformat()}"),
            ("due_date", f"lte.{end.isoformat()}"),
            ("order", "due_date.asc"),
        ]
        response = await self._get(path, params=params, headers=self._service_headers())
        self._raise_for_status(response, path)

        rows = response.json()
        if not isinstance(rows, list):
            raise StoreAppError(
                code="store_invalid_response",
                message="Backend store returned an unexpected payload",
            )
        return rows
