from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True)
class AuthenticatedUser:
	"""User resolved from a bearer access token."""

	id: str
	email: str | None = None
	metadata: dict[str, Any] = field(default_factory=dict)


class AbstractMovementStore(ABC):
	"""Interface for the managed backend holding users, profiles and movements."""

	@abstractmethod
	async def get_user(self, access_token: str) -> AuthenticatedUser:
		"""Resolve the user owning ``access_token``.

		Raises:
			AuthenticationAppError: If the token is rejected.
			StoreAppError: If the backend cannot be reached.
		"""
		...

	@abstractmethod
	async def get_profile_company_id(self, user_id: str) -> str | None:
		"""Return the company linked to the user's profile, if any."""
		...

	@abstractmethod
	async def fetch_movements(
		self,
		company_id: str,
		start: date,
		end: date,
	) -> list[dict[str, Any]]:
		"""Fetch movement rows due within ``[start, end]`` ordered by due date.

		Args:
			company_id: Tenant whose movements are read.
			start: First due date included.
			end: Last due date included.

		Returns:
			list[dict[str, Any]]: Raw rows as returned by the backend.
		"""
		...

	async def aclose(self) -> None:
		"""Release any underlying connections."""
		return None
