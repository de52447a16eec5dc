"""Unit tests for CashFlowService."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from backoffice_api.core.errors import InvalidArgumentError, StoreAppError
from backoffice_api.services.cash_flow_service import CashFlowService, validate_horizon
from tests.fakes import FakeMovementStore

TODAY = date(2024, 1, 30)


class TestValidateHorizon:
    @pytest.mark.parametrize("days", [1, 30, 366])
    def test_accepts_in_range(self, days: int) -> None:
        assert validate_horizon(days, max_days=366) == days

    @pytest.mark.parametrize("days", [0, -5, 367])
    def test_rejects_out_of_range(self, days: int) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            validate_horizon(days, max_days=366)

        assert exc_info.value.details["max_value"] == 366

    def test_uses_configured_maximum(self) -> None:
        with patch("backoffice_api.services.cash_flow_service.settings") as mock_settings:
            mock_settings.app.projection_max_days = 7

            assert validate_horizon(7) == 7
            with pytest.raises(InvalidArgumentError):
                validate_horizon(8)


class TestCashFlowService:
    @pytest.mark.asyncio
    async def test_queries_store_for_horizon_window(self) -> None:
        store = FakeMovementStore()

        await CashFlowService(store).project("company-1", 30, today=TODAY)

        assert store.queries == [("company-1", TODAY, date(2024, 2, 29))]

    @pytest.mark.asyncio
    async def test_projects_rows_into_daily_points(self) -> None:
        store = FakeMovementStore(
            rows=[
                {"due_date": "2024-01-30", "type": "RECEIVABLE", "net_amount": "1200.00"},
                {"due_date": "2024-01-31", "type": "PAYABLE", "net_amount": "450.10"},
                {"due_date": "2024-01-31", "type": "PAYABLE", "net_amount": "49.90"},
                {"due_date": "2024-02-02", "type": "RECEIVABLE", "net_amount": 300},
            ]
        )

        points = await CashFlowService(store).project("company-1", 5, today=TODAY)

        assert len(points) == 5
        assert [p.balance for p in points] == [
            Decimal("1200.00"),
            Decimal("700.00"),
            Decimal("700.00"),
            Decimal("1000.00"),
            Decimal("1000.00"),
        ]
        assert points[1].outflows == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_row_on_day_after_horizon_is_not_projected(self) -> None:
        # The store query is inclusive of today + days; the projector is not.
        store = FakeMovementStore(
            rows=[{"due_date": "2024-02-02", "type": "RECEIVABLE", "net_amount": "10"}]
        )

        points = await CashFlowService(store).project("company-1", 3, today=TODAY)

        assert points[-1].balance == 0

    @pytest.mark.asyncio
    async def test_bad_rows_do_not_fail_projection(self) -> None:
        store = FakeMovementStore(
            rows=[
                {"due_date": "garbage", "type": "RECEIVABLE", "net_amount": "10"},
                {"due_date": "2024-01-30", "type": "RECEIVABLE", "net_amount": "oops"},
                {"due_date": "2024-01-30", "type": "PAYABLE", "net_amount": "3"},
            ]
        )

        points = await CashFlowService(store).project("company-1", 1, today=TODAY)

        assert points[0].balance == Decimal("-3")

    @pytest.mark.asyncio
    async def test_invalid_horizon_does_not_hit_store(self) -> None:
        store = FakeMovementStore()

        with pytest.raises(InvalidArgumentError):
            await CashFlowService(store).project("company-1", 0, today=TODAY)

        assert store.queries == []

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self) -> None:
        store = FakeMovementStore()
        store.fetch_movements = AsyncMock(
            side_effect=StoreAppError(code="store_unavailable", message="down")
        )

        with pytest.raises(StoreAppError):
            await CashFlowService(store).project("company-1", 10, today=TODAY)

    @pytest.mark.asyncio
    async def test_defaults_reference_to_today(self) -> None:
        store = FakeMovementStore()

        points = await CashFlowService(store).project("company-1", 1)

        assert points[0].date == date.today()
