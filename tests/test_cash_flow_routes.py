"""Tests for the cash-flow projection endpoint.

The movement store is replaced with an in-memory fake through FastAPI's
dependency overrides, so no backend is contacted.
"""

from datetime import date, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from backoffice_api.core.auth import get_movement_store
from backoffice_api.core.errors import StoreAppError
from backoffice_api.main import app
from tests.fakes import FakeMovementStore

URL = "/v1/cash-flow/projection"
AUTH = {"Authorization": "Bearer good-token"}


@pytest.fixture
def store() -> FakeMovementStore:
    today = date.today()
    return FakeMovementStore(
        rows=[
            {"due_date": today.isoformat(), "type": "RECEIVABLE", "net_amount": "50"},
            {"due_date": today.isoformat(), "type": "PAYABLE", "net_amount": "20"},
            {"due_date": (today + timedelta(days=3)).isoformat(), "type": "RECEIVABLE", "net_amount": 100.25},
        ],
        tokens={"good-token": "user-1", "orphan-token": "user-2"},
        profiles={"user-1": "company-1"},
    )


@pytest.fixture
def client(store: FakeMovementStore):
    app.dependency_overrides[get_movement_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestProjection:
    def test_defaults_to_thirty_days(self, client: TestClient, store: FakeMovementStore) -> None:
        response = client.post(URL, headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 30
        assert body[0]["date"] == date.today().isoformat()
        assert store.queries[0][0] == "company-1"

    def test_returns_numbers_with_running_balance(self, client: TestClient) -> None:
        response = client.post(URL, json={"days": 5}, headers=AUTH)

        body = response.json()
        assert len(body) == 5
        assert body[0] == {
            "date": date.today().isoformat(),
            "balance": 30.0,
            "inflows": 50.0,
            "outflows": 20.0,
        }
        assert [p["balance"] for p in body] == [30.0, 30.0, 30.0, 130.25, 130.25]
        assert body[1]["inflows"] == 0

    def test_dates_are_contiguous(self, client: TestClient) -> None:
        body = client.post(URL, json={"days": 10}, headers=AUTH).json()

        expected = [(date.today() + timedelta(days=i)).isoformat() for i in range(10)]
        assert [p["date"] for p in body] == expected

    def test_organization_id_overrides_profile(self, client: TestClient, store: FakeMovementStore) -> None:
        client.post(URL, json={"days": 3, "organization_id": "company-9"}, headers=AUTH)

        assert store.queries[0][0] == "company-9"

    def test_unknown_fields_are_ignored(self, client: TestClient) -> None:
        response = client.post(URL, json={"days": 2, "extra": "x"}, headers=AUTH)

        assert response.status_code == 200

    def test_user_without_company_is_forbidden(self, client: TestClient) -> None:
        response = client.post(URL, json={"days": 3}, headers={"Authorization": "Bearer orphan-token"})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "company_not_found"


class TestValidation:
    @pytest.mark.parametrize("days", [0, -1, 10_000])
    def test_out_of_range_days_is_400(self, client: TestClient, days: int) -> None:
        response = client.post(URL, json={"days": days}, headers=AUTH)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_horizon"

    def test_non_numeric_days_is_400(self, client: TestClient) -> None:
        response = client.post(URL, json={"days": "many"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_request"

    def test_malformed_json_body_is_400(self, client: TestClient, store: FakeMovementStore) -> None:
        response = client.post(
            URL, content=b"not json", headers={**AUTH, "Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_request"
        assert store.queries == []


class TestAuthentication:
    def test_missing_header_is_401(self, client: TestClient) -> None:
        response = client.post(URL, json={"days": 3})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "authorization_required"

    def test_rejected_token_is_401(self, client: TestClient) -> None:
        response = client.post(URL, json={"days": 3}, headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "invalid_token"


def test_store_failure_is_502(client: TestClient, store: FakeMovementStore) -> None:
    store.fetch_movements = AsyncMock(
        side_effect=StoreAppError(code="store_unavailable", message="Backend store is unavailable")
    )

    response = client.post(URL, json={"days": 3}, headers=AUTH)

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "store_unavailable"


class TestRateLimiting:
    def test_blocks_ip_after_limit(self, client: TestClient) -> None:
        with patch("backoffice_api.core.rate_limit.settings") as mock_settings:
            mock_settings.app.rate_limit_enabled = True
            mock_settings.app.rate_limit_max_requests = 2
            mock_settings.app.rate_limit_window_ms = 60_000

            headers = {**AUTH, "X-Forwarded-For": "203.0.113.7"}
            assert client.post(URL, json={"days": 1}, headers=headers).status_code == 200
            assert client.post(URL, json={"days": 1}, headers=headers).status_code == 200
            response = client.post(URL, json={"days": 1}, headers=headers)

        assert response.status_code == 429
        body = response.json()
        assert set(body) == {"error", "message", "retryAfter"}
        assert body["retryAfter"] >= 1
        assert response.headers["Retry-After"] == str(body["retryAfter"])

    def test_blocks_user_across_addresses(self, client: TestClient) -> None:
        with patch("backoffice_api.core.rate_limit.settings") as mock_settings:
            mock_settings.app.rate_limit_enabled = True
            mock_settings.app.rate_limit_max_requests = 2
            mock_settings.app.rate_limit_window_ms = 60_000

            statuses = [
                client.post(
                    URL,
                    json={"days": 1},
                    headers={**AUTH, "X-Forwarded-For": f"198.51.100.{i}"},
                ).status_code
                for i in range(3)
            ]

        assert statuses == [200, 200, 429]

    def test_ip_limit_applies_before_authentication(self, client: TestClient) -> None:
        with patch("backoffice_api.core.rate_limit.settings") as mock_settings:
            mock_settings.app.rate_limit_enabled = True
            mock_settings.app.rate_limit_max_requests = 1
            mock_settings.app.rate_limit_window_ms = 60_000

            headers = {"X-Forwarded-For": "192.0.2.1"}
            assert client.post(URL, headers=headers).status_code == 401
            assert client.post(URL, headers=headers).status_code == 429

    def test_disabled_limiter_never_blocks(self, client: TestClient) -> None:
        with patch("backoffice_api.core.rate_limit.settings") as mock_settings:
            mock_settings.app.rate_limit_enabled = False

            statuses = {client.post(URL, json={"days": 1}, headers=AUTH).status_code for _ in range(15)}

        assert statuses == {200}
