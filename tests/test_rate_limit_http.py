"""Tests for the HTTP side of rate limiting (429 response, identifiers)."""

import json
from unittest.mock import Mock, patch

import pytest
from starlette.requests import Request

from backoffice_api.adapters.rate_limit.in_memory import InMemoryRateLimiter
from backoffice_api.core.errors import RateLimitExceededError
from backoffice_api.core.rate_limit import (
    client_ip,
    create_rate_limit_response,
    enforce_rate_limit,
    get_rate_limiter,
    set_rate_limiter,
)


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("10.0.0.1", 1234)) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestCreateRateLimitResponse:
    def test_default_response(self) -> None:
        response = create_rate_limit_response()

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        body = json.loads(response.body)
        assert body["retryAfter"] == 60
        assert body["error"] == "Limite de requisições excedido"
        assert "60 segundos" in body["message"]

    def test_custom_retry_and_message(self) -> None:
        response = create_rate_limit_response(12, "Aguarde.")

        body = json.loads(response.body)
        assert response.headers["Retry-After"] == "12"
        assert body == {"error": "Limite de requisições excedido", "message": "Aguarde.", "retryAfter": 12}


class TestClientIp:
    def test_prefers_first_forwarded_hop(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2", "X-Real-IP": "198.51.100.1"})

        assert client_ip(request) == "203.0.113.9"

    def test_falls_back_to_real_ip(self) -> None:
        assert client_ip(_request({"X-Real-IP": "198.51.100.1"})) == "198.51.100.1"

    def test_falls_back_to_socket_peer(self) -> None:
        assert client_ip(_request()) == "10.0.0.1"

    def test_unknown_without_any_source(self) -> None:
        assert client_ip(_request(client=None)) == "unknown"


class TestEnforceRateLimit:
    def test_raises_with_retry_after_from_window(self) -> None:
        clock = Mock(return_value=0.0)
        set_rate_limiter(InMemoryRateLimiter(clock=clock))

        with patch("backoffice_api.core.rate_limit.settings") as mock_settings:
            mock_settings.app.rate_limit_enabled = True
            mock_settings.app.rate_limit_max_requests = 1
            mock_settings.app.rate_limit_window_ms = 30_000

            enforce_rate_limit("ip:1.2.3.4")
            clock.return_value = 10_500.0
            with pytest.raises(RateLimitExceededError) as exc_info:
                enforce_rate_limit("ip:1.2.3.4")

        # 19.5 s left in the window, rounded up
        assert exc_info.value.retry_after_seconds == 20
        assert exc_info.value.code == "rate_limit_exceeded"

    def test_custom_message_is_kept(self) -> None:
        with patch("backoffice_api.core.rate_limit.settings") as mock_settings:
            mock_settings.app.rate_limit_enabled = True
            mock_settings.app.rate_limit_max_requests = 1
            mock_settings.app.rate_limit_window_ms = 60_000

            enforce_rate_limit("user:u1", message="Devagar.")
            with pytest.raises(RateLimitExceededError) as exc_info:
                enforce_rate_limit("user:u1", message="Devagar.")

        assert exc_info.value.message == "Devagar."

    def test_get_rate_limiter_is_process_wide(self) -> None:
        assert get_rate_limiter() is get_rate_limiter()
