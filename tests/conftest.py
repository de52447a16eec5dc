"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any import that might load settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("STORE_URL", "https://backend.test")
os.environ.setdefault("STORE_SERVICE_KEY", "service-role-key-test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from backoffice_api.core.rate_limit import set_rate_limiter
from tests.fakes import FakeMovementStore


@pytest.fixture
def fake_store() -> FakeMovementStore:
    return FakeMovementStore()


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    """Give every test its own process-wide limiter."""
    set_rate_limiter(None)
    yield
    set_rate_limiter(None)
