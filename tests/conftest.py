"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``gradekit`` import so that the
settings object is built from them and no .env file is loaded.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Iterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from gradekit.core.app_factory import create_app  # noqa: E402


class FakeClock:
    """Deterministic clock injected into the limiter and the cache."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client with the app lifespan running (stores and sweepers live)."""
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123", "X-User-ID": "student-1"}
