"""Tests for repository URL resolution (route and service)."""

import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from gradekit.core.app_factory import create_app
from gradekit.core.config import CacheSettings, Settings
from gradekit.core.errors import ValidationAppError
from gradekit.services.github_service import RepositoryService
from gradekit.utils.ttl_cache import TTLCache


def test_resolve_returns_canonical_coordinates(client, api_headers) -> None:
    resp = client.post(
        "/v1/github/resolve",
        json={"url": "https://github.com/octocat/Hello-World.git"},
        headers=api_headers,
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "owner": "octocat",
        "repo": "Hello-World",
        "html_url": "https://github.com/octocat/Hello-World",
        "api_url": "https://api.github.com/repos/octocat/Hello-World",
        "clone_url": "https://github.com/octocat/Hello-World.git",
    }
    assert "github:octocat/Hello-World" in client.app.state.cache


def test_repeated_resolution_is_served_from_cache(client, api_headers) -> None:
    payload = {"url": "https://github.com/octocat/Hello-World"}

    client.post("/v1/github/resolve", json=payload, headers=api_headers)
    client.post("/v1/github/resolve", json=payload, headers=api_headers)

    stats = client.app.state.cache.stats()
    assert stats["size"] == 1
    assert stats["hits"] == 1


def test_invalid_url_returns_400(client, api_headers) -> None:
    resp = client.post(
        "/v1/github/resolve",
        json={"url": "https://gitlab.com/octocat/Hello-World"},
        headers=api_headers,
    )

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "invalid_github_url"
    assert error["message"] == "Please provide a GitHub repository URL"


def test_resolution_is_rate_limited_per_user(client, api_headers) -> None:
    payload = {"url": "https://github.com/octocat/Hello-World"}
    for _ in range(30):
        assert client.post("/v1/github/resolve", json=payload, headers=api_headers).status_code == 200

    blocked = client.post("/v1/github/resolve", json=payload, headers=api_headers)

    assert blocked.status_code == 429
    assert blocked.json()["error"]["details"]["operation"] == "github_fetch"


def test_resolution_uses_app_cache_ttl(api_headers) -> None:
    app = create_app(Settings(cache=CacheSettings(github_repo_ttl_seconds=5)))

    with TestClient(app) as client:
        before = time.time()
        client.post(
            "/v1/github/resolve",
            json={"url": "https://github.com/octocat/Hello-World"},
            headers=api_headers,
        )
        item = app.state.cache._store["github:octocat/Hello-World"]

    assert before < item.expires_at <= time.time() + 5


def test_missing_api_key_does_not_consume_budget(client, api_headers) -> None:
    payload = {"url": "https://github.com/octocat/Hello-World"}
    anonymous = {"X-User-ID": api_headers["X-User-ID"]}

    assert client.post("/v1/github/resolve", json=payload, headers=anonymous).status_code == 403
    assert len(client.app.state.rate_limiter) == 0


@pytest.mark.asyncio
async def test_service_produces_once_per_repository() -> None:
    service = RepositoryService(TTLCache(), ttl_seconds=60)

    with patch("gradekit.services.github_service.logger") as mock_logger:
        first = await service.resolve("https://github.com/octocat/Hello-World")
        second = await service.resolve("https://github.com/octocat/Hello-World/issues")

    assert first == second
    assert mock_logger.info.call_count == 1


@pytest.mark.asyncio
async def test_service_rejects_invalid_url() -> None:
    service = RepositoryService(TTLCache())

    with pytest.raises(ValidationAppError) as exc_info:
        await service.resolve("not a url")

    assert exc_info.value.details == {"field": "url"}
