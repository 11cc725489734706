"""
Shared test fixtures for the aggregation hub tests.

All hub env vars are cleaned before each test and the working directory is
moved to tmp_path so no .env file is picked up by BaseSettings. Provides
settings fixtures, a JSON-routing httpx.MockTransport factory, and a
TestClient fixture that runs the application lifespan.

CHANGELOG:
- 2026-10-16: Add mock_backend and client fixtures (STORY-110)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from hub.src.models import Provider

# All HubSettings environment variable names, used for cleanup.
_ALL_HUB_ENV_VARS = (
    "HOPECLOUD_BASE_URL",
    "HOPECLOUD_API_TOKEN",
    "SOLISCLOUD_BASE_URL",
    "SOLISCLOUD_API_TOKEN",
    "FSOLAR_BASE_URL",
    "FSOLAR_API_TOKEN",
    "PROVIDER_ORDER",
    "PROVIDER_TIMEOUT_S",
    "REPORTING_TIMEZONE",
    "LOG_LEVEL",
)

_BASE_URLS = {
    Provider.HOPECLOUD: "http://hopecloud.test",
    Provider.SOLISCLOUD: "http://soliscloud.test",
    Provider.FSOLAR: "http://fsolar.test",
}


@pytest.fixture(autouse=True)
def _clean_hub_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all hub env vars and isolate from .env files before each test."""
    for var in _ALL_HUB_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every HubSettings environment variable.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "HOPECLOUD_BASE_URL": "https://hopecloud.example.com/",
        "HOPECLOUD_API_TOKEN": "hope-token",
        "SOLISCLOUD_BASE_URL": "https://solis.example.com",
        "SOLISCLOUD_API_TOKEN": "solis-token",
        "FSOLAR_BASE_URL": "https://fsolar.example.com",
        "FSOLAR_API_TOKEN": "",
        "PROVIDER_ORDER": "fsolar,hopecloud,soliscloud",
        "PROVIDER_TIMEOUT_S": "2.5",
        "REPORTING_TIMEZONE": "Europe/Brussels",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


Route = Any
"""A JSON-serialisable body, an httpx.Response, or a callable(request) -> either."""


@pytest.fixture()
def mock_backend() -> Callable[[dict[str, Route]], httpx.MockTransport]:
    """Factory for an httpx.MockTransport that routes on ``"METHOD /path"``.

    Unrouted requests answer 404. Every handled request is appended to the
    transport's ``requests`` list for assertions.

    Usage::

        transport = mock_backend({"GET /api/hopecloud/stations": {"data": []}})
    """

    def _factory(routes: dict[str, Route]) -> httpx.MockTransport:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            route = routes.get(f"{request.method} {request.url.path}")
            if callable(route):
                route = route(request)
            if route is None:
                return httpx.Response(404, json={"error": "not found"})
            if isinstance(route, httpx.Response):
                return route
            return httpx.Response(200, json=route)

        transport = httpx.MockTransport(handler)
        transport.requests = seen  # type: ignore[attr-defined]
        return transport

    return _factory


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient with HopeCloud and SolisCloud enabled.

    Uses a context manager so the application lifespan runs. Tests replace
    ``app.state.hub`` (or its methods) to control provider behaviour.

    Yields:
        TestClient: Configured test client for the FastAPI app.
    """
    monkeypatch.setenv("HOPECLOUD_BASE_URL", _BASE_URLS[Provider.HOPECLOUD])
    monkeypatch.setenv("SOLISCLOUD_BASE_URL", _BASE_URLS[Provider.SOLISCLOUD])

    from hub.src.api.main import app

    with TestClient(app) as test_client:
        yield test_client
