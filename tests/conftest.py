"""Shared test fixtures for cacheapi.

Provides a counting ``httpx.MockTransport`` that stands in for the remote
API, fetchers wired to it, and isolation of configuration and output state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from cacheapi.client import AsyncCacheApi, CacheApi
from cacheapi.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://api.example.com"
PHOTO = {"albumId": 1, "id": 1, "title": "accusamus beatae ad facilis"}


class FakeApi:
    """Records requests and answers them with a configurable handler.

    ``handler`` defaults to returning :data:`PHOTO`. Tests swap it to
    simulate transport failures, error statuses or broken bodies.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json=PHOTO)
        )

    @property
    def calls(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def respond_json(self, data: Any, status_code: int = 200) -> None:
        self.handler = lambda request: httpx.Response(status_code, json=data)

    def respond_raw(self, content: bytes, status_code: int = 200) -> None:
        self.handler = lambda request: httpx.Response(status_code, content=content)

    def fail_transport(self) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self.handler = _raise


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _quiet_output_between_tests():
    """Install a quiet output manager and reset it after every test."""
    set_output(OutputManager(format=OutputFormat.JSON, no_color=True, quiet=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Remote API and fetchers
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def make_api(fake_api: FakeApi, cache_dir: Path):
    """Factory building a :class:`CacheApi` that talks to ``fake_api``."""
    clients: list[httpx.Client] = []

    def _make(max_age: float | None = None) -> CacheApi:
        client = httpx.Client(transport=httpx.MockTransport(fake_api))
        clients.append(client)
        return CacheApi(BASE_URL, cache_dir, max_age=max_age, client=client)

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def make_async_api(fake_api: FakeApi, cache_dir: Path):
    """Factory building an :class:`AsyncCacheApi` that talks to ``fake_api``.

    Returns the fetcher and its transport client; tests close the client
    inside their own ``asyncio.run`` call.
    """

    def _make(max_age: float | None = None) -> tuple[AsyncCacheApi, httpx.AsyncClient]:
        client = httpx.AsyncClient(transport=httpx.MockTransport(fake_api))
        return AsyncCacheApi(BASE_URL, cache_dir, max_age=max_age, client=client), client

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points ``XDG_CACHE_HOME`` into *tmp_path*, clears all ``CACHEAPI_*``
    variables and changes the working directory to *tmp_path* so that no
    project ``cacheapi.json`` leaks in.
    """
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.setattr("cacheapi.config._is_xdg_platform", lambda: True)
    for var in ["CACHEAPI_BASE_URL", "CACHEAPI_CACHE_DIR", "CACHEAPI_MAX_AGE"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
