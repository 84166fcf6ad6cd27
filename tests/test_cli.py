"""Tests for the ``cacheapi`` command line.

The CLI builds its own :class:`httpx.Client`; ``mock_network`` swaps the
class for one wired to the ``fake_api`` transport.
"""

from __future__ import annotations

import json
import time
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from cacheapi import __version__
from cacheapi.app import app
from cacheapi.exit_codes import (
    EXIT_CACHE_MISS,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_STATUS,
    EXIT_STORAGE_ERROR,
)


runner = CliRunner()

PHOTO = {"albumId": 1, "id": 1, "title": "accusamus beatae ad facilis"}


@pytest.fixture
def mock_network(fake_api, monkeypatch: pytest.MonkeyPatch):
    real_client = httpx.Client

    def _client(**kwargs):
        return real_client(transport=httpx.MockTransport(fake_api), **kwargs)

    monkeypatch.setattr("cacheapi.client.sync_client.httpx.Client", _client)
    return fake_api


def _fetch_args(cache_dir: Path, *extra: str) -> list[str]:
    return [
        "--json",
        "--quiet",
        "--no-color",
        "fetch",
        "/photos/1?t=12",
        "photo",
        "--base-url",
        "https://api.example.com",
        "--cache-dir",
        str(cache_dir),
        *extra,
    ]


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"cacheapi {__version__}" in result.stdout


class TestFetchCommand:
    def test_prints_json_and_persists(self, mock_network, isolated_config: Path) -> None:
        cache_dir = isolated_config / "data"
        result = runner.invoke(app, _fetch_args(cache_dir, "--max-age", "100"))

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == PHOTO
        assert (cache_dir / "photo" / "photos_1_t=12.json").is_file()
        assert (cache_dir / "photo" / "photos_1_t=12.meta.json").is_file()

    def test_second_run_served_from_disk(self, mock_network, isolated_config: Path) -> None:
        cache_dir = isolated_config / "data"
        runner.invoke(app, _fetch_args(cache_dir, "--max-age", "100"))
        result = runner.invoke(app, _fetch_args(cache_dir, "--max-age", "100"))

        assert result.exit_code == 0
        assert json.loads(result.stdout) == PHOTO
        assert mock_network.calls == 1

    def test_headers_and_method_forwarded(self, mock_network, isolated_config: Path) -> None:
        result = runner.invoke(
            app,
            _fetch_args(isolated_config / "data", "-X", "post", "-H", "X-Trace: abc"),
        )
        assert result.exit_code == 0, result.output
        request = mock_network.requests[0]
        assert request.method == "POST"
        assert request.headers["x-trace"] == "abc"
        assert request.headers["accept"] == "application/json"

    def test_bad_header_is_usage_error(self, mock_network, isolated_config: Path) -> None:
        result = runner.invoke(app, _fetch_args(isolated_config / "data", "-H", "nocolon"))
        assert result.exit_code == 2
        assert mock_network.calls == 0

    def test_env_supplies_base_url(
        self, mock_network, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CACHEAPI_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("CACHEAPI_CACHE_DIR", str(isolated_config / "env-data"))
        result = runner.invoke(app, ["--json", "-q", "fetch", "/posts/1", "posts"])

        assert result.exit_code == 0, result.output
        assert str(mock_network.requests[0].url) == "https://env.example.com/posts/1"
        assert (isolated_config / "env-data" / "posts" / "posts_1.json").is_file()

    def test_missing_base_url(self, mock_network, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--json", "--no-color", "fetch", "/posts/1", "posts"])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "No base URL" in result.output

    def test_http_error_without_cache(self, mock_network, isolated_config: Path) -> None:
        mock_network.respond_json({"error": "gone"}, status_code=404)
        result = runner.invoke(app, _fetch_args(isolated_config / "data"))
        assert result.exit_code == EXIT_HTTP_STATUS
        assert "HTTP error 404" in result.output

    def test_network_error_without_cache(self, mock_network, isolated_config: Path) -> None:
        mock_network.fail_transport()
        result = runner.invoke(app, _fetch_args(isolated_config / "data"))
        assert result.exit_code == EXIT_CONNECTION_ERROR

    def test_unwritable_cache_exits_with_storage_code(self, mock_network, isolated_config: Path) -> None:
        cache_dir = isolated_config / "data"
        cache_dir.mkdir()
        (cache_dir / "photo").write_text("blocks the sub-folder")

        result = runner.invoke(app, _fetch_args(cache_dir))
        assert result.exit_code == EXIT_STORAGE_ERROR
        assert "Cannot write cache entry" in result.output

    def test_network_error_served_from_cache(self, mock_network, isolated_config: Path) -> None:
        cache_dir = isolated_config / "data"
        runner.invoke(app, _fetch_args(cache_dir, "--max-age", "0"))
        mock_network.fail_transport()

        result = runner.invoke(app, _fetch_args(cache_dir, "--max-age", "0"))
        assert result.exit_code == 0
        assert "trying cache fallback" in result.output
        assert mock_network.calls == 2

    def test_negative_max_age_rejected(self, mock_network, isolated_config: Path) -> None:
        result = runner.invoke(app, _fetch_args(isolated_config / "data", "--max-age", "-1"))
        assert result.exit_code == 2


class TestLocateCommand:
    def test_not_cached(self, isolated_config: Path) -> None:
        cache_dir = isolated_config / "data"
        result = runner.invoke(
            app, ["--json", "locate", "/photos/1?t=12", "photo", "-d", str(cache_dir)]
        )
        assert result.exit_code == EXIT_CACHE_MISS
        assert str(cache_dir / "photo" / "photos_1_t=12.json") in result.stdout
        assert str(cache_dir / "photo" / "photos_1_t=12.meta.json") in result.stdout
        assert "Not cached." in result.output

    def test_cached_with_age(self, isolated_config: Path) -> None:
        cache_dir = isolated_config / "data"
        entry_dir = cache_dir / "photo"
        entry_dir.mkdir(parents=True)
        (entry_dir / "photos_1_t=12.json").write_text(json.dumps(PHOTO))
        stamp = int((time.time() - 30) * 1000)
        (entry_dir / "photos_1_t=12.meta.json").write_text(json.dumps({"lastFetched": stamp}))

        result = runner.invoke(
            app, ["--json", "locate", "/photos/1?t=12", "photo", "-d", str(cache_dir)]
        )
        assert result.exit_code == 0
        assert "Cached 3" in result.output

    def test_cached_without_metadata(self, isolated_config: Path) -> None:
        cache_dir = isolated_config / "data"
        (cache_dir / "photo").mkdir(parents=True)
        (cache_dir / "photo" / "photos_1.json").write_text("{}")

        result = runner.invoke(app, ["--json", "locate", "/photos/1", "photo", "-d", str(cache_dir)])
        assert result.exit_code == 0
        assert "age unknown" in result.output

    def test_uses_env_cache_dir(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHEAPI_CACHE_DIR", str(isolated_config / "env-data"))
        result = runner.invoke(app, ["--json", "locate", "/posts/1", "posts"])
        assert str(isolated_config / "env-data" / "posts" / "posts_1.json") in result.stdout
