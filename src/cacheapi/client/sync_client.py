"""Blocking cache fetcher backed by :class:`httpx.Client`.

:class:`CacheApi` maps ``(url_path, sub_folder)`` to a
:class:`~cacheapi.cache.CacheEntry` and runs one decision procedure per
call:

1. **Serve from disk** -- when the entry exists, parses, and is either
   inside the freshness window or no window is configured.
2. **Fetch** -- one request to ``base_url/url_path``. A 2xx JSON response
   is persisted (data, then metadata) and returned.
3. **Fall back** -- when the request fails for any reason (transport
   error, non-2xx status, body that is not JSON, entry that cannot be
   written) the cached data is returned if it parses; otherwise the
   original error is raised.

There is no retry and no locking. Two concurrent calls for the same entry
may both fetch; the last write wins.

See Also:
    :class:`~cacheapi.client.async_client.AsyncCacheApi` for the
    non-blocking equivalent.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Optional

import httpx

from cacheapi.cache import CacheEntry
from cacheapi.client.response import build_url, decode_response
from cacheapi.exceptions import FetchError, TransportError
from cacheapi.models import CacheApiConfig, RequestConfig
from cacheapi.output import debug, warning


class CacheApi:
    """Disk-backed JSON fetcher.

    Can be used as a context manager to release the underlying connection
    pool deterministically; otherwise call :meth:`close` when done.

    Args:
        base_url: Origin every request path is appended to.
        cache_dir: Root storage directory of the cache.
        max_age: Freshness window in seconds. ``None`` keeps entries valid
            forever once written.
        request: Transport settings (timeout, SSL verification, default
            headers). Ignored when *client* is given.
        client: Pre-built :class:`httpx.Client` to send requests with. The
            caller keeps ownership and must close it.

    Example::

        with CacheApi("https://jsonplaceholder.typicode.com", "./data", max_age=100) as api:
            photo = api.fetch("/photos/1?t=12", "photo")
    """

    def __init__(
        self,
        base_url: str,
        cache_dir: str | Path,
        max_age: Optional[float] = None,
        request: Optional[RequestConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = CacheApiConfig(
            base_url=base_url,
            cache_dir=cache_dir,
            max_age=max_age,
            request=request or RequestConfig(),
        )
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(
        cls, config: CacheApiConfig, client: Optional[httpx.Client] = None
    ) -> CacheApi:
        """Build a fetcher from a resolved :class:`~cacheapi.models.CacheApiConfig`."""
        return cls(
            base_url=config.base_url,
            cache_dir=config.cache_dir,
            max_age=config.max_age,
            request=config.request,
            client=client,
        )

    @property
    def config(self) -> CacheApiConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> CacheApi:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the owned :class:`httpx.Client`, if one was created."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def locate(self, url_path: str, sub_folder: str) -> CacheEntry:
        """Return the cache entry for a request without touching the network."""
        return CacheEntry.for_request(self._config.cache_dir, sub_folder, url_path)

    def fetch(
        self,
        url_path: str,
        sub_folder: str,
        method: str = "GET",
        **request_options: Any,
    ) -> Any:
        """Return the JSON value for *url_path*, from disk or from the network.

        Args:
            url_path: Path (with query string) appended to ``base_url``. It
                also names the cache entry.
            sub_folder: Namespace directory under ``cache_dir``.
            method: HTTP method of the network request.
            **request_options: Passed through to :meth:`httpx.Client.request`
                (``headers``, ``params``, ``json``, ``content``, ``timeout``, ...).

        Returns:
            A freshly fetched or previously persisted JSON value.

        Raises:
            TransportError: Network failure and nothing usable cached.
            HttpStatusError: Non-2xx response and nothing usable cached.
            DecodeError: Response not JSON and nothing usable cached.
            StorageError: Entry could not be written and nothing usable cached.
        """
        entry = self.locate(url_path, sub_folder)
        hit = entry.lookup(self._config.max_age, time.time())
        if hit is not None:
            return hit.value

        url = build_url(self._config.base_url, url_path)
        try:
            data = self._send(method, url, request_options)
            entry.store(data, time.time())
        except FetchError as exc:
            warning(f"Fetch failed for {url}, trying cache fallback: {exc}")
            value = entry.fallback(exc)
            debug(f"Served {entry.data_path} after failed fetch")
            return value
        return data

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            config = self._config.request
            self._client = httpx.Client(
                timeout=config.timeout,
                verify=config.verify_ssl,
                follow_redirects=config.follow_redirects,
                headers={"Accept": "application/json", **config.headers},
            )
        return self._client

    def _send(self, method: str, url: str, options: dict[str, Any]) -> Any:
        debug(f"{method.upper()} {url}")
        try:
            response = self._get_client().request(method, url, **options)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc
        return decode_response(response, url)
