"""Asynchronous cache fetcher -- mirrors :class:`~cacheapi.client.sync_client.CacheApi`.

:class:`AsyncCacheApi` runs the same serve/fetch/fall-back procedure over
:class:`httpx.AsyncClient`. The network request is the only ``await``
point; reading and writing the cache artifacts happens synchronously in
between.

See Also:
    :class:`~cacheapi.client.sync_client.CacheApi` for the blocking
    equivalent and the full description of the decision procedure.
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


class AsyncCacheApi:
    """Disk-backed JSON fetcher for use inside an event loop.

    Takes the same arguments as :class:`~cacheapi.client.sync_client.CacheApi`
    except that *client* must be an :class:`httpx.AsyncClient`.

    Example::

        async with AsyncCacheApi("https://jsonplaceholder.typicode.com", "./data") as api:
            post = await api.fetch("/posts/1?v=alpha", "user_posts")
    """

    def __init__(
        self,
        base_url: str,
        cache_dir: str | Path,
        max_age: Optional[float] = None,
        request: Optional[RequestConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
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
        cls, config: CacheApiConfig, client: Optional[httpx.AsyncClient] = None
    ) -> AsyncCacheApi:
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
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncCacheApi:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the owned :class:`httpx.AsyncClient`, if one was created."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def locate(self, url_path: str, sub_folder: str) -> CacheEntry:
        """Return the cache entry for a request without touching the network."""
        return CacheEntry.for_request(self._config.cache_dir, sub_folder, url_path)

    async def fetch(
        self,
        url_path: str,
        sub_folder: str,
        method: str = "GET",
        **request_options: Any,
    ) -> Any:
        """Return the JSON value for *url_path*, from disk or from the network.

        See :meth:`CacheApi.fetch <cacheapi.client.sync_client.CacheApi.fetch>`.
        """
        entry = self.locate(url_path, sub_folder)
        hit = entry.lookup(self._config.max_age, time.time())
        if hit is not None:
            return hit.value

        url = build_url(self._config.base_url, url_path)
        try:
            data = await self._send(method, url, request_options)
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

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            config = self._config.request
            self._client = httpx.AsyncClient(
                timeout=config.timeout,
                verify=config.verify_ssl,
                follow_redirects=config.follow_redirects,
                headers={"Accept": "application/json", **config.headers},
            )
        return self._client

    async def _send(self, method: str, url: str, options: dict[str, Any]) -> Any:
        debug(f"{method.upper()} {url}")
        try:
            response = await self._get_client().request(method, url, **options)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc
        return decode_response(response, url)
