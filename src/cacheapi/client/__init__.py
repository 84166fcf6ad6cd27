"""Cache fetchers for cacheapi.

Provides blocking and non-blocking fetchers that wrap :mod:`httpx` with a
disk-backed cache and a single fallback to the cached value when a fetch
fails.

Classes:
    :class:`CacheApi` -- blocking fetcher backed by :class:`httpx.Client`.
    :class:`AsyncCacheApi` -- non-blocking fetcher backed by :class:`httpx.AsyncClient`.

Example::

    from cacheapi.client import CacheApi

    with CacheApi("https://jsonplaceholder.typicode.com", "./data", max_age=100) as api:
        photo = api.fetch("/photos/1?t=12", "photo")
"""

from cacheapi.client.async_client import AsyncCacheApi
from cacheapi.client.sync_client import CacheApi

__all__ = ["CacheApi", "AsyncCacheApi"]
