"""cacheapi -- a disk-backed response cache for JSON HTTP APIs.

Fetches JSON resources over HTTP, stores each response as a file under a
storage root and serves identical requests from disk until an optional
freshness window expires. When a refresh fails, the last stored value is
served instead.

Typical use::

    from cacheapi import CacheApi

    api = CacheApi("https://jsonplaceholder.typicode.com", "./data", max_age=100)
    photo = api.fetch("/photos/1?t=12", "photo")
    # ./data/photo/photos_1_t=12.json and ./data/photo/photos_1_t=12.meta.json

Modules:
    client: :class:`CacheApi` and :class:`AsyncCacheApi`.
    cache: On-disk cache entries and file naming.
    models: Pydantic models for configuration and metadata.
    config: XDG cache directory and configuration precedence.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr output system with Rich support.
    app: The ``cacheapi`` command line.
"""

__version__ = "1.0.0"

from cacheapi.cache import CacheEntry, sanitize_filename  # noqa: E402
from cacheapi.client import AsyncCacheApi, CacheApi  # noqa: E402
from cacheapi.exceptions import (  # noqa: E402
    CacheApiError,
    CacheMissError,
    DecodeError,
    FetchError,
    HttpStatusError,
    StorageError,
    TransportError,
)

__all__ = [
    "AsyncCacheApi",
    "CacheApi",
    "CacheApiError",
    "CacheEntry",
    "CacheMissError",
    "DecodeError",
    "FetchError",
    "HttpStatusError",
    "StorageError",
    "TransportError",
    "sanitize_filename",
]
