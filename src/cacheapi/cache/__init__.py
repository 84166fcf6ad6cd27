"""Disk-backed cache entries for cacheapi.

This package provides :class:`CacheEntry`, the pair of ``.json`` and
``.meta.json`` files backing one cached request, and
:func:`sanitize_filename`, which derives the file names from a request path.

The entries are consumed by :class:`~cacheapi.client.sync_client.CacheApi`
and :class:`~cacheapi.client.async_client.AsyncCacheApi`.
"""

from cacheapi.cache.entry import CacheEntry, CacheHit, sanitize_filename

__all__ = ["CacheEntry", "CacheHit", "sanitize_filename"]
