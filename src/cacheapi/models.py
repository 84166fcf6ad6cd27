"""Canonical Pydantic models shared across cacheapi modules.

**Configuration models** -- loaded from ``./cacheapi.json``, environment
variables and CLI flags (see :func:`cacheapi.config.resolve_config`):
    :class:`RequestConfig` and :class:`CacheApiConfig`.

**On-disk models** -- the persisted contract of a cache entry:
    :class:`CacheMetadata`, stored next to every data artifact as
    ``<name>.meta.json``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RequestConfig(BaseModel):
    """Default HTTP settings for the transport owned by a fetcher."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow 3xx redirects")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )


class CacheApiConfig(BaseModel):
    """Construction settings of a :class:`~cacheapi.client.sync_client.CacheApi`.

    Example::

        CacheApiConfig(
            base_url="https://jsonplaceholder.typicode.com",
            cache_dir="./data",
            max_age=100,
        )
    """

    base_url: str = Field(description="Origin every request path is appended to")
    cache_dir: Path = Field(description="Root storage directory of the cache")
    max_age: Optional[float] = Field(
        default=None,
        ge=0,
        description="Freshness window in seconds; None keeps entries forever",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)


class CacheMetadata(BaseModel):
    """Contents of a ``.meta.json`` artifact.

    ``lastFetched`` is written as epoch milliseconds. Epoch seconds and
    ISO-8601 strings are accepted on read so that entries written by older
    tooling stay readable. Naive timestamps are taken as UTC.
    """

    model_config = ConfigDict(populate_by_name=True)

    last_fetched: datetime = Field(alias="lastFetched")

    @field_validator("last_fetched")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def at(cls, now: float) -> CacheMetadata:
        """Build metadata for an artifact written at *now* (epoch seconds)."""
        return cls(last_fetched=datetime.fromtimestamp(now, tz=timezone.utc))

    def to_json(self) -> dict[str, int]:
        """Serialise as ``{"lastFetched": <epoch millis>}``."""
        return {"lastFetched": int(self.last_fetched.timestamp() * 1000)}

    def age(self, now: float) -> float:
        """Seconds elapsed between ``lastFetched`` and *now*."""
        return now - self.last_fetched.timestamp()
