"""On-disk cache entries: file naming, artifact I/O and the freshness check.

A cache entry is a pair of JSON files in ``<cache_dir>/<sub_folder>/``::

    photos_1_t=12.json        raw JSON of the last successful fetch
    photos_1_t=12.meta.json   {"lastFetched": <epoch millis>}

File names come from :func:`sanitize_filename` applied to the
percent-decoded request path. Both files are always replaced whole via
:func:`~cacheapi.config.atomic_write`, so concurrent writers can only ever
race on which complete value wins.

The read side follows the fetcher's decision procedure:
:meth:`CacheEntry.lookup` answers "may this entry be served without a
network call?" and :meth:`CacheEntry.fallback` serves the entry after a
failed fetch, or re-raises the fetch error.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote

from pydantic import ValidationError

from cacheapi.config import atomic_write
from cacheapi.exceptions import CacheMissError, DecodeError, FetchError, StorageError
from cacheapi.models import CacheMetadata
from cacheapi.output import debug

_UNSAFE_CHARS = re.compile(r'[/*?:"<>|\\]')
_WHITESPACE = re.compile(r"\s+")

DATA_SUFFIX = ".json"
META_SUFFIX = ".meta.json"


def sanitize_filename(value: str) -> str:
    """Turn *value* into a filesystem-safe file stem.

    Each of ``/ * ? : " < > | \\`` becomes ``_``, every whitespace run
    becomes ``_`` and leading underscores are stripped. The function is
    deterministic and idempotent.

    Example::

        >>> sanitize_filename("/photos/1?t=12")
        'photos_1_t=12'
    """
    name = _UNSAFE_CHARS.sub("_", value)
    name = _WHITESPACE.sub("_", name)
    return name.lstrip("_")


@dataclass(frozen=True)
class CacheHit:
    """A value that may be served from disk."""

    value: Any


@dataclass(frozen=True)
class CacheEntry:
    """Location of one cache entry plus the operations on its two artifacts.

    Build instances with :meth:`for_request`; the constructor takes the
    already resolved paths.
    """

    directory: Path
    data_path: Path
    meta_path: Path

    @classmethod
    def for_request(cls, cache_dir: str | Path, sub_folder: str, url_path: str) -> CacheEntry:
        """Resolve the entry for *url_path* inside ``cache_dir/sub_folder``."""
        stem = sanitize_filename(unquote(url_path))
        directory = Path(cache_dir) / sub_folder
        return cls(
            directory=directory,
            data_path=directory / f"{stem}{DATA_SUFFIX}",
            meta_path=directory / f"{stem}{META_SUFFIX}",
        )

    # ------------------------------------------------------------------ #
    # Reading
    # ------------------------------------------------------------------ #

    def exists(self) -> bool:
        return self.data_path.is_file()

    def read_data(self) -> Any:
        """Return the parsed data artifact.

        Raises:
            CacheMissError: The artifact does not exist or cannot be read.
            DecodeError: The artifact is not valid JSON.
        """
        if not self.data_path.is_file():
            raise CacheMissError(f"No cached data at {self.data_path}")
        try:
            text = self.data_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CacheMissError(f"Cannot read cached data at {self.data_path}: {exc}") from exc
        try:
            return json.loads(text)
        except ValueError as exc:
            raise DecodeError(f"Cached data at {self.data_path} is not valid JSON: {exc}") from exc

    def read_metadata(self) -> Optional[CacheMetadata]:
        """Return the metadata artifact, or ``None`` when missing or unusable."""
        try:
            text = self.meta_path.read_text(encoding="utf-8")
            return CacheMetadata.model_validate(json.loads(text))
        except (OSError, ValueError, ValidationError) as exc:
            debug(f"Ignoring metadata at {self.meta_path}: {exc}")
            return None

    def age(self, now: float) -> Optional[float]:
        """Seconds since the data artifact was written, ``None`` if unknown."""
        meta = self.read_metadata()
        if meta is None:
            return None
        return meta.age(now)

    def lookup(self, max_age: Optional[float], now: float) -> Optional[CacheHit]:
        """Decide whether the entry may be served without a network call.

        Without *max_age* any parseable data artifact is served. With
        *max_age* the metadata must be readable and younger than
        *max_age* seconds. Returns ``None`` whenever a fetch is needed.
        """
        if not self.data_path.is_file():
            debug(f"Cache miss: {self.data_path}")
            return None

        if max_age is not None:
            age = self.age(now)
            if age is None:
                debug(f"Cache freshness unknown: {self.data_path}")
                return None
            if age >= max_age:
                debug(f"Cache stale ({age:.1f}s >= {max_age}s): {self.data_path}")
                return None

        try:
            value = self.read_data()
        except (CacheMissError, DecodeError) as exc:
            debug(f"Cache unreadable, refetching: {exc}")
            return None
        debug(f"Cache hit: {self.data_path}")
        return CacheHit(value)

    # ------------------------------------------------------------------ #
    # Writing
    # ------------------------------------------------------------------ #

    def store(self, value: Any, now: float) -> None:
        """Persist *value* and stamp it as fetched at *now* (epoch seconds).

        The data artifact is written before the metadata so that metadata
        never describes data that is not on disk.

        Raises:
            StorageError: The directory or either artifact cannot be written.
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            atomic_write(self.data_path, json.dumps(value, indent=2, ensure_ascii=False))
            atomic_write(self.meta_path, json.dumps(CacheMetadata.at(now).to_json(), indent=2))
        except OSError as exc:
            raise StorageError(f"Cannot write cache entry {self.data_path}: {exc}") from exc
        debug(f"Cached {self.data_path}")

    # ------------------------------------------------------------------ #
    # Failure path
    # ------------------------------------------------------------------ #

    def fallback(self, error: FetchError) -> Any:
        """Serve the data artifact after *error* broke a fetch.

        Raises:
            FetchError: *error* itself when nothing usable is cached. The
                fallback's own :class:`CacheMissError` or
                :class:`DecodeError` is chained as ``__cause__``.
        """
        try:
            return self.read_data()
        except (CacheMissError, DecodeError) as fallback_exc:
            raise error from fallback_exc
