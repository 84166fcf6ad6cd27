"""Exception hierarchy for cacheapi.

All exceptions inherit from :class:`CacheApiError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`cacheapi.exit_codes`.
The CLI entry point in :func:`cacheapi.app.main` catches ``CacheApiError``
and exits with the matching code.

Subclass hierarchy::

    CacheApiError (exit 1)
    +-- ConfigError         (exit 1)
    +-- FetchError          (exit 6)
        +-- TransportError  (exit 6)
        +-- HttpStatusError (exit 5)
        +-- DecodeError     (exit 7)
        +-- CacheMissError  (exit 4)
        +-- StorageError    (exit 8)

Errors raised on the network or persist path of
:meth:`~cacheapi.client.sync_client.CacheApi.fetch` trigger a fallback to
the cached artifact. When that fallback fails too, the *original* network
error is raised and the fallback error is attached as ``__cause__``.
"""

from __future__ import annotations

from typing import Optional

from cacheapi.exit_codes import (
    EXIT_CACHE_MISS,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_STATUS,
    EXIT_STORAGE_ERROR,
)


class CacheApiError(Exception):
    """Base exception for all cacheapi errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(CacheApiError):
    """Raised for configuration problems (invalid JSON, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class FetchError(CacheApiError):
    """Raised when a fetch could not produce a JSON value."""

    exit_code = EXIT_CONNECTION_ERROR


class TransportError(FetchError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class HttpStatusError(FetchError):
    """Raised when the API answers with a non-2xx status code.

    Args:
        status_code: The HTTP status of the response.
        url: The requested URL.
    """

    exit_code = EXIT_HTTP_STATUS

    def __init__(self, status_code: int, url: str, reason: Optional[str] = None):
        message = f"HTTP error {status_code} for {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class DecodeError(FetchError):
    """Raised when a response body or a cached artifact is not valid JSON."""

    exit_code = EXIT_DECODE_ERROR


class CacheMissError(FetchError):
    """Raised when no cached artifact exists for an entry."""

    exit_code = EXIT_CACHE_MISS


class StorageError(FetchError):
    """Raised when a fetched value cannot be written to its cache entry."""

    exit_code = EXIT_STORAGE_ERROR
