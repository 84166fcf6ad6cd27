"""Request/response helpers shared by the sync and async fetchers.

:func:`build_url` joins the configured origin and a request path, and
:func:`decode_response` turns an :class:`httpx.Response` into a JSON value
or the typed error that starts the cache fallback.
"""

from __future__ import annotations

from typing import Any

import httpx

from cacheapi.exceptions import DecodeError, HttpStatusError


def build_url(base_url: str, url_path: str) -> str:
    """Join *base_url* and *url_path* with exactly one slash.

    Example::

        >>> build_url("https://api.example.com/", "/photos/1?t=12")
        'https://api.example.com/photos/1?t=12'
    """
    return f"{base_url.rstrip('/')}/{url_path.lstrip('/')}"


def decode_response(response: httpx.Response, url: str) -> Any:
    """Return the JSON body of a successful *response*.

    Raises:
        HttpStatusError: The status code is not 2xx.
        DecodeError: The body is empty or not valid JSON.
    """
    if not response.is_success:
        raise HttpStatusError(response.status_code, url, response.reason_phrase)
    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError(f"Response from {url} is not valid JSON: {exc}") from exc
