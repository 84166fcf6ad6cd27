"""Numeric process exit codes used by the ``cacheapi`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cacheapi.exceptions.CacheApiError` subclass.
Shell scripts can inspect the exit code to tell a dead network apart from
a rejected request without parsing stderr.

Example::

    $ cacheapi fetch /posts/1 posts --base-url https://unreachable.invalid
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- no network and nothing cached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CACHE_MISS = 4
"""No cached artifact was available to serve."""

EXIT_HTTP_STATUS = 5
"""The remote API answered with a non-2xx status and nothing was cached."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODE_ERROR = 7
"""A response body or cached artifact was not valid JSON."""

EXIT_STORAGE_ERROR = 8
"""A fetched value could not be written to the cache and nothing was cached."""
