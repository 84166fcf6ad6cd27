"""Typer application and CLI entry point for cacheapi.

Commands:
    ``fetch``  -- fetch a JSON resource through the cache and print it.
    ``locate`` -- print where an entry lives on disk and how old it is.

Connection settings come from :func:`cacheapi.config.resolve_config`, so
``--base-url``/``--cache-dir``/``--max-age`` can also be supplied through
``CACHEAPI_*`` environment variables or a project-local ``cacheapi.json``.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import signal
import sys
import time
from pathlib import Path
from typing import Any, Optional

import typer

from cacheapi import __version__
from cacheapi.exceptions import CacheApiError
from cacheapi.exit_codes import EXIT_CACHE_MISS, EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="cacheapi",
    help="Fetch JSON from HTTP APIs through a disk cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"cacheapi {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Install the global output manager from the CLI flags."""
    from cacheapi.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))


def _parse_headers(raw_headers: list[str]) -> dict[str, str]:
    """Parse repeated ``-H "Name: value"`` options into a dict."""
    headers: dict[str, str] = {}
    for raw in raw_headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(
                f"Expected 'Name: value', got {raw!r}", param_hint="'--header'"
            )
        headers[name.strip()] = value.strip()
    return headers


def _fail(exc: CacheApiError) -> typer.Exit:
    from cacheapi.output import error

    error(str(exc))
    return typer.Exit(code=exc.exit_code)


@app.command("fetch")
def fetch_command(
    url_path: str = typer.Argument(..., help="Request path, e.g. '/photos/1?t=12'."),
    sub_folder: str = typer.Argument(..., help="Folder under the cache dir."),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-b", help="API origin (env: CACHEAPI_BASE_URL)."
    ),
    cache_dir: Optional[Path] = typer.Option(
        None, "--cache-dir", "-d", help="Storage root (env: CACHEAPI_CACHE_DIR)."
    ),
    max_age: Optional[float] = typer.Option(
        None, "--max-age", "-m", min=0, help="Freshness window in seconds (env: CACHEAPI_MAX_AGE)."
    ),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra request header 'Name: value'. Repeatable."
    ),
) -> None:
    """Fetch URL_PATH through the cache and print the JSON value to stdout."""
    from cacheapi.client import CacheApi
    from cacheapi.config import resolve_config
    from cacheapi.output import format_response

    headers = _parse_headers(header or [])
    try:
        config = resolve_config(base_url, cache_dir, max_age)
        with CacheApi.from_config(config) as api:
            options: dict[str, Any] = {"headers": headers} if headers else {}
            data = api.fetch(url_path, sub_folder, method=method.upper(), **options)
    except CacheApiError as exc:
        raise _fail(exc) from None
    format_response(data)


@app.command("locate")
def locate_command(
    url_path: str = typer.Argument(..., help="Request path, e.g. '/photos/1?t=12'."),
    sub_folder: str = typer.Argument(..., help="Folder under the cache dir."),
    cache_dir: Optional[Path] = typer.Option(
        None, "--cache-dir", "-d", help="Storage root (env: CACHEAPI_CACHE_DIR)."
    ),
) -> None:
    """Print the data and metadata paths of an entry and its age."""
    from cacheapi.cache import CacheEntry
    from cacheapi.config import resolve_cache_dir
    from cacheapi.output import get_output

    entry = CacheEntry.for_request(resolve_cache_dir(cache_dir), sub_folder, url_path)
    output = get_output()
    output.print_data(str(entry.data_path))
    output.print_data(str(entry.meta_path))

    if not entry.exists():
        output.info("Not cached.")
        raise typer.Exit(code=EXIT_CACHE_MISS)
    age = entry.age(time.time())
    if age is None:
        output.info("Cached, age unknown (missing or unreadable metadata).")
    else:
        output.info(f"Cached {age:.1f}s ago.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``cacheapi`` console script."""
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from cacheapi.output import error

        if isinstance(exc, CacheApiError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
