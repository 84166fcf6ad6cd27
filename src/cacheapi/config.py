"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles everything configurable about a cache:

* **Directory layout** -- the default storage root is XDG compliant on
  Linux/BSD (``$XDG_CACHE_HOME/cacheapi``) and ``~/.cacheapi/cache`` on
  macOS and Windows. See :func:`get_cache_dir`.
* **Project config** -- an optional ``./cacheapi.json`` holding
  :class:`~cacheapi.models.CacheApiConfig` keys.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, the project file and defaults.

Cache artifacts are written with :func:`atomic_write` so that a reader
never sees a half-written file.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from cacheapi.exceptions import ConfigError
from cacheapi.models import CacheApiConfig

_APP_NAME = "cacheapi"
_PROJECT_CONFIG_FILENAME = "cacheapi.json"

ENV_BASE_URL = "CACHEAPI_BASE_URL"
ENV_CACHE_DIR = "CACHEAPI_CACHE_DIR"
ENV_MAX_AGE = "CACHEAPI_MAX_AGE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_cache_dir() -> Path:
    """Return the default storage root for cache entries.

    On Linux/BSD: ``$XDG_CACHE_HOME/cacheapi/`` (default ``~/.cache/cacheapi/``).
    On macOS/Windows: ``~/.cacheapi/cache/``.

    The directory is not created here; entries create their own
    sub-folders on the first successful fetch.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CACHE_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".cache"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}" / "cache"


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure
    the temp file is removed and the exception propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./cacheapi.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _env_max_age() -> Optional[float]:
    raw = os.environ.get(ENV_MAX_AGE)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_MAX_AGE} must be a number of seconds, got {raw!r}") from exc


# --- Precedence resolution ---


def resolve_cache_dir(cli_cache_dir: Optional[Path] = None) -> Path:
    """Resolve only the storage root: CLI flag > ``CACHEAPI_CACHE_DIR`` > project file > default.

    Used by commands that read the cache without fetching and therefore
    need no base URL.
    """
    if cli_cache_dir is not None:
        return cli_cache_dir
    env_cache_dir = os.environ.get(ENV_CACHE_DIR)
    if env_cache_dir:
        return Path(env_cache_dir).expanduser()
    project = load_project_config()
    if project and project.get("cache_dir"):
        return Path(project["cache_dir"]).expanduser()
    return get_cache_dir()


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_cache_dir: Optional[Path] = None,
    cli_max_age: Optional[float] = None,
) -> CacheApiConfig:
    """Resolve the effective cache configuration.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``CACHEAPI_BASE_URL``,
           ``CACHEAPI_CACHE_DIR``, ``CACHEAPI_MAX_AGE``)
        3. Project config (``./cacheapi.json``)
        4. Defaults (``cache_dir`` from :func:`get_cache_dir`, no expiry)

    Raises:
        ConfigError: If no base URL is configured anywhere, or a value
            fails validation.
    """
    merged: dict[str, Any] = dict(load_project_config() or {})
    merged["cache_dir"] = resolve_cache_dir(cli_cache_dir)

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        merged["base_url"] = env_base_url
    env_max_age = _env_max_age()
    if env_max_age is not None:
        merged["max_age"] = env_max_age

    if cli_base_url is not None:
        merged["base_url"] = cli_base_url
    if cli_max_age is not None:
        merged["max_age"] = cli_max_age

    if not merged.get("base_url"):
        raise ConfigError(
            f"No base URL configured. Pass --base-url or set {ENV_BASE_URL}."
        )
    try:
        return CacheApiConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
