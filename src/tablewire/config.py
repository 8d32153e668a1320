"""Configuration loading with XDG paths and precedence resolution.

This module handles the ambient configuration for tablewire:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.tablewire/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir` (the latter is where
  :class:`~tablewire.cache.disk.DiskCacheStore` keeps its files by default).
* **Settings file** -- an optional ``config.json`` deserialised into
  :class:`~tablewire.models.Settings`.
* **Precedence resolution** -- :func:`resolve_client_options` merges
  explicit keyword overrides, environment variables, the settings file and
  built-in defaults into one immutable
  :class:`~tablewire.models.ClientOptions`.
* **Credential sources** -- :func:`resolve_credential` reads a token from
  ``env:VAR`` or ``file:/path`` descriptors so secrets need not live in the
  settings file.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from tablewire.exceptions import ConfigError
from tablewire.models import ClientOptions, Settings

_APP_NAME = "tablewire"
_CONFIG_FILENAME = "config.json"
_ENV_PREFIX = "TABLEWIRE_"

# environment variable suffix -> ClientOptions field
_ENV_FIELDS = {
    "API_KEY": "api_key",
    "BASE_ID": "base_id",
    "ENDPOINT_URL": "endpoint_url",
    "API_VERSION": "api_version",
    "MAX_RETRIES": "max_retries",
    "RETRY_INITIAL_DELAY_MS": "retry_initial_delay_ms",
    "TIMEOUT": "timeout",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/tablewire/`` (default ``~/.config/tablewire/``).
    On macOS/Windows: ``~/.tablewire/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Cached data can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/tablewire/`` (default ``~/.cache/tablewire/``).
    On macOS/Windows: ``~/.tablewire/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Settings file ---


def _settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load the settings file.

    Args:
        path: Explicit file to read. Defaults to ``<config_dir>/config.json``.

    Returns:
        The deserialised :class:`~tablewire.models.Settings`. If the file
        does not exist, a default (all-unset) instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = path or _settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Any other string is returned unchanged (a literal token).

    Raises:
        ConfigError: If the variable is unset or the file is missing or unreadable.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    return source


# --- Precedence resolution ---


def _env_overrides() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for suffix, field_name in _ENV_FIELDS.items():
        value = os.environ.get(_ENV_PREFIX + suffix)
        if value:
            values[field_name] = value
    return values


def resolve_client_options(
    base_id: Optional[str] = None,
    settings_path: Optional[Path] = None,
    **overrides: Any,
) -> ClientOptions:
    """Build :class:`~tablewire.models.ClientOptions` from every config layer.

    Precedence (high to low):
        1. Explicit arguments (``base_id`` and ``**overrides``)
        2. Environment variables (``TABLEWIRE_API_KEY``, ``TABLEWIRE_BASE_ID``,
           ``TABLEWIRE_ENDPOINT_URL``, ``TABLEWIRE_API_VERSION``,
           ``TABLEWIRE_MAX_RETRIES``, ``TABLEWIRE_RETRY_INITIAL_DELAY_MS``,
           ``TABLEWIRE_TIMEOUT``)
        3. Settings file (``~/.config/tablewire/config.json``)
        4. Defaults declared on :class:`~tablewire.models.ClientOptions`

    An ``api_key`` coming from any layer may be a ``env:``/``file:``
    source descriptor; it is resolved via :func:`resolve_credential`.

    Raises:
        ConfigError: If the settings file is invalid, a credential source
            cannot be resolved, or the merged values fail validation.
    """
    settings = load_settings(settings_path)

    merged: dict[str, Any] = settings.model_dump(exclude_none=True)
    if not merged.get("custom_headers"):
        merged.pop("custom_headers", None)
    merged.update(_env_overrides())
    if base_id is not None:
        merged["base_id"] = base_id
    merged.update({k: v for k, v in overrides.items() if v is not None})

    if isinstance(merged.get("api_key"), str):
        merged["api_key"] = resolve_credential(merged["api_key"])

    try:
        return ClientOptions.model_validate(merged)
    except ValueError as exc:
        raise ConfigError(f"Invalid client options: {exc}") from exc
