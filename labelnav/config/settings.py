"""Configuration settings using msgspec for fast, validated config.

All configuration is loaded from ``LABELNAV_*`` environment variables with
sensible defaults; see :func:`load_settings`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

import msgspec

from labelnav.errors import SettingsError

DEFAULT_QUERY_PROGRAM: Final[str] = "bazel"
DEFAULT_WORKSPACE_MARKERS: Final[tuple[str, ...]] = ("WORKSPACE", "WORKSPACE.bazel", "MODULE.bazel")
DEFAULT_BUILD_FILE_NAMES: Final[tuple[str, ...]] = ("BUILD", "BUILD.bazel")
DEFAULT_LOG_LEVEL: Final[str] = "WARNING"
_LOG_LEVELS: Final[frozenset[str]] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _default_cache_path() -> str:
    base = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return str(Path(base) / "labelnav" / "repositories.json")


class Settings(msgspec.Struct, frozen=True):
    """Runtime configuration for label resolution.

    Attributes
    ----------
    query_program : str
        Build tool used for ``query --output=build //external:<name>``.
    query_timeout_s : float | None
        Optional timeout for the query subprocess. ``None`` waits indefinitely.
    workspace_markers : tuple[str, ...]
        File names whose presence marks a workspace root.
    build_file_names : tuple[str, ...]
        Build-description file names, tried in order.
    cache_path : str
        Location of the persisted external-repository cache.
    repository_overrides : dict[str, str]
        Repository directories seeded into the cache before any query runs.
    log_level : str
        Logging threshold used by the CLI.
    """

    query_program: str = DEFAULT_QUERY_PROGRAM
    query_timeout_s: float | None = None
    workspace_markers: tuple[str, ...] = DEFAULT_WORKSPACE_MARKERS
    build_file_names: tuple[str, ...] = DEFAULT_BUILD_FILE_NAMES
    cache_path: str = msgspec.field(default_factory=_default_cache_path)
    repository_overrides: dict[str, str] = msgspec.field(default_factory=dict)
    log_level: str = DEFAULT_LOG_LEVEL


def _parse_name_list(key: str, fallback: tuple[str, ...]) -> tuple[str, ...]:
    """Return a tuple of names from a comma-separated environment variable.

    Parameters
    ----------
    key : str
        Environment variable name to read.
    fallback : tuple[str, ...]
        Value used when the variable is unset or blank.

    Returns
    -------
    tuple[str, ...]
        Non-empty, stripped names in their original order.

    Raises
    ------
    SettingsError
        If the variable is set but names nothing.
    """
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return fallback
    names = tuple(part.strip() for part in raw.split(",") if part.strip())
    if not names:
        msg = f"{key} must list at least one name"
        raise SettingsError(msg, variable=key)
    return names


def _parse_timeout(key: str) -> float | None:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        msg = f"{key} must be a number of seconds, got {raw!r}"
        raise SettingsError(msg, variable=key) from exc
    if value <= 0:
        msg = f"{key} must be positive, got {raw!r}"
        raise SettingsError(msg, variable=key)
    return value


def _parse_overrides(key: str) -> dict[str, str]:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return {}
    try:
        return msgspec.json.decode(raw, type=dict[str, str])
    except msgspec.MsgspecError as exc:
        msg = f"{key} must be a JSON object mapping repository names to paths: {exc}"
        raise SettingsError(msg, variable=key) from exc


def _parse_log_level(key: str) -> str:
    raw = os.environ.get(key, "").strip().upper()
    if not raw:
        return DEFAULT_LOG_LEVEL
    if raw not in _LOG_LEVELS:
        msg = f"{key} must be one of {sorted(_LOG_LEVELS)}, got {raw!r}"
        raise SettingsError(msg, variable=key)
    return raw


def load_settings() -> Settings:
    """Load settings from environment variables.

    Environment Variables
    ---------------------
    - ``LABELNAV_QUERY_PROGRAM``: Build tool executable (default: ``bazel``)
    - ``LABELNAV_QUERY_TIMEOUT_S``: Query timeout in seconds (default: none)
    - ``LABELNAV_WORKSPACE_MARKERS``: Comma-separated workspace marker files
    - ``LABELNAV_BUILD_FILE_NAMES``: Comma-separated build file names
    - ``LABELNAV_CACHE_PATH``: Persisted repository cache location
      (default: ``$XDG_CACHE_HOME/labelnav/repositories.json``)
    - ``LABELNAV_REPOSITORY_OVERRIDES``: JSON object ``{"name": "/path"}``
    - ``LABELNAV_LOG_LEVEL``: Logging level for the CLI (default: ``WARNING``)

    Returns
    -------
    Settings
        Immutable settings instance.

    Raises
    ------
    SettingsError
        If any variable holds an invalid value.
    """
    cache_path = os.environ.get("LABELNAV_CACHE_PATH", "").strip() or _default_cache_path()
    return Settings(
        query_program=os.environ.get("LABELNAV_QUERY_PROGRAM", "").strip()
        or DEFAULT_QUERY_PROGRAM,
        query_timeout_s=_parse_timeout("LABELNAV_QUERY_TIMEOUT_S"),
        workspace_markers=_parse_name_list(
            "LABELNAV_WORKSPACE_MARKERS", DEFAULT_WORKSPACE_MARKERS
        ),
        build_file_names=_parse_name_list("LABELNAV_BUILD_FILE_NAMES", DEFAULT_BUILD_FILE_NAMES),
        cache_path=str(Path(cache_path).expanduser()),
        repository_overrides=_parse_overrides("LABELNAV_REPOSITORY_OVERRIDES"),
        log_level=_parse_log_level("LABELNAV_LOG_LEVEL"),
    )


__all__ = [
    "DEFAULT_BUILD_FILE_NAMES",
    "DEFAULT_QUERY_PROGRAM",
    "DEFAULT_WORKSPACE_MARKERS",
    "Settings",
    "load_settings",
]
