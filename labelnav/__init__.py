"""Resolve build labels to source files and definition sites."""

from __future__ import annotations

from importlib import metadata

from labelnav.errors import (
    LabelNavError,
    LabelNotFoundError,
    MalformedLabelError,
    QueryFailedError,
    QueryOutputMalformedError,
)
from labelnav.io.repository_cache import RepositoryCache
from labelnav.labels import Label, format_absolute, parse_label
from labelnav.resolver import LabelResolver, ResolvedLocation
from labelnav.workspace import find_root

__all__ = [
    "Label",
    "LabelNavError",
    "LabelNotFoundError",
    "LabelResolver",
    "MalformedLabelError",
    "QueryFailedError",
    "QueryOutputMalformedError",
    "RepositoryCache",
    "ResolvedLocation",
    "__version__",
    "find_root",
    "format_absolute",
    "parse_label",
]

try:  # pragma: no cover - populated at install time
    __version__ = metadata.version("labelnav")
except metadata.PackageNotFoundError:  # pragma: no cover - development fallback
    __version__ = "0.0.0-dev"
