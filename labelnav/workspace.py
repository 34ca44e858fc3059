"""Workspace root discovery."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from labelnav.config.settings import DEFAULT_WORKSPACE_MARKERS
from labelnav.logging import get_logger

LOGGER = get_logger(__name__)


def find_root(
    directory: str | Path,
    markers: Sequence[str] = DEFAULT_WORKSPACE_MARKERS,
) -> Path:
    """Return the nearest ancestor of ``directory`` that holds a workspace marker.

    The walk includes ``directory`` itself and stops at the filesystem root,
    which is returned when no marker is found. Each step moves to a strict
    parent, so the loop runs at most ``len(directory.parts)`` times.

    Parameters
    ----------
    directory : str | Path
        Starting directory. Relative paths are made absolute first.
    markers : Sequence[str], optional
        Marker file names checked in each directory.

    Returns
    -------
    Path
        Absolute workspace root, or the filesystem root when none matched.
    """
    current = Path(directory).absolute()
    for candidate in (current, *current.parents):
        if any((candidate / marker).is_file() for marker in markers):
            return candidate
    root = Path(current.anchor)
    LOGGER.debug(
        "No workspace marker found",
        extra={"operation": "find_root", "directory": str(current), "markers": list(markers)},
    )
    return root
