"""Memoized external repository locations.

:class:`RepositoryCache` maps repository names to absolute directories. Entries
are added the first time a name is resolved and are never evicted
automatically; :meth:`RepositoryCache.clear` resets the store. A lock guards
the read-check-insert sequence so that concurrent callers trigger at most one
lookup per name.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path

import msgspec

from labelnav.errors import SettingsError
from labelnav.logging import get_logger

LOGGER = get_logger(__name__)


class CacheFile(msgspec.Struct, frozen=True):
    """On-disk form of the repository cache."""

    repositories: dict[str, str] = msgspec.field(default_factory=dict)


class RepositoryCache:
    """Process-local store of external repository directories.

    Parameters
    ----------
    entries : Mapping[str, str | Path] | None, optional
        Pre-seeded ``name -> directory`` pairs.

    Examples
    --------
    >>> cache = RepositoryCache({"rules_cc": "/opt/rules_cc"})
    >>> cache.get("rules_cc")
    PosixPath('/opt/rules_cc')
    >>> cache.clear()
    >>> len(cache)
    0
    """

    def __init__(self, entries: Mapping[str, str | Path] | None = None) -> None:
        self._entries: dict[str, Path] = {
            name: Path(path) for name, path in (entries or {}).items()
        }
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(dict(self._entries))

    def get(self, name: str) -> Path | None:
        """Return the cached directory for ``name`` or ``None``."""
        with self._lock:
            return self._entries.get(name)

    def put(self, name: str, directory: str | Path) -> None:
        """Insert or replace the directory for ``name``."""
        with self._lock:
            self._entries[name] = Path(directory)

    def get_or_locate(self, name: str, locate: Callable[[str], Path]) -> Path:
        """Return the directory for ``name``, calling ``locate`` on a miss.

        The lock is held while ``locate`` runs, so a second caller asking for
        the same name waits for the first lookup instead of repeating it.
        Failures from ``locate`` propagate and leave the cache unchanged.

        Parameters
        ----------
        name : str
            Repository name.
        locate : Callable[[str], Path]
            Lookup invoked at most once per name while the entry is cached.

        Returns
        -------
        Path
            Cached or freshly located directory.
        """
        with self._lock:
            cached = self._entries.get(name)
            if cached is not None:
                LOGGER.debug(
                    "Repository cache hit",
                    extra={"operation": "locate_repository", "repository": name},
                )
                return cached
            directory = locate(name)
            self._entries[name] = directory
            LOGGER.info(
                "Repository located",
                extra={
                    "operation": "locate_repository",
                    "repository": name,
                    "directory": str(directory),
                },
            )
            return directory

    def clear(self) -> None:
        """Drop every entry. Always succeeds."""
        with self._lock:
            self._entries.clear()
        LOGGER.info("Repository cache cleared", extra={"operation": "clear_cache"})

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the entries as plain strings."""
        with self._lock:
            return {name: str(path) for name, path in sorted(self._entries.items())}

    @classmethod
    def load(cls, path: Path) -> RepositoryCache:
        """Load a cache previously written by :meth:`save`.

        A missing file yields an empty cache.

        Raises
        ------
        SettingsError
            If the file exists but is not a valid cache document.
        """
        if not path.is_file():
            return cls()
        try:
            document = msgspec.json.decode(path.read_bytes(), type=CacheFile)
        except msgspec.MsgspecError as exc:
            msg = f"Invalid repository cache file {path}: {exc}"
            raise SettingsError(msg, variable="LABELNAV_CACHE_PATH") from exc
        return cls(document.repositories)

    def save(self, path: Path) -> None:
        """Write the entries to ``path`` as JSON, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        document = CacheFile(repositories=self.snapshot())
        path.write_bytes(msgspec.json.encode(document))
        LOGGER.debug(
            "Repository cache saved",
            extra={
                "operation": "save_cache",
                "path": str(path),
                "entries": len(document.repositories),
            },
        )


__all__ = ["CacheFile", "RepositoryCache"]
