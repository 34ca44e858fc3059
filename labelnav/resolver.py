"""Label resolution engine.

:class:`LabelResolver` turns a label, or the label under a cursor, into a
:class:`ResolvedLocation`:

1. The label's base directory is computed from the current directory, the
   workspace root, or the external repository cache.
2. ``base_dir / target`` wins when it is a regular file.
3. Otherwise the package build file is searched for ``name = "<target>"``;
   the last match in the file is used, falling back to the last plain
   occurrence of the target name.

Symbols imported by ``load(...)`` are resolved in two stages: the load's file
label is resolved as above, then that file is scanned forward for the first
definition of the symbol.

The search patterns are loose text heuristics, not a build-language parser;
they can match inside strings or comments that happen to have the same shape.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from labelnav.config.settings import (
    DEFAULT_BUILD_FILE_NAMES,
    DEFAULT_WORKSPACE_MARKERS,
    Settings,
)
from labelnav.errors import LabelNotFoundError, MalformedLabelError
from labelnav.io.query_runner import BazelQueryRunner, QueryRunner, locate_repository
from labelnav.io.repository_cache import RepositoryCache
from labelnav.labels import Label, parse_label
from labelnav.logging import get_logger, with_fields
from labelnav.point import extract_label_at, load_context_at
from labelnav.workspace import find_root

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    """Where a label is defined.

    Attributes
    ----------
    path : Path
        File to open.
    label : str
        Label or symbol text that was resolved.
    pattern : str | None
        Regular expression that located the definition, ``None`` when the
        label names a plain file.
    offset : int | None
        Character offset of the chosen match.
    line : int | None
        1-based line of the chosen match.
    """

    path: Path
    label: str
    pattern: str | None = None
    offset: int | None = None
    line: int | None = None

    @property
    def is_file(self) -> bool:
        return self.pattern is None

    def describe(self) -> str:
        """Return ``path:line``, or just the path for plain files."""
        if self.line is None:
            return str(self.path)
        return f"{self.path}:{self.line}"

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "label": self.label,
            "pattern": self.pattern,
            "offset": self.offset,
            "line": self.line,
        }


def rule_pattern(target: str) -> str:
    """Return the pattern matching a ``name = "<target>"`` attribute."""
    return rf"""\bname\s*=\s*["']{re.escape(target)}["']"""


def definition_pattern(symbol: str) -> str:
    """Return the pattern matching a top-level ``def`` or assignment of ``symbol``."""
    name = re.escape(symbol)
    return rf"^(?:def[ \t]+{name}[ \t]*\(|{name}[ \t]*=)"


def _last_match(pattern: str, text: str) -> re.Match[str] | None:
    match = None
    for match in re.finditer(pattern, text, re.MULTILINE):
        pass
    return match


def _first_match(pattern: str, text: str) -> re.Match[str] | None:
    return re.search(pattern, text, re.MULTILINE)


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


class LabelResolver:
    """Resolve build labels to files and definition sites.

    Parameters
    ----------
    runner : QueryRunner | None, optional
        Capability used to locate external repositories. Defaults to
        :class:`BazelQueryRunner`.
    cache : RepositoryCache | None, optional
        External repository store. A fresh empty cache by default.
    workspace_markers : Sequence[str], optional
        Files marking a workspace root.
    build_file_names : Sequence[str], optional
        Build file names, tried in order.
    """

    def __init__(
        self,
        *,
        runner: QueryRunner | None = None,
        cache: RepositoryCache | None = None,
        workspace_markers: Sequence[str] = DEFAULT_WORKSPACE_MARKERS,
        build_file_names: Sequence[str] = DEFAULT_BUILD_FILE_NAMES,
    ) -> None:
        self.runner: QueryRunner = runner if runner is not None else BazelQueryRunner()
        self.cache = cache if cache is not None else RepositoryCache()
        self.workspace_markers = tuple(workspace_markers)
        self.build_file_names = tuple(build_file_names)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        cache: RepositoryCache | None = None,
        runner: QueryRunner | None = None,
    ) -> LabelResolver:
        """Build a resolver from :class:`Settings`.

        ``settings.repository_overrides`` are written into the cache, replacing
        entries of the same name.
        """
        store = cache if cache is not None else RepositoryCache()
        for name, directory in settings.repository_overrides.items():
            store.put(name, Path(directory).expanduser())
        return cls(
            runner=runner
            if runner is not None
            else BazelQueryRunner(settings.query_program, settings.query_timeout_s),
            cache=store,
            workspace_markers=settings.workspace_markers,
            build_file_names=settings.build_file_names,
        )

    def find_root(self, directory: str | Path) -> Path:
        return find_root(directory, self.workspace_markers)

    def clear_cache(self) -> None:
        self.cache.clear()

    def resolve_base_dir(self, label: Label, current_dir: str | Path) -> Path:
        """Return the absolute directory ``label.package`` is relative to.

        Parameters
        ----------
        label : Label
            Parsed label.
        current_dir : str | Path
            Directory of the file the label appears in.

        Returns
        -------
        Path
            ``current_dir`` for package-relative labels, the external
            repository directory joined with the package for ``@repo``
            labels, otherwise the workspace root joined with the package.
        """
        current = Path(current_dir).absolute()
        if label.repository:
            workspace_root = self.find_root(current)
            repository_dir = self.cache.get_or_locate(
                label.repository,
                lambda name: self._locate_repository(name, workspace_root),
            )
            # Seeded entries may be relative to the workspace.
            if not repository_dir.is_absolute():
                repository_dir = (workspace_root / repository_dir).resolve()
            return repository_dir / label.package if label.package else repository_dir
        if not label.package and not label.absolute:
            return current
        root = self.find_root(current)
        return root / label.package if label.package else root

    def _locate_repository(self, name: str, workspace_root: Path) -> Path:
        located = Path(locate_repository(name, workspace_root, self.runner))
        if not located.is_absolute():
            located = workspace_root / located
        return located.resolve()

    def find_build_file(self, directory: Path) -> Path | None:
        """Return the first existing build file in ``directory``."""
        for name in self.build_file_names:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None

    def resolve(self, label: Label | str, current_dir: str | Path) -> ResolvedLocation:
        """Resolve ``label`` as seen from ``current_dir``.

        Parameters
        ----------
        label : Label | str
            Parsed label or raw label text.
        current_dir : str | Path
            Directory of the file the label appears in.

        Returns
        -------
        ResolvedLocation
            A plain file, or a build file with the matched definition.

        Raises
        ------
        LabelNotFoundError
            If neither a file nor a build file definition matches.
        MalformedLabelError
            If ``label`` is empty text.
        QueryFailedError
            If an external repository lookup fails.
        QueryOutputMalformedError
            If an external repository lookup prints no path.
        """
        text = label if isinstance(label, str) else str(label)
        parsed = parse_label(label) if isinstance(label, str) else label
        with with_fields(LOGGER, operation="resolve", label=text) as log:
            base_dir = self.resolve_base_dir(parsed, current_dir)
            log.debug("Resolved base directory", extra={"base_dir": str(base_dir)})

            if not Path(parsed.target).is_absolute():
                candidate = base_dir / parsed.target
                if candidate.exists() and not candidate.is_dir():
                    return ResolvedLocation(path=candidate, label=text)

            build_file = self.find_build_file(base_dir)
            if build_file is None:
                log.debug("No build file", extra={"base_dir": str(base_dir)})
                raise LabelNotFoundError(text, searched=str(base_dir))

            content = _read_text(build_file)
            for pattern in (rule_pattern(parsed.target), re.escape(parsed.target)):
                match = _last_match(pattern, content)
                if match is not None:
                    log.debug(
                        "Definition found",
                        extra={"path": str(build_file), "pattern": pattern},
                    )
                    return ResolvedLocation(
                        path=build_file,
                        label=text,
                        pattern=pattern,
                        offset=match.start(),
                        line=_line_of(content, match.start()),
                    )
            raise LabelNotFoundError(text, searched=str(build_file))

    def resolve_load_symbol(
        self,
        symbol: str,
        source: str,
        current_dir: str | Path,
    ) -> ResolvedLocation:
        """Resolve a symbol imported by ``load(source, ..., symbol)``.

        Parameters
        ----------
        symbol : str
            Imported symbol name.
        source : str
            The load statement's file label.
        current_dir : str | Path
            Directory of the file containing the load statement.

        Returns
        -------
        ResolvedLocation
            The definition of ``symbol`` inside the loaded file.

        Raises
        ------
        LabelNotFoundError
            If the loaded file cannot be found or does not mention ``symbol``.
        """
        defining = self.resolve(source, current_dir)
        content = _read_text(defining.path)
        for pattern in (definition_pattern(symbol), re.escape(symbol)):
            match = _first_match(pattern, content)
            if match is not None:
                LOGGER.debug(
                    "Loaded symbol found",
                    extra={
                        "operation": "resolve_load_symbol",
                        "symbol": symbol,
                        "path": str(defining.path),
                    },
                )
                return ResolvedLocation(
                    path=defining.path,
                    label=symbol,
                    pattern=pattern,
                    offset=match.start(),
                    line=_line_of(content, match.start()),
                )
        raise LabelNotFoundError(symbol, searched=str(defining.path))

    def resolve_at(self, text: str, cursor: int, current_dir: str | Path) -> ResolvedLocation:
        """Resolve the label under ``cursor`` in ``text``.

        Raises
        ------
        MalformedLabelError
            If the cursor is not on a quoted label.
        """
        load = load_context_at(text, cursor)
        if load is not None:
            return self.resolve_load_symbol(load.symbol, load.source, current_dir)
        token = extract_label_at(text, cursor)
        if token is None:
            msg = "No label at cursor"
            raise MalformedLabelError(msg)
        return self.resolve(token.text, current_dir)


__all__ = [
    "LabelResolver",
    "ResolvedLocation",
    "definition_pattern",
    "rule_pattern",
]
