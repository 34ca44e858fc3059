"""Build label parsing and canonical formatting.

Supported forms::

    @repo//pkg/sub:target    external repository, package, target
    //pkg/sub:target         workspace-absolute package
    //pkg/sub                shorthand for //pkg/sub:sub
    //:target                root package
    :target                  current package
    sub/file.cc              file relative to the current package
    symbol                   bare name (a ``load`` symbol, or a current-package target)
    @repo                    shorthand for @repo//:repo
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from labelnav.errors import MalformedLabelError
from labelnav.logging import get_logger
from labelnav.workspace import find_root

LOGGER = get_logger(__name__)

REPOSITORY_MARKER = "@"
PACKAGE_SEPARATOR = "//"
TARGET_SEPARATOR = ":"


@dataclass(frozen=True, slots=True)
class Label:
    """A parsed build label.

    Attributes
    ----------
    repository : str
        External repository name, empty for the current workspace.
    package : str
        Slash-separated package path, possibly empty.
    target : str
        Target or file name. Never empty.
    absolute : bool
        True when the label carried ``//``, i.e. its package is anchored at
        a repository root rather than at the current package.
    """

    repository: str
    package: str
    target: str
    absolute: bool = False

    @property
    def is_bare(self) -> bool:
        """Return True for a plain symbol with no package or path syntax."""
        return (
            not self.repository
            and not self.package
            and not self.absolute
            and "/" not in self.target
            and TARGET_SEPARATOR not in self.target
        )

    def __str__(self) -> str:
        if not self.absolute and not self.repository:
            if self.package:
                return f"{self.package}:{self.target}"
            return self.target if "/" in self.target else f":{self.target}"
        prefix = f"{REPOSITORY_MARKER}{self.repository}" if self.repository else ""
        return f"{prefix}{PACKAGE_SEPARATOR}{self.package}:{self.target}"


def _split_target(path: str) -> tuple[str, str]:
    package, _, target = path.rpartition(TARGET_SEPARATOR)
    return package, target


def parse_label(token: str) -> Label:
    """Parse ``token`` into a :class:`Label`.

    Parsing is best-effort: a token that does not yield both a usable package
    and target degrades to a label whose target is the raw token, so the
    failure surfaces later as "not found" with the original text.

    Parameters
    ----------
    token : str
        Raw label text, already stripped of surrounding quotes.

    Returns
    -------
    Label
        Parsed label.

    Raises
    ------
    MalformedLabelError
        If ``token`` is empty or blank.
    """
    raw = token.strip()
    if not raw:
        msg = "Empty label"
        raise MalformedLabelError(msg, token=token)

    repository = ""
    remainder = raw
    if raw.startswith(REPOSITORY_MARKER):
        head, separator, tail = raw[1:].partition(PACKAGE_SEPARATOR)
        if separator and head:
            repository, remainder = head.lstrip(REPOSITORY_MARKER), f"{PACKAGE_SEPARATOR}{tail}"
        elif not separator and head and "/" not in head and TARGET_SEPARATOR not in head:
            return Label(repository=head, package="", target=head, absolute=True)

    absolute = remainder.startswith(PACKAGE_SEPARATOR)
    path = remainder[len(PACKAGE_SEPARATOR) :] if absolute else remainder

    if TARGET_SEPARATOR in path:
        package, target = _split_target(path)
    elif absolute:
        package, target = path, path.rpartition("/")[2]
    else:
        package, target = "", path

    package = package.strip("/")
    if not target or (absolute and PACKAGE_SEPARATOR in package):
        LOGGER.warning(
            "Malformed label, resolving best-effort",
            extra={"operation": "parse_label", "label": raw},
        )
        return Label(repository="", package="", target=raw)
    return Label(repository=repository, package=package, target=target, absolute=absolute)


def format_absolute(
    current_dir: str | Path,
    target_name: str,
    root: str | Path | None = None,
) -> str:
    """Render ``target_name`` in ``current_dir`` as an absolute label.

    Parameters
    ----------
    current_dir : str | Path
        Package directory containing the target.
    target_name : str
        Target name inside that package.
    root : str | Path | None, optional
        Workspace root. When omitted it is located with
        :func:`labelnav.workspace.find_root`; when given no I/O happens.

    Returns
    -------
    str
        Label text of the form ``//relative/package:target``.
    """
    directory = Path(current_dir).absolute()
    workspace = Path(root).absolute() if root is not None else find_root(directory)
    relative = directory.relative_to(workspace).as_posix()
    if relative == ".":
        relative = ""
    return f"{PACKAGE_SEPARATOR}{relative.rstrip('/')}{TARGET_SEPARATOR}{target_name}"


__all__ = ["Label", "format_absolute", "parse_label"]
