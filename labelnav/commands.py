"""Editor-facing commands built on :class:`~labelnav.resolver.LabelResolver`.

The editor itself is a collaborator described by the :class:`Editor`
protocol; these functions only sequence its primitives around the engine.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

from labelnav.errors import LabelNavError, MalformedLabelError
from labelnav.labels import format_absolute, parse_label
from labelnav.logging import get_logger
from labelnav.point import extract_label_at
from labelnav.resolver import LabelResolver, ResolvedLocation

LOGGER = get_logger(__name__)

_NAME_ATTRIBUTE = re.compile(r"""\bname\s*=\s*["'](?P<name>[^"'\n]+)["']""")


class Editor(Protocol):
    """Primitives the hosting editor supplies."""

    def buffer_text(self) -> str: ...

    def cursor_offset(self) -> int: ...

    def buffer_directory(self) -> Path: ...

    def push_history(self) -> None: ...

    def open_location(self, location: ResolvedLocation) -> None: ...

    def set_clipboard(self, text: str) -> None: ...

    def message(self, text: str) -> None: ...


def jump_to_definition(editor: Editor, resolver: LabelResolver) -> ResolvedLocation:
    """Open the definition of the label under the editor's cursor.

    The current position is pushed onto the navigation history only once
    resolution has succeeded. Any failure is reported through
    ``editor.message`` and re-raised.
    """
    try:
        location = resolver.resolve_at(
            editor.buffer_text(),
            editor.cursor_offset(),
            editor.buffer_directory(),
        )
    except LabelNavError as exc:
        LOGGER.info(
            "Jump failed",
            extra={"operation": "jump_to_definition", "code": exc.code.value},
        )
        editor.message(exc.message)
        raise
    editor.push_history()
    editor.open_location(location)
    return location


def _target_name_at(text: str, cursor: int) -> str | None:
    token = extract_label_at(text, cursor)
    if token is not None:
        label = parse_label(token.text)
        if label.is_bare:
            return label.target
    line_start = text.rfind("\n", 0, cursor) + 1
    line_end = text.find("\n", cursor)
    match = _NAME_ATTRIBUTE.search(text[line_start : line_end if line_end >= 0 else len(text)])
    return match.group("name") if match else None


def copy_label(
    editor: Editor,
    root: Path | None = None,
    *,
    resolver: LabelResolver | None = None,
) -> str:
    """Copy the absolute label of the target under the cursor to the clipboard.

    The target name is the bare or ``:``-prefixed word under the cursor, or
    the value of a ``name = "..."`` attribute on the cursor's line. Without
    an explicit ``root`` the workspace root is found with ``resolver``'s
    markers, or the default markers when no resolver is given.

    Raises
    ------
    MalformedLabelError
        If no target name is found at the cursor.
    """
    name = _target_name_at(editor.buffer_text(), editor.cursor_offset())
    if name is None:
        error = MalformedLabelError("No target name at cursor")
        editor.message(error.message)
        raise error
    directory = editor.buffer_directory()
    if root is None and resolver is not None:
        root = resolver.find_root(directory)
    label = format_absolute(directory, name, root=root)
    editor.set_clipboard(label)
    editor.message(f"Copied {label}")
    return label


def clear_repository_cache(resolver: LabelResolver) -> None:
    """Forget every cached external repository location."""
    resolver.clear_cache()


__all__ = ["Editor", "clear_repository_cache", "copy_label", "jump_to_definition"]
