"""Tests for the editor-facing commands."""

from __future__ import annotations

from pathlib import Path

import pytest

from labelnav.commands import clear_repository_cache, copy_label, jump_to_definition
from labelnav.errors import LabelNotFoundError, MalformedLabelError
from labelnav.io.repository_cache import RepositoryCache
from labelnav.resolver import LabelResolver, ResolvedLocation
from tests.labelnav._helpers import FakeQueryRunner, write


class RecordingEditor:
    """Editor double that records every primitive call in order."""

    def __init__(self, text: str, cursor: int, directory: Path) -> None:
        self.text = text
        self.cursor = cursor
        self.directory = directory
        self.events: list[tuple[str, object]] = []

    def buffer_text(self) -> str:
        return self.text

    def cursor_offset(self) -> int:
        return self.cursor

    def buffer_directory(self) -> Path:
        return self.directory

    def push_history(self) -> None:
        self.events.append(("push_history", None))

    def open_location(self, location: ResolvedLocation) -> None:
        self.events.append(("open", location))

    def set_clipboard(self, text: str) -> None:
        self.events.append(("clipboard", text))

    def message(self, text: str) -> None:
        self.events.append(("message", text))


def test_jump_pushes_history_then_opens(resolver: LabelResolver, workspace: Path) -> None:
    build = write(workspace / "lib" / "BUILD", 'cc_library(name = "core")\n')
    text = 'deps = ["//lib:core"]\n'
    editor = RecordingEditor(text, text.index("core"), workspace / "app")

    location = jump_to_definition(editor, resolver)

    assert location.path == build
    assert editor.events == [("push_history", None), ("open", location)]


def test_jump_failure_reports_message(resolver: LabelResolver, workspace: Path) -> None:
    text = 'deps = ["//nonexistent/pkg:x"]\n'
    editor = RecordingEditor(text, text.index("pkg"), workspace)

    with pytest.raises(LabelNotFoundError):
        jump_to_definition(editor, resolver)

    assert editor.events == [("message", "Cannot find definition of //nonexistent/pkg:x")]


def test_jump_without_label(resolver: LabelResolver, workspace: Path) -> None:
    editor = RecordingEditor("cc_library()\n", 2, workspace)

    with pytest.raises(MalformedLabelError):
        jump_to_definition(editor, resolver)

    assert editor.events == [("message", "No label at cursor")]


def test_copy_label_from_quoted_name(workspace: Path) -> None:
    package = workspace / "foo" / "bar"
    package.mkdir(parents=True)
    text = 'cc_library(\n    name = "lib",\n)\n'
    editor = RecordingEditor(text, text.index('"lib"') + 2, package)

    label = copy_label(editor)

    assert label == "//foo/bar:lib"
    assert editor.events == [("clipboard", "//foo/bar:lib"), ("message", "Copied //foo/bar:lib")]


def test_copy_label_from_name_line(workspace: Path) -> None:
    text = 'cc_library(\n    name = "lib",\n)\n'
    editor = RecordingEditor(text, text.index("name"), workspace)

    assert copy_label(editor) == "//:lib"


def test_copy_label_with_explicit_root(tmp_path: Path) -> None:
    text = 'name = "tool"'
    editor = RecordingEditor(text, text.index("tool"), tmp_path / "a" / "b")

    assert copy_label(editor, root=tmp_path) == "//a/b:tool"


def test_copy_label_without_name(workspace: Path) -> None:
    editor = RecordingEditor("cc_library()\n", 3, workspace)

    with pytest.raises(MalformedLabelError):
        copy_label(editor)

    assert editor.events == [("message", "No target name at cursor")]


def test_clear_repository_cache(workspace: Path, tmp_path: Path) -> None:
    external = tmp_path / "ext"
    write(external / "BUILD", 'cc_library(name = "bar")\n')
    runner = FakeQueryRunner({"foo": f'path = "{external}"\n'})
    resolver = LabelResolver(runner=runner, cache=RepositoryCache({"foo": "/stale"}))

    clear_repository_cache(resolver)
    location = resolver.resolve("@foo//:bar", workspace)

    assert len(resolver.cache) == 1
    assert location.path == external.resolve() / "BUILD"
    assert runner.calls == [("foo", workspace)]


def test_copy_label_from_package_relative_reference(workspace: Path) -> None:
    text = 'deps = [":base"]\n'
    editor = RecordingEditor(text, text.index("base"), workspace / "pkg")

    assert copy_label(editor) == "//pkg:base"


def test_copy_label_uses_resolver_markers(
    fake_runner: FakeQueryRunner, tmp_path: Path
) -> None:
    write(tmp_path / "repo" / ".root")
    package = tmp_path / "repo" / "pkg"
    package.mkdir()
    text = 'name = "tool"'
    editor = RecordingEditor(text, text.index("tool"), package)
    resolver = LabelResolver(runner=fake_runner, workspace_markers=(".root",))

    assert copy_label(editor, resolver=resolver) == "//pkg:tool"
    assert editor.events[0] == ("clipboard", "//pkg:tool")
