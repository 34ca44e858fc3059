"""CLI tests for label resolution and cache maintenance commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from labelnav.cli import _common
from labelnav.cli import app as root_app
from labelnav.config.settings import Settings
from tests.labelnav._helpers import FakeQueryRunner, query_output, write

runner = CliRunner()


@pytest.fixture
def cli_runner(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FakeQueryRunner:
    """Point the CLI at a temporary cache and a fake query runner."""
    fake = FakeQueryRunner()
    monkeypatch.setenv("LABELNAV_CACHE_PATH", str(tmp_path / "cache" / "repositories.json"))
    for name in (
        "LABELNAV_QUERY_PROGRAM",
        "LABELNAV_QUERY_TIMEOUT_S",
        "LABELNAV_WORKSPACE_MARKERS",
        "LABELNAV_BUILD_FILE_NAMES",
        "LABELNAV_REPOSITORY_OVERRIDES",
        "LABELNAV_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    def create_query_runner(_settings: Settings) -> FakeQueryRunner:
        return fake

    monkeypatch.setattr(_common, "create_query_runner", create_query_runner)
    monkeypatch.setattr(_common, "setup_logging", lambda *_args, **_kwargs: None)
    return fake


def test_resolve_prints_location(cli_runner: FakeQueryRunner, workspace: Path) -> None:
    build = write(workspace / "pkg" / "BUILD", 'cc_library(\n    name = "lib",\n)\n')

    result = runner.invoke(root_app, ["resolve", "//pkg:lib", "--from", str(workspace)])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == f"{build}:2"


def test_resolve_json(cli_runner: FakeQueryRunner, workspace: Path) -> None:
    data = write(workspace / "pkg" / "data.txt")

    result = runner.invoke(
        root_app, ["resolve", ":data.txt", "--from", str(workspace / "pkg"), "--json"]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload == {
        "path": str(data),
        "label": ":data.txt",
        "pattern": None,
        "offset": None,
        "line": None,
    }


def test_resolve_not_found_exits_with_error(
    cli_runner: FakeQueryRunner, workspace: Path
) -> None:
    result = runner.invoke(
        root_app, ["resolve", "//nonexistent/pkg:x", "--from", str(workspace)]
    )

    assert result.exit_code == 1
    assert "labelnav: Cannot find definition of //nonexistent/pkg:x" in result.output


def test_resolve_external_repository_persists_cache(
    cli_runner: FakeQueryRunner, workspace: Path, tmp_path: Path
) -> None:
    external = tmp_path / "ext" / "foo"
    build = write(external / "BUILD", 'cc_library(name = "bar")\n')
    cli_runner.outputs["foo"] = query_output("foo", str(external))

    first = runner.invoke(root_app, ["resolve", "@foo//:bar", "--from", str(workspace)])
    second = runner.invoke(root_app, ["resolve", "@foo//:bar", "--from", str(workspace)])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert second.output.strip() == f"{build.resolve()}:1"
    assert len(cli_runner.calls) == 1
    cached = json.loads((tmp_path / "cache" / "repositories.json").read_text(encoding="utf-8"))
    assert cached == {"repositories": {"foo": str(external.resolve())}}


def test_at_resolves_load_symbol(cli_runner: FakeQueryRunner, workspace: Path) -> None:
    defs = write(workspace / "pkg" / "defs.bzl", "def my_macro(name):\n    pass\n")
    text = 'load(":defs.bzl", "my_macro")\n'
    build = write(workspace / "pkg" / "BUILD", text)

    result = runner.invoke(root_app, ["at", str(build), str(text.index("my_macro"))])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == f"{defs}:1"


def test_at_without_label(cli_runner: FakeQueryRunner, workspace: Path) -> None:
    build = write(workspace / "BUILD", "exports_files()\n")

    result = runner.invoke(root_app, ["at", str(build), "3"])

    assert result.exit_code == 1
    assert "No label at cursor" in result.output


def test_format(cli_runner: FakeQueryRunner, workspace: Path) -> None:
    package = workspace / "foo" / "bar"
    package.mkdir(parents=True)

    result = runner.invoke(root_app, ["format", str(package), "lib"])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "//foo/bar:lib"


def test_cache_seed_show_clear(cli_runner: FakeQueryRunner, tmp_path: Path) -> None:
    directory = tmp_path / "vendored" / "foo"

    seeded = runner.invoke(root_app, ["cache", "seed", "@foo", str(directory)])
    shown = runner.invoke(root_app, ["cache", "show"])
    cleared = runner.invoke(root_app, ["cache", "clear"])
    empty = runner.invoke(root_app, ["cache", "show"])

    assert seeded.exit_code == 0, seeded.output
    assert seeded.output.strip() == f"@foo -> {directory}"
    assert json.loads(shown.output) == {"foo": str(directory)}
    assert cleared.output.strip() == "Repository cache cleared."
    assert json.loads(empty.output) == {}


def test_repository_overrides_from_environment(
    cli_runner: FakeQueryRunner,
    monkeypatch: pytest.MonkeyPatch,
    workspace: Path,
    tmp_path: Path,
) -> None:
    external = tmp_path / "ext" / "foo"
    build = write(external / "BUILD", 'cc_library(name = "bar")\n')
    monkeypatch.setenv("LABELNAV_REPOSITORY_OVERRIDES", json.dumps({"foo": str(external)}))

    result = runner.invoke(root_app, ["resolve", "@foo//:bar", "--from", str(workspace)])

    assert result.exit_code == 0, result.output
    assert result.output.strip() == f"{build}:1"
    assert cli_runner.calls == []


def test_invalid_configuration_exits(
    cli_runner: FakeQueryRunner, monkeypatch: pytest.MonkeyPatch, workspace: Path
) -> None:
    monkeypatch.setenv("LABELNAV_QUERY_TIMEOUT_S", "soon")

    result = runner.invoke(root_app, ["resolve", "//pkg:x", "--from", str(workspace)])

    assert result.exit_code == 1
    assert "LABELNAV_QUERY_TIMEOUT_S" in result.output


def test_no_arguments_shows_help() -> None:
    result = runner.invoke(root_app, [])

    assert "resolve" in result.output
    assert "cache" in result.output
