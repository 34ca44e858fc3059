"""Command-line entry point for label resolution."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from labelnav.cli import _common
from labelnav.cli.cache import app as cache_app
from labelnav.errors import LabelNavError
from labelnav.labels import format_absolute
from labelnav.resolver import ResolvedLocation
from labelnav.workspace import find_root

app = typer.Typer(
    help="Resolve build labels to files and definition sites.",
    no_args_is_help=True,
    add_completion=False,
)
app.add_typer(
    cache_app,
    name="cache",
    help="Inspect or reset the external repository cache.",
)

LABEL_ARGUMENT = typer.Argument(
    ...,
    help="Label to resolve, e.g. //pkg:target or @repo//pkg:file.",
)
FROM_OPTION = typer.Option(
    None,
    "--from",
    "-f",
    file_okay=False,
    help="Directory the label is written in (defaults to the working directory).",
)
JSON_OPTION = typer.Option(
    False,  # noqa: FBT003
    "--json",
    help="Emit the resolved location as a JSON object.",
)
FILE_ARGUMENT = typer.Argument(
    ...,
    exists=True,
    dir_okay=False,
    readable=True,
    help="Build or source file containing the label.",
)
OFFSET_ARGUMENT = typer.Argument(..., min=0, help="0-based character offset of the cursor.")
DIRECTORY_ARGUMENT = typer.Argument(..., file_okay=False, help="Package directory.")
TARGET_ARGUMENT = typer.Argument(..., help="Target name inside the package.")


def _echo_location(location: ResolvedLocation, *, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(location.to_dict()))
    else:
        typer.echo(location.describe())


@app.command("resolve")
def resolve(
    label: str = LABEL_ARGUMENT,
    from_dir: Path | None = FROM_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Print the file (and line) where LABEL is defined."""
    settings = _common.load_cli_settings()
    resolver = _common.create_resolver(settings)
    before = resolver.cache.snapshot()
    try:
        location = resolver.resolve(label, from_dir or Path.cwd())
    except LabelNavError as exc:
        _common.fail(exc)
    finally:
        _common.persist_cache(resolver, settings, before)
    _echo_location(location, as_json=as_json)


@app.command("at")
def resolve_at(
    file: Path = FILE_ARGUMENT,
    offset: int = OFFSET_ARGUMENT,
    as_json: bool = JSON_OPTION,
) -> None:
    """Resolve the label under OFFSET in FILE, including load() symbols."""
    settings = _common.load_cli_settings()
    resolver = _common.create_resolver(settings)
    before = resolver.cache.snapshot()
    text = file.read_text(encoding="utf-8", errors="replace")
    try:
        location = resolver.resolve_at(text, offset, file.absolute().parent)
    except LabelNavError as exc:
        _common.fail(exc)
    finally:
        _common.persist_cache(resolver, settings, before)
    _echo_location(location, as_json=as_json)


@app.command("format")
def format_label(
    directory: Path = DIRECTORY_ARGUMENT,
    target: str = TARGET_ARGUMENT,
) -> None:
    """Print the absolute label of TARGET in package DIRECTORY."""
    settings = _common.load_cli_settings()
    root = find_root(directory, settings.workspace_markers)
    typer.echo(format_absolute(directory, target, root=root))


def main() -> None:
    """Run the labelnav CLI."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual execution entrypoint
    main()
