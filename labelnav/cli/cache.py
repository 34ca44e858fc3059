"""Commands for the persisted external repository cache."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from labelnav.cli import _common
from labelnav.commands import clear_repository_cache

app = typer.Typer(
    help="External repository cache commands.",
    no_args_is_help=True,
    add_completion=False,
)

NAME_ARGUMENT = typer.Argument(..., help="Repository name without the leading @.")
PATH_ARGUMENT = typer.Argument(..., file_okay=False, help="Repository directory.")


@app.command("show")
def show() -> None:
    """Print cached repository locations as JSON."""
    settings = _common.load_cli_settings()
    resolver = _common.create_resolver(settings)
    typer.echo(json.dumps(resolver.cache.snapshot(), indent=2, sort_keys=True))


@app.command("clear")
def clear() -> None:
    """Forget every cached repository location."""
    settings = _common.load_cli_settings()
    resolver = _common.create_resolver(settings)
    clear_repository_cache(resolver)
    resolver.cache.save(_common.cache_path(settings))
    typer.echo("Repository cache cleared.")


@app.command("seed")
def seed(
    name: str = NAME_ARGUMENT,
    path: Path = PATH_ARGUMENT,
) -> None:
    """Record PATH as the location of repository NAME."""
    settings = _common.load_cli_settings()
    resolver = _common.create_resolver(settings)
    directory = path.expanduser().absolute()
    resolver.cache.put(name.lstrip("@"), directory)
    resolver.cache.save(_common.cache_path(settings))
    typer.echo(f"@{name.lstrip('@')} -> {directory}")
