"""Shared wiring for the labelnav CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from labelnav.config.settings import Settings, load_settings
from labelnav.errors import LabelNavError
from labelnav.io.query_runner import BazelQueryRunner, QueryRunner
from labelnav.io.repository_cache import RepositoryCache
from labelnav.logging import get_logger, setup_logging
from labelnav.resolver import LabelResolver

LOGGER = get_logger(__name__)


def fail(exc: LabelNavError) -> NoReturn:
    """Print ``exc`` for the user and exit with status 1."""
    LOGGER.error(
        exc.message,
        extra={"operation": "cli", "code": exc.code.value, **_loggable(exc.context)},
    )
    typer.echo(f"labelnav: {exc.message}", err=True)
    raise typer.Exit(code=1)


def _loggable(context: dict[str, object]) -> dict[str, object]:
    return {f"ctx_{key}": value for key, value in context.items()}


def load_cli_settings() -> Settings:
    """Load settings and configure logging, exiting on invalid configuration."""
    try:
        settings = load_settings()
    except LabelNavError as exc:
        fail(exc)
    setup_logging(settings.log_level)
    return settings


def create_query_runner(settings: Settings) -> QueryRunner:
    """Return the query runner used for ``@repo`` labels."""
    return BazelQueryRunner(settings.query_program, settings.query_timeout_s)


def cache_path(settings: Settings) -> Path:
    return Path(settings.cache_path)


def create_resolver(settings: Settings) -> LabelResolver:
    """Return a resolver backed by the persisted repository cache."""
    try:
        cache = RepositoryCache.load(cache_path(settings))
    except LabelNavError as exc:
        fail(exc)
    return LabelResolver.from_settings(
        settings,
        cache=cache,
        runner=create_query_runner(settings),
    )


def persist_cache(resolver: LabelResolver, settings: Settings, before: dict[str, str]) -> None:
    """Save the repository cache when a command added entries to it."""
    if resolver.cache.snapshot() != before:
        resolver.cache.save(cache_path(settings))


__all__ = [
    "cache_path",
    "create_query_runner",
    "create_resolver",
    "fail",
    "load_cli_settings",
    "persist_cache",
]
