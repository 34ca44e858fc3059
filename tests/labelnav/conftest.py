"""Shared pytest fixtures for labelnav tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from labelnav.io.repository_cache import RepositoryCache
from labelnav.resolver import LabelResolver
from tests.labelnav._helpers import FakeQueryRunner, write


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a workspace root with a WORKSPACE marker.

    Returns
    -------
    Path
        Workspace root directory.
    """
    root = tmp_path / "ws"
    write(root / "WORKSPACE", 'workspace(name = "ws")\n')
    return root


@pytest.fixture
def fake_runner() -> FakeQueryRunner:
    return FakeQueryRunner()


@pytest.fixture
def resolver(fake_runner: FakeQueryRunner) -> LabelResolver:
    """Resolver with a fresh cache and the fake query runner."""
    return LabelResolver(runner=fake_runner, cache=RepositoryCache())
