"""Test doubles and filesystem helpers for labelnav tests."""

from __future__ import annotations

from pathlib import Path


class FakeQueryRunner:
    """Stand-in query runner that records invocations and returns canned output."""

    def __init__(self, outputs: dict[str, str] | None = None) -> None:
        self.outputs = dict(outputs or {})
        self.calls: list[tuple[str, Path]] = []

    def run_query(self, name: str, workspace_root: Path) -> str:
        self.calls.append((name, workspace_root))
        return self.outputs[name]


def write(path: Path, content: str = "") -> Path:
    """Write ``content`` to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def query_output(name: str, path: str) -> str:
    """Return ``--output=build`` text for a local repository rule."""
    return (
        "Loading: 0 packages loaded\n"
        "# /ws/WORKSPACE:3:17\n"
        "local_repository(\n"
        f'  name = "{name}",\n'
        f'  path = "{path}",\n'
        ")\n"
    )
