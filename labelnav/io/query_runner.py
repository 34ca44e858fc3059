"""External repository lookup through ``bazel query``.

The resolver depends only on the :class:`QueryRunner` protocol, so tests can
substitute a fake that returns canned output instead of invoking a build tool.

Examples
--------
>>> runner = BazelQueryRunner(program="bazel")
>>> runner.command("rules_cc")
['bazel', 'query', '--output=build', '//external:rules_cc']
"""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from labelnav.config.settings import DEFAULT_QUERY_PROGRAM
from labelnav.errors import QueryFailedError, QueryOutputMalformedError
from labelnav.logging import get_logger

LOGGER = get_logger(__name__)

_PATH_LINE = re.compile(r'^\s*path\s*=\s*"(?P<value>[^"]*)"', re.MULTILINE)


@runtime_checkable
class QueryRunner(Protocol):
    """Capability that runs the repository query for one repository name."""

    def run_query(self, name: str, workspace_root: Path) -> str:
        """Return the combined output of the query for ``name``.

        Raises
        ------
        QueryFailedError
            If the query does not complete successfully.
        """
        ...


def _decode_stream(stream: object) -> str:
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    if stream is None:
        return ""
    return str(stream)


@dataclass(slots=True, frozen=True)
class BazelQueryRunner:
    """Run ``<program> query --output=build //external:<name>`` in a subprocess.

    Attributes
    ----------
    program : str
        Build tool executable (``bazel``, ``bazelisk``, ...).
    timeout_s : float | None
        Optional timeout. ``None`` waits for the process to finish.
    """

    program: str = DEFAULT_QUERY_PROGRAM
    timeout_s: float | None = None

    def command(self, name: str) -> list[str]:
        """Return the argument vector used to query repository ``name``."""
        return [self.program, "query", "--output=build", f"//external:{name}"]

    def run_query(self, name: str, workspace_root: Path) -> str:
        """Execute the query from ``workspace_root`` and return its output.

        Parameters
        ----------
        name : str
            External repository name, without ``@``.
        workspace_root : Path
            Directory the build tool runs in.

        Returns
        -------
        str
            Interleaved stdout and stderr of the process.

        Raises
        ------
        QueryFailedError
            If the process exits non-zero, cannot be started, or times out.
        """
        command = self.command(name)
        LOGGER.debug(
            "Executing repository query",
            extra={
                "operation": "locate_repository",
                "command": " ".join(command),
                "cwd": str(workspace_root),
            },
        )
        try:
            completed = subprocess.run(  # noqa: S603 - argument vector, no shell
                command,
                cwd=workspace_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=self.timeout_s,
                check=False,
            )
        except FileNotFoundError as exc:
            LOGGER.exception(
                "Query executable not found",
                extra={"operation": "locate_repository", "command": " ".join(command)},
            )
            raise QueryFailedError(command, str(exc)) from exc
        except subprocess.TimeoutExpired as exc:
            output = _decode_stream(exc.stdout) + _decode_stream(exc.stderr)
            LOGGER.exception(
                "Query timed out",
                extra={
                    "operation": "locate_repository",
                    "command": " ".join(command),
                    "timeout": self.timeout_s,
                },
            )
            raise QueryFailedError(command, output) from exc

        output = completed.stdout or ""
        if completed.returncode != 0:
            LOGGER.error(
                "Query returned a non-zero exit status",
                extra={
                    "operation": "locate_repository",
                    "command": " ".join(command),
                    "returncode": completed.returncode,
                },
            )
            raise QueryFailedError(command, output, completed.returncode)
        return output


def parse_repository_path(repository: str, output: str) -> str:
    """Return the value of the last ``path = "..."`` line in ``output``.

    Parameters
    ----------
    repository : str
        Repository name, used in the error message.
    output : str
        Query output in ``--output=build`` format.

    Returns
    -------
    str
        The declared path, possibly relative to the workspace root.

    Raises
    ------
    QueryOutputMalformedError
        If no path line is present.
    """
    matches = [match.group("value") for match in _PATH_LINE.finditer(output)]
    if not matches:
        raise QueryOutputMalformedError(repository, output)
    return matches[-1]


def locate_repository(name: str, workspace_root: Path, runner: QueryRunner) -> str:
    """Run the query for ``name`` and extract the repository path.

    The returned value is exactly what the query printed and may be relative;
    anchoring it is the caller's job.
    """
    output = runner.run_query(name, workspace_root)
    return parse_repository_path(name, output)


__all__ = [
    "BazelQueryRunner",
    "QueryRunner",
    "locate_repository",
    "parse_repository_path",
]
