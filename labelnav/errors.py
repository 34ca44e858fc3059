"""Label navigation exception hierarchy with Problem Details support.

All exceptions inherit from :class:`LabelNavError`, which carries a stable
:class:`ErrorCode`, a structured ``context`` mapping and an RFC 9457 Problem
Details rendering.

The hierarchy is organized by resolution stage:

- **Parsing**: ``MalformedLabelError``
- **External repositories**: ``QueryFailedError``, ``QueryOutputMalformedError``
- **Target search**: ``LabelNotFoundError``
- **Configuration**: ``SettingsError``

Examples
--------
>>> print(LabelNotFoundError("//nonexistent/pkg:x"))
LabelNotFoundError[label-not-found]: Cannot find definition of //nonexistent/pkg:x
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "LabelNavError",
    "LabelNotFoundError",
    "MalformedLabelError",
    "QueryFailedError",
    "QueryOutputMalformedError",
    "SettingsError",
]

BASE_TYPE_URI: Final[str] = "https://labelnav.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes used in Problem Details payloads."""

    MALFORMED_LABEL = "malformed-label"
    QUERY_FAILED = "query-failed"
    QUERY_OUTPUT_MALFORMED = "query-output-malformed"
    LABEL_NOT_FOUND = "label-not-found"
    CONFIGURATION_ERROR = "configuration-error"


class LabelNavError(Exception):
    """Base exception for all label navigation errors.

    Parameters
    ----------
    message : str
        Human-readable error message, shown to the user as-is.
    code : ErrorCode
        Stable error code.
    context : Mapping[str, object] | None, optional
        Structured details (label text, command, ...). Defaults to None.

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    context : dict[str, object]
        Additional context for logging and Problem Details extensions.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = dict(context) if context else {}

    @property
    def type_uri(self) -> str:
        """Return the Problem Details ``type`` URI for this error."""
        return f"{BASE_TYPE_URI}/{self.code.value}"

    def to_problem_details(self, instance: str | None = None) -> dict[str, object]:
        """Convert to an RFC 9457 Problem Details mapping.

        Parameters
        ----------
        instance : str | None, optional
            URI identifying the specific occurrence. Defaults to
            ``"urn:labelnav:error"``.

        Returns
        -------
        dict[str, object]
            Problem Details object with type, title, detail, instance,
            code and the error context as extensions.
        """
        problem: dict[str, object] = {
            "type": self.type_uri,
            "title": self.__class__.__name__,
            "detail": self.message,
            "instance": instance or "urn:labelnav:error",
            "code": self.code.value,
        }
        for key, value in self.context.items():
            problem.setdefault(key, value)
        return problem

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class MalformedLabelError(LabelNavError):
    """Raised when no usable label can be taken from the input.

    Parsing is best-effort, so this is reserved for inputs with nothing to
    resolve at all: an empty token, or a cursor that is not inside a quoted
    string.
    """

    def __init__(self, message: str, token: str = "") -> None:
        super().__init__(message, code=ErrorCode.MALFORMED_LABEL, context={"token": token})
        self.token = token


class QueryFailedError(LabelNavError):
    """Raised when the repository query subprocess does not succeed.

    Parameters
    ----------
    command : Sequence[str]
        Command that was executed.
    output : str
        Combined stdout and stderr, surfaced verbatim.
    returncode : int | None, optional
        Exit status, or None when the process never ran to completion
        (missing executable, timeout).
    """

    def __init__(
        self,
        command: Sequence[str],
        output: str,
        returncode: int | None = None,
    ) -> None:
        rendered = " ".join(command)
        message = f"Command failed: {rendered}"
        if output.strip():
            message = f"{message}\n{output.rstrip()}"
        super().__init__(
            message,
            code=ErrorCode.QUERY_FAILED,
            context={"command": rendered, "returncode": returncode},
        )
        self.command = tuple(command)
        self.output = output
        self.returncode = returncode


class QueryOutputMalformedError(LabelNavError):
    """Raised when a successful query prints no ``path = "..."`` line."""

    def __init__(self, repository: str, output: str) -> None:
        super().__init__(
            f"Cannot find path of external repository @{repository} in query output",
            code=ErrorCode.QUERY_OUTPUT_MALFORMED,
            context={"repository": repository},
        )
        self.repository = repository
        self.output = output


class LabelNotFoundError(LabelNavError):
    """Raised when neither a file nor a build-file definition matches a label."""

    def __init__(self, label: str, searched: str | None = None) -> None:
        context: dict[str, object] = {"label": label}
        if searched is not None:
            context["searched"] = searched
        super().__init__(
            f"Cannot find definition of {label}",
            code=ErrorCode.LABEL_NOT_FOUND,
            context=context,
        )
        self.label = label
        self.searched = searched


class SettingsError(LabelNavError):
    """Raised when environment configuration cannot be parsed."""

    def __init__(self, message: str, variable: str) -> None:
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            context={"variable": variable},
        )
        self.variable = variable
