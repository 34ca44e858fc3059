"""Structured logging helpers for label navigation.

Module-level loggers get a ``NullHandler`` so the library stays silent unless
an application calls :func:`setup_logging`. :class:`LoggerAdapter` injects the
``operation`` and ``status`` structured fields into every record, and
:class:`JsonFormatter` renders records as one JSON object per line.

Examples
--------
>>> from labelnav.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.debug("Resolving label", extra={"operation": "resolve", "label": "//pkg:x"})
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any, TextIO

__all__ = [
    "JsonFormatter",
    "LoggerAdapter",
    "get_logger",
    "setup_logging",
    "with_fields",
]

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Emits ``ts``, ``level``, ``name`` and ``message`` plus every JSON-friendly
    extra field attached to the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, object] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if (
                key not in _STANDARD_ATTRS
                and key not in data
                and not key.startswith("_")
                and value is not None
                and isinstance(value, (str, int, float, bool, list, dict))
            ):
                data[key] = value
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that injects structured context fields.

    Fields bound on the adapter (see :func:`with_fields`) are merged into the
    ``extra`` mapping of each call without overriding per-call values.
    ``operation`` defaults to ``"unknown"`` and ``status`` is inferred from the
    level when missing.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        for key, value in (self.extra or {}).items():
            extra.setdefault(key, value)
        extra.setdefault("operation", "unknown")
        kwargs["extra"] = extra
        return msg, kwargs

    def log(self, level: int, msg: object, *args: object, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return
        msg, kwargs = self.process(msg, kwargs)
        kwargs["extra"].setdefault("status", _status_for(level))
        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: object, *args: object, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: object, *args: object, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: object, *args: object, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: object, *args: object, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: object, *args: object, exc_info: Any = True, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)


def _status_for(level: int) -> str:
    if level >= logging.ERROR:
        return "error"
    if level >= logging.WARNING:
        return "warning"
    return "success"


def get_logger(name: str) -> LoggerAdapter:
    """Get a logger adapter with structured logging support.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__`` of the calling module).

    Returns
    -------
    LoggerAdapter
        Adapter injecting ``operation``/``status`` fields. A ``NullHandler`` is
        attached when the logger has no handlers yet.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return LoggerAdapter(logger, {})


@contextmanager
def with_fields(logger: LoggerAdapter, **fields: object) -> Iterator[LoggerAdapter]:
    """Yield a child adapter with ``fields`` bound to every record.

    Parameters
    ----------
    logger : LoggerAdapter
        Adapter to extend.
    **fields : object
        Structured fields to bind (``operation="resolve"``, ``label=...``).

    Yields
    ------
    LoggerAdapter
        Adapter sharing the underlying logger with the merged fields.
    """
    merged: dict[str, object] = dict(logger.extra or {})
    merged.update(fields)
    yield LoggerAdapter(logger.logger, merged)


def setup_logging(level: int | str = logging.WARNING, stream: TextIO | None = None) -> None:
    """Configure the root logger with :class:`JsonFormatter`.

    Records go to ``stderr`` by default so that command output written to
    ``stdout`` stays machine-readable.

    Parameters
    ----------
    level : int | str, optional
        Threshold as a number or level name. Defaults to ``WARNING``.
    stream : TextIO | None, optional
        Destination stream. Defaults to ``sys.stderr``.
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.WARNING)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)

