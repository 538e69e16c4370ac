"""Logging for sqlcompose.

Every logger lives under the ``sqlcompose`` namespace. Statement execution
uses four channels below the entrypoint logger: ``query`` (rendered text),
``binding`` (bound values), ``transaction`` (transaction control statements)
and ``error`` (failed statements with their literal preview).

Records emitted while a statement runs carry the ``query_id`` of that call,
so the text, values and failure of one execution can be matched up.
"""

from __future__ import annotations

import itertools
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from sqlcompose._serialization import encode_json

if TYPE_CHECKING:
    from collections.abc import Iterator
    from logging import LogRecord
    from typing import TextIO

__all__ = (
    "CHANNELS",
    "ROOT_LOGGER_NAME",
    "JsonLogFormatter",
    "QueryIdFilter",
    "configure_logging",
    "get_channel",
    "get_logger",
    "get_query_id",
    "log_with_context",
    "query_scope",
)

ROOT_LOGGER_NAME = "sqlcompose"
CHANNELS = ("query", "binding", "transaction", "error")

query_id_var: ContextVar[str | None] = ContextVar("sqlcompose_query_id", default=None)
_query_ids = itertools.count(1)


@contextmanager
def query_scope() -> Iterator[str]:
    """Tag every record logged inside the block with a new query id.

    Yields:
        The query id, ``q`` followed by a process wide sequence number.
    """
    query_id = f"q{next(_query_ids)}"
    token = query_id_var.set(query_id)
    try:
        yield query_id
    finally:
        query_id_var.reset(token)


def get_query_id() -> str | None:
    """The id of the statement running in the current context, if any."""
    return query_id_var.get()


class QueryIdFilter(logging.Filter):
    """Copy the current query id onto the record as ``query_id``."""

    def filter(self, record: LogRecord) -> bool:
        record.query_id = get_query_id()  # type: ignore[attr-defined]
        return True


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record, structured fields included."""

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        query_id = getattr(record, "query_id", None) or get_query_id()
        if query_id:
            entry["query_id"] = query_id
        if hasattr(record, "extra_fields"):
            entry.update(record.extra_fields)  # pyright: ignore
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return str(encode_json(entry))


def _with_query_filter(logger: logging.Logger) -> logging.Logger:
    if not any(isinstance(f, QueryIdFilter) for f in logger.filters):
        logger.addFilter(QueryIdFilter())
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger below the ``sqlcompose`` namespace.

    Args:
        name: Logger name. If not provided, returns the root sqlcompose logger.

    Returns:
        The logger, with a :class:`QueryIdFilter` attached when ``name`` is given.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return _with_query_filter(logging.getLogger(name))


def get_channel(root: logging.Logger, channel: str) -> logging.Logger:
    """The ``channel`` child of an entrypoint logger, tagged with query ids.

    Raises:
        ValueError: If ``channel`` is not one of :data:`CHANNELS`.
    """
    if channel not in CHANNELS:
        msg = f"Unknown logging channel {channel!r}, expected one of {', '.join(CHANNELS)}"
        raise ValueError(msg)
    return _with_query_filter(root.getChild(channel))


def configure_logging(level: str = "WARNING", json_format: bool = False, stream: TextIO | None = None) -> None:
    """Send sqlcompose records to ``stream``, standard error by default.

    Replaces the handlers already installed on the ``sqlcompose`` logger and
    stops propagation to the root logger.

    Args:
        level: Level name, case insensitive.
        json_format: Emit one JSON object per record instead of plain text.
        stream: Destination of the records.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.upper())
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    formatter: logging.Formatter
    if json_format:
        formatter = JsonLogFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(QueryIdFilter())
    root_logger.addHandler(handler)
    root_logger.propagate = False


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log a message with structured extra fields.

    Args:
        logger: The logger to use
        level: Log level
        message: Log message
        **extra_fields: Additional fields to include in structured logs
    """
    if not logger.isEnabledFor(level):
        return
    record = logger.makeRecord(logger.name, level, "(unknown file)", 0, message, (), None)
    record.extra_fields = extra_fields  # type: ignore[attr-defined]
    logger.handle(record)
