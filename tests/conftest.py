from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Union

import pytest

from sqlcompose import QueryResult
from sqlcompose.utils.logging import ROOT_LOGGER_NAME

here = Path(__file__).parent
root_path = here.parent

Response = Union[QueryResult, BaseException, None]
LogEntry = Union[str, "tuple[str, list[Any]]"]


class RecordingClient:
    """In-memory client recording every query and connection event into ``log``.

    ``handler(text, values)`` decides the result of a query; it may return a
    :class:`QueryResult`, return an exception to raise, or return ``None`` for
    an empty row set.
    """

    supports_dedicated_connection = False

    def __init__(
        self,
        handler: Callable[[str, list[Any]], Response] | None = None,
        log: list[LogEntry] | None = None,
    ) -> None:
        self.handler = handler
        self.log: list[LogEntry] = log if log is not None else []

    @property
    def queries(self) -> list[tuple[str, list[Any]]]:
        return [entry for entry in self.log if isinstance(entry, tuple)]

    @property
    def texts(self) -> list[str]:
        return [text for text, _ in self.queries]

    async def query(self, text: str, values: Sequence[Any]) -> QueryResult:
        self.log.append((text, list(values)))
        response = self.handler(text, list(values)) if self.handler is not None else None
        if isinstance(response, BaseException):
            raise response
        return response if response is not None else QueryResult(rows=[], status="SELECT 0")

    async def close(self) -> None:
        self.log.append("close")


class RecordingConnection(RecordingClient):
    async def release(self) -> None:
        self.log.append("release")


class RecordingPool(RecordingClient):
    supports_dedicated_connection = True

    async def acquire(self) -> RecordingConnection:
        self.log.append("acquire")
        return RecordingConnection(self.handler, self.log)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def pool() -> RecordingPool:
    return RecordingPool()


@pytest.fixture(autouse=True)
def _reset_sqlcompose_logger() -> Any:
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def client_factory() -> type[RecordingClient]:
    return RecordingClient


@pytest.fixture
def pool_factory() -> type[RecordingPool]:
    return RecordingPool
