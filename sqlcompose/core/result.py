"""Driver result container."""

import re
from dataclasses import dataclass, field
from typing import Any, Final, Optional

__all__ = ("QueryResult", "parse_status")

STATUS_REGEX: "Final[re.Pattern[str]]" = re.compile(r"^([A-Z]+)(?:\s+(\d+))?\s+(\d+)$", re.IGNORECASE)


def parse_status(status: Any) -> int:
    """Extract the row count from a PostgreSQL command tag.

    Command tags look like ``INSERT 0 1``, ``UPDATE 3`` or ``DELETE 2``.

    Returns:
        Number of affected rows, or 0 if the tag carries none.
    """
    if not status or not isinstance(status, str):
        return 0
    match = STATUS_REGEX.match(status.strip())
    if match is None:
        return 0
    return int(match.group(3))


@dataclass
class QueryResult:
    """Rows and command status returned by a client.

    ``rows`` is ``None`` when the client ran several statements in one call
    and has no single row set to return.
    """

    rows: "Optional[list[dict[str, Any]]]" = field(default_factory=list)
    status: "Optional[str]" = None
    statement_count: int = 1

    @property
    def rows_affected(self) -> int:
        if self.status is None:
            return len(self.rows or ())
        return parse_status(self.status)

    @property
    def is_multi_statement(self) -> bool:
        return self.rows is None
