"""Entrypoint configuration."""

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Optional

from sqlcompose.exceptions import ImproperConfigurationError
from sqlcompose.utils.text import CASE_METHODS

if TYPE_CHECKING:
    import logging

    from sqlcompose.protocols import CancellationSignal

CaseMethodName = Literal["snake", "camel", "pascal", "constant", "none"]
DEFAULT_CASE_METHOD: CaseMethodName = "snake"
DEFAULT_ROW_CASE_METHOD: CaseMethodName = "camel"
DEFAULT_DEADLOCK_RETRY_COUNT = 5
DEFAULT_DEADLOCK_RETRY_DELAY = 0.1

__all__ = (
    "DEFAULT_CASE_METHOD",
    "DEFAULT_DEADLOCK_RETRY_COUNT",
    "DEFAULT_DEADLOCK_RETRY_DELAY",
    "DEFAULT_ROW_CASE_METHOD",
    "CaseMethodName",
    "SqlConfig",
)


@dataclass
class SqlConfig:
    """Settings fixed when an entrypoint is built and inherited by every entrypoint derived from it.

    Attributes:
        case_method: Convention mapping keys are converted to when used as column names.
        row_case_method: Convention row keys are converted to when rows are read back.
        deadlock_retry_count: Total attempts ``transaction`` makes when the body deadlocks.
        deadlock_retry_delay: Seconds to wait per attempt number between attempts.
        logger: Root of the ``query``, ``binding``, ``transaction`` and ``error`` log channels.
        signal: Cancellation flag checked before every query.
    """

    case_method: CaseMethodName = field(default=DEFAULT_CASE_METHOD)
    row_case_method: CaseMethodName = field(default=DEFAULT_ROW_CASE_METHOD)
    deadlock_retry_count: int = field(default=DEFAULT_DEADLOCK_RETRY_COUNT)
    deadlock_retry_delay: float = field(default=DEFAULT_DEADLOCK_RETRY_DELAY)
    logger: "Optional[logging.Logger]" = field(default=None, repr=False)
    signal: "Optional[CancellationSignal]" = field(default=None, repr=False)

    def __post_init__(self) -> None:
        for name in ("case_method", "row_case_method"):
            value = getattr(self, name)
            if value not in CASE_METHODS:
                msg = f"Invalid {name} {value!r}, expected one of {', '.join(CASE_METHODS)}"
                raise ImproperConfigurationError(detail=msg)
        if isinstance(self.deadlock_retry_count, bool) or not isinstance(self.deadlock_retry_count, int):
            msg = f"deadlock_retry_count must be an integer, got {self.deadlock_retry_count!r}"
            raise ImproperConfigurationError(detail=msg)
        if self.deadlock_retry_count < 1:
            msg = "deadlock_retry_count must be at least 1"
            raise ImproperConfigurationError(detail=msg)
        if self.deadlock_retry_delay < 0:
            msg = "deadlock_retry_delay must not be negative"
            raise ImproperConfigurationError(detail=msg)

    def replace(self, **kwargs: Any) -> "SqlConfig":
        """Return a copy with the given fields changed.

        Raises:
            ImproperConfigurationError: If a field name is unknown or a value is invalid.
        """
        unknown = set(kwargs) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            msg = f"Unknown configuration option(s): {', '.join(sorted(unknown))}"
            raise ImproperConfigurationError(detail=msg)
        return dataclasses.replace(self, **kwargs)
