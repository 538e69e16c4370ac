"""Transaction and connection lifecycle."""

from sqlcompose.driver._async import DEADLOCK_SQLSTATE, AsyncTransactionMixin, is_deadlock_error, next_savepoint_name

__all__ = ("DEADLOCK_SQLSTATE", "AsyncTransactionMixin", "is_deadlock_error", "next_savepoint_name")
