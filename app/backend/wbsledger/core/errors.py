"""Typed error taxonomy for the time ledger.

Every error carries a class-level ``code`` so callers and the HTTP layer can
branch on type instead of parsing messages, plus the structured fields that
identify the offending record.

    LedgerError
    +-- NotFoundError            NOT_FOUND
    +-- DuplicateEntryError      DUPLICATE_ENTRY
    +-- ConstraintViolationError CONSTRAINT_VIOLATION
    +-- ConsistencyDriftError    CONSISTENCY_DRIFT
    +-- StoreUnavailableError    STORE_UNAVAILABLE

Store-level failures (SQLAlchemy / DBAPI) are converted into this taxonomy at
the ledger boundary. Nothing here is retried automatically.
"""

from __future__ import annotations

from datetime import date


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    code: str = "LEDGER_ERROR"

    @property
    def message(self) -> str:
        return str(self)


class NotFoundError(LedgerError):
    """Referenced user, task, project or assignment does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class DuplicateEntryError(LedgerError):
    """A time entry already exists for the user/task/day key."""

    code: str = "DUPLICATE_ENTRY"

    def __init__(self, user_id: int, task_id: int, entry_date: date):
        self.user_id = user_id
        self.task_id = task_id
        self.entry_date = entry_date
        super().__init__(
            f"Time entry already exists for user {user_id}, task {task_id} on {entry_date.isoformat()}. "
            "Remove it before recording a corrected value."
        )


class ConstraintViolationError(LedgerError):
    """Foreign-key or business-rule violation."""

    code: str = "CONSTRAINT_VIOLATION"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ConsistencyDriftError(LedgerError):
    """Stored effort counter disagrees with the time entries it caches."""

    code: str = "CONSISTENCY_DRIFT"

    def __init__(self, user_id: int, task_id: int, stored: int, expected: int):
        self.user_id = user_id
        self.task_id = task_id
        self.stored = stored
        self.expected = expected
        super().__init__(
            f"Effort counter drift for user {user_id}, task {task_id}: "
            f"stored {stored}, expected {expected}"
        )


class StoreUnavailableError(LedgerError):
    """Connection or driver failure while talking to the store."""

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, detail: str | None = None):
        self.operation = operation
        self.detail = detail
        message = f"Store unavailable during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
