"""Effort ledger: paired writes over time entries and consumed-effort counters.

A "log hours" operation touches two tables: it inserts one ``time_entries``
row and bumps ``task_assignments.effort_consumed``. The two statements are
committed independently, so the pair is eventually consistent, not atomic:

    clean --insert--> entry-only --counter--> clean
                          |
                          +--counter fails--> entry-only (reported in RecordOutcome)

``compensate_record`` is the only transition that brings a key back to
``clean`` after a partial failure, and ``reconcile_assignment`` repairs drift
left behind by a crash between the two commits.

Every counter change goes through ``_apply_counter``; the increment is a single
``SET effort_consumed = effort_consumed + :delta`` statement, so concurrent
records on different days of one assignment cannot lose updates.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from wbsledger.core.config import Settings, get_settings
from wbsledger.core.errors import (
    ConsistencyDriftError,
    ConstraintViolationError,
    DuplicateEntryError,
    LedgerError,
    NotFoundError,
    StoreUnavailableError,
)
from wbsledger.core.logging_config import get_logger
from wbsledger.models.entities import TimeEntry
from wbsledger.repositories.ledger_repository import LedgerRepository
from wbsledger.repositories.planning_repository import PlanningRepository

logger = get_logger("services.effort_ledger")

HOURS_QUANTUM = Decimal("0.1")


class CounterMode(str, enum.Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    REPLACE = "replace"


def counter_delta(hours: Decimal) -> int:
    """Integer amount a time entry contributes to ``effort_consumed``.

    Fractional hours are truncated: the counter column is an integer while
    entries keep one decimal place.
    """

    return int(hours)


@dataclass(slots=True, frozen=True)
class LedgerEntry:
    user_id: int
    task_id: int
    entry_date: date
    hours: Decimal


@dataclass(slots=True)
class RecordOutcome:
    """Result of the two writes issued by ``record_hours``, reported separately."""

    user_id: int
    task_id: int
    entry_date: date
    hours: Decimal
    counter_delta: int
    counter_required: bool
    entry_written: bool = False
    counter_adjusted: bool = False
    error: LedgerError | None = None

    @property
    def ok(self) -> bool:
        return self.entry_written and (self.counter_adjusted or not self.counter_required)

    @property
    def partial(self) -> bool:
        return self.entry_written and not self.ok

    @property
    def entry(self) -> LedgerEntry | None:
        if not self.entry_written:
            return None
        return LedgerEntry(
            user_id=self.user_id,
            task_id=self.task_id,
            entry_date=self.entry_date,
            hours=self.hours,
        )

    @property
    def message(self) -> str:
        if self.ok:
            return f"Recorded {self.hours} h on task {self.task_id} for {self.entry_date.isoformat()}."
        if self.partial:
            reason = self.error.message if self.error is not None else "unknown error"
            return f"Time entry was written but the effort counter was not updated: {reason}"
        return "Nothing was recorded."


@dataclass(slots=True, frozen=True)
class ReconcileReport:
    user_id: int
    task_id: int
    stored: int
    expected: int
    repaired: bool

    @property
    def drift(self) -> int:
        return self.stored - self.expected


class EffortLedger:
    """Owner of ``time_entries`` and ``task_assignments.effort_consumed``.

    Each public operation opens its own session and closes it on every exit path.
    """

    def __init__(self, session_factory: sessionmaker[Session], settings: Settings | None = None) -> None:
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        except LedgerError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("store_failure", extra={"operation": operation, "error": type(exc).__name__})
            raise StoreUnavailableError(operation, type(exc).__name__) from exc
        finally:
            session.close()

    # ---------- Validation ----------
    def normalize_hours(self, hours: Decimal | float | int | str) -> Decimal:
        try:
            value = Decimal(str(hours))
        except (InvalidOperation, ValueError) as exc:
            raise ConstraintViolationError(f"hours is not a number: {hours!r}") from exc
        if not value.is_finite() or value <= 0:
            raise ConstraintViolationError("hours must be greater than zero.")
        if value > self.settings.max_hours_per_entry:
            raise ConstraintViolationError(
                f"hours must not exceed {self.settings.max_hours_per_entry} per day."
            )
        if value != value.quantize(HOURS_QUANTUM):
            raise ConstraintViolationError("hours must have at most one decimal place.")
        return value.quantize(HOURS_QUANTUM)

    def _is_non_working_task(self, session: Session, task_id: int) -> bool:
        project = PlanningRepository(session).get_task_project(task_id)
        return project is not None and project.non_working

    def _check_record_preconditions(self, session: Session, *, user_id: int, task_id: int, day: date) -> bool:
        """Validate a record request; returns whether the counter must be adjusted."""

        planning = PlanningRepository(session)
        if planning.get_user(user_id) is None:
            raise NotFoundError("User", user_id)
        if planning.get_task(task_id) is None:
            raise NotFoundError("Task", task_id)

        counter_required = not self._is_non_working_task(session, task_id)
        if counter_required and planning.get_assignment(task_id, user_id) is None:
            raise ConstraintViolationError(f"User {user_id} is not assigned to task {task_id}.")

        if LedgerRepository(session).get_entry(user_id, task_id, day) is not None:
            raise DuplicateEntryError(user_id, task_id, day)
        return counter_required

    # ---------- Counter choke point ----------
    def _apply_counter(
        self,
        session: Session,
        *,
        user_id: int,
        task_id: int,
        delta: int,
        mode: CounterMode,
    ) -> int | None:
        """Apply and commit one counter change; returns the new value when it can be read back."""

        repo = LedgerRepository(session)
        if mode is CounterMode.REPLACE:
            if delta < 0:
                raise ConstraintViolationError("effort_consumed cannot be replaced with a negative value.")
            rows = repo.set_consumed(task_id, user_id, delta)
        else:
            signed = delta if mode is CounterMode.ADD else -delta
            rows = repo.increment_consumed(task_id, user_id, signed)

        if rows == 0:
            session.rollback()
            raise NotFoundError("Task assignment", f"task={task_id}, user={user_id}")
        session.commit()

        # The update is durable from here on; a failed read-back only affects logging.
        log_extra = {
            "user_id": user_id,
            "task_id": task_id,
            "mode": mode.value,
            "delta": delta,
        }
        try:
            value = repo.get_consumed(task_id, user_id)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning(
                "effort_counter_readback_failed",
                extra={**log_extra, "error": type(exc).__name__},
            )
            return None

        log_extra["effort_consumed"] = value
        if value is not None and value < 0:
            logger.warning("effort_counter_negative", extra=log_extra)
        else:
            logger.info("effort_counter_adjusted", extra=log_extra)
        return value

    def adjust_consumed(self, user_id: int, task_id: int, delta: int, mode: CounterMode | str) -> bool:
        """Apply ``delta`` to the consumed-effort counter of one assignment."""

        mode = CounterMode(mode)
        with self._session_scope("adjust_consumed") as session:
            self._apply_counter(session, user_id=user_id, task_id=task_id, delta=int(delta), mode=mode)
        return True

    # ---------- Record / remove ----------
    def record_hours(
        self,
        user_id: int,
        task_id: int,
        day: date,
        hours: Decimal | float | int | str,
    ) -> RecordOutcome:
        """Insert a time entry, then add its truncated hours to the assignment counter.

        Validation failures and a failed insert raise before anything is
        written. A failed counter update is returned in the outcome instead of
        raised, leaving the caller to decide on compensation.
        """

        value = self.normalize_hours(hours)
        delta = counter_delta(value)

        with self._session_scope("record_hours") as session:
            counter_required = self._check_record_preconditions(
                session, user_id=user_id, task_id=task_id, day=day
            )
            repo = LedgerRepository(session)
            try:
                repo.add_entry(TimeEntry(user_id=user_id, task_id=task_id, entry_date=day, hours=value))
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if repo.get_entry(user_id, task_id, day) is not None:
                    raise DuplicateEntryError(user_id, task_id, day) from exc
                raise ConstraintViolationError(
                    f"Time entry for user {user_id}, task {task_id} violates a store constraint."
                ) from exc

            outcome = RecordOutcome(
                user_id=user_id,
                task_id=task_id,
                entry_date=day,
                hours=value,
                counter_delta=delta,
                counter_required=counter_required,
                entry_written=True,
            )
            logger.info(
                "time_entry_recorded",
                extra={
                    "user_id": user_id,
                    "task_id": task_id,
                    "entry_date": day,
                    "hours": value,
                },
            )
            if not counter_required:
                return outcome

            try:
                self._apply_counter(
                    session,
                    user_id=user_id,
                    task_id=task_id,
                    delta=delta,
                    mode=CounterMode.ADD,
                )
            except LedgerError as exc:
                outcome.error = exc
            except SQLAlchemyError as exc:
                session.rollback()
                outcome.error = StoreUnavailableError("adjust_consumed", type(exc).__name__)
            else:
                outcome.counter_adjusted = True

        if outcome.error is not None:
            logger.warning(
                "effort_counter_update_failed",
                extra={
                    "user_id": user_id,
                    "task_id": task_id,
                    "entry_date": day,
                    "error_code": outcome.error.code,
                },
            )
        return outcome

    def remove_hours(self, user_id: int, task_id: int, day: date, *, reverse_counter: bool = True) -> bool:
        """Reverse the counter by the stored entry's hours, then delete the entry.

        Returns ``False`` when no entry exists (the counter is left alone). If
        the counter update fails the row is kept and the error propagates.
        """

        with self._session_scope("remove_hours") as session:
            repo = LedgerRepository(session)
            entry = repo.get_entry(user_id, task_id, day)
            if entry is None:
                logger.info(
                    "time_entry_remove_noop",
                    extra={"user_id": user_id, "task_id": task_id, "entry_date": day},
                )
                return False

            hours = entry.hours
            if reverse_counter and not self._is_non_working_task(session, task_id):
                self._apply_counter(
                    session,
                    user_id=user_id,
                    task_id=task_id,
                    delta=counter_delta(hours),
                    mode=CounterMode.SUBTRACT,
                )

            deleted = repo.delete_entry(user_id, task_id, day)
            session.commit()

        logger.info(
            "time_entry_removed",
            extra={
                "user_id": user_id,
                "task_id": task_id,
                "entry_date": day,
                "hours": hours,
                "counter_reversed": reverse_counter,
            },
        )
        return deleted > 0

    def compensate_record(self, outcome: RecordOutcome) -> bool:
        """Undo whatever part of ``outcome`` reached the store.

        The counter is only reversed when the outcome says it was adjusted, so
        it returns to its prior value. Running this again is a no-op.
        """

        if not outcome.entry_written:
            return False
        removed = self.remove_hours(
            outcome.user_id,
            outcome.task_id,
            outcome.entry_date,
            reverse_counter=outcome.counter_adjusted,
        )
        logger.info(
            "record_compensated",
            extra={
                "user_id": outcome.user_id,
                "task_id": outcome.task_id,
                "entry_date": outcome.entry_date,
                "entry_removed": removed,
                "counter_reversed": outcome.counter_adjusted and removed,
            },
        )
        return removed

    # ---------- Reads ----------
    def get_entry(self, user_id: int, task_id: int, day: date) -> LedgerEntry | None:
        with self._session_scope("get_entry") as session:
            entry = LedgerRepository(session).get_entry(user_id, task_id, day)
            if entry is None:
                return None
            return LedgerEntry(
                user_id=entry.user_id,
                task_id=entry.task_id,
                entry_date=entry.entry_date,
                hours=entry.hours,
            )

    def list_entries(self, user_id: int, start_day: date, end_day: date) -> list[LedgerEntry]:
        with self._session_scope("list_entries") as session:
            return [
                LedgerEntry(
                    user_id=entry.user_id,
                    task_id=entry.task_id,
                    entry_date=entry.entry_date,
                    hours=entry.hours,
                )
                for entry in LedgerRepository(session).list_entries(
                    user_id, from_date=start_day, to_date=end_day
                )
            ]

    def get_consumed(self, user_id: int, task_id: int) -> int:
        with self._session_scope("get_consumed") as session:
            value = LedgerRepository(session).get_consumed(task_id, user_id)
            if value is None:
                raise NotFoundError("Task assignment", f"task={task_id}, user={user_id}")
            return value

    # ---------- Read-repair ----------
    def reconcile_assignment(self, user_id: int, task_id: int, *, repair: bool = False) -> ReconcileReport:
        """Compare the cached counter with the entries it summarizes.

        Raises ``ConsistencyDriftError`` on mismatch unless ``repair`` is set,
        in which case the counter is replaced with the recomputed value.
        """

        with self._session_scope("reconcile_assignment") as session:
            repo = LedgerRepository(session)
            stored = repo.get_consumed(task_id, user_id)
            if stored is None:
                raise NotFoundError("Task assignment", f"task={task_id}, user={user_id}")
            expected = sum(
                (counter_delta(hours) for hours in repo.list_entry_hours_for_assignment(user_id, task_id)),
                0,
            )
            if stored == expected:
                return ReconcileReport(
                    user_id=user_id, task_id=task_id, stored=stored, expected=expected, repaired=False
                )

            logger.warning(
                "effort_counter_drift_detected",
                extra={
                    "user_id": user_id,
                    "task_id": task_id,
                    "stored": stored,
                    "expected": expected,
                    "repair": repair,
                },
            )
            if not repair:
                raise ConsistencyDriftError(user_id, task_id, stored, expected)

            self._apply_counter(
                session,
                user_id=user_id,
                task_id=task_id,
                delta=expected,
                mode=CounterMode.REPLACE,
            )
            return ReconcileReport(user_id=user_id, task_id=task_id, stored=stored, expected=expected, repaired=True)
