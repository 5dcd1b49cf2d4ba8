"""Nested day -> project -> task -> hours aggregation of time entries."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from wbsledger.core.errors import ConstraintViolationError, NotFoundError, StoreUnavailableError
from wbsledger.repositories.ledger_repository import LedgerRepository
from wbsledger.repositories.planning_repository import PlanningRepository

ZERO_HOURS = Decimal("0.0")

DayAggregate = dict[int, dict[int, Decimal]]
RangeAggregate = dict[date, DayAggregate]


def day_sequence(start_day: date, end_day: date) -> list[date]:
    days: list[date] = []
    current = start_day
    while current <= end_day:
        days.append(current)
        current += timedelta(days=1)
    return days


def week_bounds(day: date) -> tuple[date, date]:
    """Monday and Sunday of the ISO week containing ``day``."""

    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def day_total(day_aggregate: Mapping[int, Mapping[int, Decimal]] | None) -> Decimal:
    if not day_aggregate:
        return ZERO_HOURS
    return sum(
        (hours for task_hours in day_aggregate.values() for hours in task_hours.values()),
        ZERO_HOURS,
    )


def daily_totals(aggregate: Mapping[date, DayAggregate], start_day: date, end_day: date) -> dict[date, Decimal]:
    """Per-day totals for every day in ``[start_day, end_day]``, zero-filled."""

    return {day: day_total(aggregate.get(day)) for day in day_sequence(start_day, end_day)}


def total_hours(aggregate: Mapping[date, DayAggregate]) -> Decimal:
    return sum((day_total(day_aggregate) for day_aggregate in aggregate.values()), ZERO_HOURS)


@dataclass(slots=True, frozen=True)
class DayTotal:
    day: date
    hours: Decimal


@dataclass(slots=True, frozen=True)
class WeekSummary:
    user_id: int
    monday: date
    sunday: date
    previous_monday: date
    next_monday: date
    days: tuple[DayTotal, ...]
    weekly_total: Decimal
    contracted_hours: int
    aggregate: RangeAggregate

    @property
    def remaining_hours(self) -> Decimal:
        return Decimal(self.contracted_hours) - self.weekly_total


class RangeAggregator:
    """Read path over the ledger for weekly and daily views."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(operation, type(exc).__name__) from exc
        finally:
            session.close()

    @staticmethod
    def fold(rows: list[tuple[date, int, int, Decimal]]) -> RangeAggregate:
        aggregate: RangeAggregate = {}
        for entry_date, project_id, task_id, hours in rows:
            tasks = aggregate.setdefault(entry_date, {}).setdefault(project_id, {})
            tasks[task_id] = tasks.get(task_id, ZERO_HOURS) + Decimal(hours)
        return aggregate

    def aggregate_range(self, user_id: int, start_day: date, end_day: date) -> RangeAggregate:
        """Entries of ``user_id`` in ``[start_day, end_day]`` as day -> project -> task -> hours.

        Days without entries are absent; use ``daily_totals`` to iterate the
        range with zero defaults.
        """

        if end_day < start_day:
            raise ConstraintViolationError("end day must be on or after start day.")
        with self._session_scope("aggregate_range") as session:
            rows = LedgerRepository(session).list_entries_with_project(
                user_id, from_date=start_day, to_date=end_day
            )
        return self.fold(rows)

    def day_total(self, user_id: int, day: date) -> Decimal:
        return total_hours(self.aggregate_range(user_id, day, day))

    def week_summary(self, user_id: int, day: date) -> WeekSummary:
        monday, sunday = week_bounds(day)
        with self._session_scope("week_summary") as session:
            user = PlanningRepository(session).get_user(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            contracted_hours = user.working_hours_weekly

        aggregate = self.aggregate_range(user_id, monday, sunday)
        totals = daily_totals(aggregate, monday, sunday)
        return WeekSummary(
            user_id=user_id,
            monday=monday,
            sunday=sunday,
            previous_monday=monday - timedelta(days=7),
            next_monday=monday + timedelta(days=7),
            days=tuple(DayTotal(day=entry_day, hours=hours) for entry_day, hours in totals.items()),
            weekly_total=sum(totals.values(), ZERO_HOURS),
            contracted_hours=contracted_hours,
            aggregate=aggregate,
        )
