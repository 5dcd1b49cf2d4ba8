from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session, sessionmaker

from conftest import LedgerWorld
from wbsledger.core.errors import ConstraintViolationError, NotFoundError
from wbsledger.services.effort_ledger import EffortLedger
from wbsledger.services.range_aggregator import (
    RangeAggregator,
    daily_totals,
    day_sequence,
    day_total,
    total_hours,
    week_bounds,
)

MONDAY = date(2024, 3, 4)
WEDNESDAY = date(2024, 3, 6)
SUNDAY = date(2024, 3, 10)


@pytest.fixture()
def ledger(session_factory: sessionmaker[Session]) -> EffortLedger:
    return EffortLedger(session_factory)


@pytest.fixture()
def aggregator(session_factory: sessionmaker[Session]) -> RangeAggregator:
    return RangeAggregator(session_factory)


def test_week_bounds_are_monday_to_sunday() -> None:
    assert week_bounds(WEDNESDAY) == (MONDAY, SUNDAY)
    assert week_bounds(MONDAY) == (MONDAY, SUNDAY)
    assert week_bounds(SUNDAY) == (MONDAY, SUNDAY)
    assert len(day_sequence(MONDAY, SUNDAY)) == 7


def test_pure_helpers_sum_nested_hours() -> None:
    aggregate = {
        MONDAY: {1: {10: Decimal("4.0"), 11: Decimal("1.5")}, 2: {20: Decimal("2.0")}},
        WEDNESDAY: {1: {10: Decimal("2.0")}},
    }

    assert day_total(aggregate[MONDAY]) == Decimal("7.5")
    assert day_total(None) == Decimal("0.0")
    assert total_hours(aggregate) == Decimal("9.5")
    totals = daily_totals(aggregate, MONDAY, SUNDAY)
    assert list(totals) == day_sequence(MONDAY, SUNDAY)
    assert totals[date(2024, 3, 5)] == Decimal("0.0")


def test_nested_structure_groups_by_day_project_task(
    ledger: EffortLedger,
    aggregator: RangeAggregator,
    world: LedgerWorld,
) -> None:
    time_off = world.catalogue_task_ids["Time off"]
    ledger.record_hours(world.researcher_id, world.task_id, MONDAY, "4")
    ledger.record_hours(world.researcher_id, world.other_task_id, MONDAY, "1.5")
    ledger.record_hours(world.researcher_id, time_off, WEDNESDAY, "8")

    aggregate = aggregator.aggregate_range(world.researcher_id, MONDAY, SUNDAY)

    assert aggregate == {
        MONDAY: {
            world.project_id: {
                world.task_id: Decimal("4.0"),
                world.other_task_id: Decimal("1.5"),
            }
        },
        WEDNESDAY: {world.catalogue_project_id: {time_off: Decimal("8.0")}},
    }


def test_week_summary_zero_fills_missing_days(
    ledger: EffortLedger,
    aggregator: RangeAggregator,
    world: LedgerWorld,
) -> None:
    ledger.record_hours(world.researcher_id, world.task_id, MONDAY, 4)
    ledger.record_hours(world.researcher_id, world.task_id, WEDNESDAY, 2)

    summary = aggregator.week_summary(world.researcher_id, date(2024, 3, 7))

    assert summary.monday == MONDAY
    assert summary.sunday == SUNDAY
    assert summary.previous_monday == date(2024, 2, 26)
    assert summary.next_monday == date(2024, 3, 11)
    assert [item.day for item in summary.days] == day_sequence(MONDAY, SUNDAY)
    assert [item.hours for item in summary.days] == [
        Decimal("4.0"),
        Decimal("0.0"),
        Decimal("2.0"),
        Decimal("0.0"),
        Decimal("0.0"),
        Decimal("0.0"),
        Decimal("0.0"),
    ]
    assert summary.weekly_total == Decimal("6.0")
    assert summary.contracted_hours == 40
    assert summary.remaining_hours == Decimal("34.0")


def test_single_day_window_matches_day_total(
    ledger: EffortLedger,
    aggregator: RangeAggregator,
    world: LedgerWorld,
) -> None:
    ledger.record_hours(world.researcher_id, world.task_id, MONDAY, "2.5")
    ledger.record_hours(world.researcher_id, world.other_task_id, MONDAY, "3")
    ledger.record_hours(world.researcher_id, world.task_id, WEDNESDAY, "6")

    single = aggregator.aggregate_range(world.researcher_id, MONDAY, MONDAY)

    assert list(single) == [MONDAY]
    assert aggregator.day_total(world.researcher_id, MONDAY) == Decimal("5.5")
    assert aggregator.day_total(world.researcher_id, date(2024, 3, 5)) == Decimal("0.0")


def test_empty_range_returns_empty_aggregate(aggregator: RangeAggregator, world: LedgerWorld) -> None:
    assert aggregator.aggregate_range(world.researcher_id, MONDAY, SUNDAY) == {}


def test_other_users_entries_are_excluded(
    ledger: EffortLedger,
    aggregator: RangeAggregator,
    world: LedgerWorld,
) -> None:
    time_off = world.catalogue_task_ids["Public holiday"]
    ledger.record_hours(world.supervisor_id, time_off, MONDAY, 8)

    assert aggregator.aggregate_range(world.researcher_id, MONDAY, SUNDAY) == {}
    assert aggregator.day_total(world.supervisor_id, MONDAY) == Decimal("8.0")


def test_reversed_range_is_rejected(aggregator: RangeAggregator, world: LedgerWorld) -> None:
    with pytest.raises(ConstraintViolationError):
        aggregator.aggregate_range(world.researcher_id, SUNDAY, MONDAY)


def test_week_summary_for_unknown_user(aggregator: RangeAggregator, world: LedgerWorld) -> None:
    with pytest.raises(NotFoundError):
        aggregator.week_summary(999, MONDAY)
