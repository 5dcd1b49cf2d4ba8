"""Day-tracking workflow: logs hours through the ledger and compensates partial writes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from wbsledger.core.config import Settings, get_settings
from wbsledger.core.errors import LedgerError
from wbsledger.core.logging_config import get_logger
from wbsledger.services.availability import AvailabilityResolver, AvailableTask
from wbsledger.services.effort_ledger import EffortLedger, ReconcileReport, RecordOutcome
from wbsledger.services.range_aggregator import RangeAggregate, RangeAggregator, WeekSummary

logger = get_logger("services.tracking")


@dataclass(slots=True)
class LogHoursResult:
    outcome: RecordOutcome
    compensated: bool = False
    compensation_error: LedgerError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    @property
    def message(self) -> str:
        if self.ok:
            return self.outcome.message
        if self.compensation_error is not None:
            return (
                f"{self.outcome.message} Compensation failed ({self.compensation_error.message}); "
                "the entry needs manual reconciliation."
            )
        if self.compensated:
            return f"{self.outcome.message} The partial entry was rolled back."
        return self.outcome.message


class TrackingService:
    """Entry point used by the tracking endpoints; user identity is always explicit."""

    def __init__(self, session_factory: sessionmaker[Session], settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.ledger = EffortLedger(session_factory, self.settings)
        self.aggregator = RangeAggregator(session_factory)
        self.availability = AvailabilityResolver(session_factory)

    def log_hours(self, *, user_id: int, task_id: int, day: date, hours: Decimal | float | str) -> LogHoursResult:
        """Record hours; on a partial write run the compensating removal.

        Validation and duplicate errors propagate unchanged since nothing was
        written in those cases.
        """

        outcome = self.ledger.record_hours(user_id, task_id, day, hours)
        if outcome.ok:
            return LogHoursResult(outcome=outcome)

        try:
            compensated = self.ledger.compensate_record(outcome)
        except LedgerError as exc:
            logger.error(
                "record_compensation_failed",
                extra={
                    "user_id": user_id,
                    "task_id": task_id,
                    "entry_date": day,
                    "error_code": exc.code,
                },
            )
            return LogHoursResult(outcome=outcome, compensated=False, compensation_error=exc)
        return LogHoursResult(outcome=outcome, compensated=compensated)

    def remove_hours(self, *, user_id: int, task_id: int, day: date) -> bool:
        return self.ledger.remove_hours(user_id, task_id, day)

    def reconcile(self, *, user_id: int, task_id: int, repair: bool) -> ReconcileReport:
        return self.ledger.reconcile_assignment(user_id, task_id, repair=repair)

    def week(self, *, user_id: int, day: date) -> WeekSummary:
        return self.aggregator.week_summary(user_id, day)

    def aggregate(self, *, user_id: int, start_day: date, end_day: date) -> RangeAggregate:
        return self.aggregator.aggregate_range(user_id, start_day, end_day)

    def available_tasks(self, *, user_id: int, day: date) -> list[AvailableTask]:
        return self.availability.available_tasks(user_id, day)
