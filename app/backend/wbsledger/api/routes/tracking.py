"""Time tracking endpoints: weekly view, range aggregate, logging and removal."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session, sessionmaker

from wbsledger.core.auth import RequestUserContext, get_current_user_context
from wbsledger.db.dependencies import get_session_factory
from wbsledger.services.availability import AvailableTask, task_labels
from wbsledger.services.effort_ledger import ReconcileReport
from wbsledger.services.range_aggregator import RangeAggregate, WeekSummary, daily_totals, total_hours
from wbsledger.services.tracking_service import LogHoursResult, TrackingService

router = APIRouter(prefix="/tracking", tags=["tracking"])


class TimeEntryCreatePayload(BaseModel):
    task_id: int
    day: date
    hours: Decimal


def _tracking_service(session_factory: sessionmaker[Session] = Depends(get_session_factory)) -> TrackingService:
    return TrackingService(session_factory)


def _hours(value: Decimal) -> float:
    return float(value)


def _serialize_aggregate(aggregate: RangeAggregate) -> dict[str, dict[str, dict[str, float]]]:
    return {
        day.isoformat(): {
            str(project_id): {str(task_id): _hours(hours) for task_id, hours in tasks.items()}
            for project_id, tasks in projects.items()
        }
        for day, projects in sorted(aggregate.items())
    }


def _serialize_week(summary: WeekSummary) -> dict[str, object]:
    return {
        "user_id": summary.user_id,
        "monday": summary.monday.isoformat(),
        "sunday": summary.sunday.isoformat(),
        "previous_monday": summary.previous_monday.isoformat(),
        "next_monday": summary.next_monday.isoformat(),
        "days": [{"day": item.day.isoformat(), "hours": _hours(item.hours)} for item in summary.days],
        "weekly_total": _hours(summary.weekly_total),
        "contracted_hours": summary.contracted_hours,
        "remaining_hours": _hours(summary.remaining_hours),
        "entries": _serialize_aggregate(summary.aggregate),
    }


def _serialize_available_task(task: AvailableTask) -> dict[str, object]:
    return {
        "task_id": task.task_id,
        "task_title": task.task_title,
        "project_id": task.project_id,
        "project_title": task.project_title,
        "non_working": task.non_working,
        "task_label": task.task_label,
        "project_label": task.project_label,
    }


def _serialize_log_result(result: LogHoursResult) -> dict[str, object]:
    outcome = result.outcome
    return {
        "user_id": outcome.user_id,
        "task_id": outcome.task_id,
        "day": outcome.entry_date.isoformat(),
        "hours": _hours(outcome.hours),
        "counter_delta": outcome.counter_delta,
        "entry_written": outcome.entry_written,
        "counter_adjusted": outcome.counter_adjusted,
        "compensated": result.compensated,
        "message": result.message,
    }


def _serialize_reconcile(report: ReconcileReport) -> dict[str, object]:
    return {
        "user_id": report.user_id,
        "task_id": report.task_id,
        "stored": report.stored,
        "expected": report.expected,
        "drift": report.drift,
        "repaired": report.repaired,
    }


@router.get("/week")
def get_week(
    day: date | None = Query(default=None),
    context: RequestUserContext = Depends(get_current_user_context),
    service: TrackingService = Depends(_tracking_service),
) -> dict[str, object]:
    """Week containing ``day`` (today when omitted) with zero-filled daily totals."""

    summary = service.week(user_id=context.user_id, day=day or date.today())
    return _serialize_week(summary)


@router.get("/range")
def get_range(
    start: date,
    end: date,
    context: RequestUserContext = Depends(get_current_user_context),
    service: TrackingService = Depends(_tracking_service),
) -> dict[str, object]:
    aggregate = service.aggregate(user_id=context.user_id, start_day=start, end_day=end)
    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "entries": _serialize_aggregate(aggregate),
        "daily_totals": {day.isoformat(): _hours(hours) for day, hours in daily_totals(aggregate, start, end).items()},
        "total_hours": _hours(total_hours(aggregate)),
    }


@router.get("/available-tasks")
def get_available_tasks(
    day: date,
    context: RequestUserContext = Depends(get_current_user_context),
    service: TrackingService = Depends(_tracking_service),
) -> dict[str, object]:
    tasks = service.available_tasks(user_id=context.user_id, day=day)
    return {
        "day": day.isoformat(),
        "items": [_serialize_available_task(task) for task in tasks],
        "labels": task_labels(tasks),
    }


@router.post("/entries", status_code=status.HTTP_201_CREATED, response_model=None)
def create_entry(
    payload: TimeEntryCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    service: TrackingService = Depends(_tracking_service),
) -> dict[str, object] | JSONResponse:
    """Log hours; a partially applied write is compensated and reported as 503."""

    result = service.log_hours(
        user_id=context.user_id,
        task_id=payload.task_id,
        day=payload.day,
        hours=payload.hours,
    )
    if result.ok:
        return _serialize_log_result(result)

    error = result.outcome.error
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": result.message,
            "code": error.code if error is not None else "STORE_UNAVAILABLE",
            "compensation": {
                **_serialize_log_result(result),
                "compensation_error": result.compensation_error.code if result.compensation_error else None,
            },
        },
    )


@router.delete("/entries/{task_id}/{day}")
def delete_entry(
    task_id: int,
    day: date,
    context: RequestUserContext = Depends(get_current_user_context),
    service: TrackingService = Depends(_tracking_service),
) -> dict[str, object]:
    removed = service.remove_hours(user_id=context.user_id, task_id=task_id, day=day)
    return {"task_id": task_id, "day": day.isoformat(), "removed": removed}


@router.post("/assignments/{task_id}/reconcile")
def reconcile_assignment(
    task_id: int,
    repair: bool = Query(default=False),
    context: RequestUserContext = Depends(get_current_user_context),
    service: TrackingService = Depends(_tracking_service),
) -> dict[str, object]:
    report = service.reconcile(user_id=context.user_id, task_id=task_id, repair=repair)
    return _serialize_reconcile(report)
