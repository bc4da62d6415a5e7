"""
Daily report API endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from workhub.api.deps import get_db, get_settings, require_user_id
from workhub.application.errors import ValidationError
from workhub.application.reports import (
    DeleteReportUseCase, SubmitReportUseCase, carryover_tasks, get_report,
)
from workhub.config import Settings
from workhub.domain.dates import parse_date, today
from workhub.domain.report import TaskEntry, dump_tasks, total_hours


router = APIRouter(prefix="/api/reports", tags=["reports"])


# === Request models ===

class SubmitReportRequest(BaseModel):
    report_date: date
    yesterday_tasks: list[TaskEntry] = []
    today_tasks: list[TaskEntry] = []
    notes: str | None = None

    @field_validator("report_date", mode="before")
    @classmethod
    def _date(cls, v):
        return parse_date(v) if isinstance(v, str) else v


# === Endpoints ===

@router.post("")
def submit_report(
    req: SubmitReportRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user_id = require_user_id(request)
    report_id = SubmitReportUseCase(db, settings).execute(
        user_id=user_id,
        report_date=req.report_date,
        yesterday_tasks=req.yesterday_tasks,
        today_tasks=req.today_tasks,
        notes=req.notes,
    )
    return {"success": True, "reportId": report_id}


@router.get("")
def my_report(
    request: Request,
    date: str | None = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Own report for a date (today by default) plus carry-over prefill."""
    user_id = require_user_id(request)
    try:
        target = parse_date(date) if date else today(settings.tz)
    except ValueError as exc:
        raise ValidationError("日付の形式が不正です") from exc

    report = get_report(db, user_id, target)
    return {
        "date": target.isoformat(),
        "report": None if report is None else {
            "id": report.id,
            "yesterday_tasks": dump_tasks(report.yesterday_tasks),
            "today_tasks": dump_tasks(report.today_tasks),
            "yesterday_total_hours": total_hours(report.yesterday_tasks),
            "today_total_hours": total_hours(report.today_tasks),
            "notes": report.notes,
            "submitted_at": report.submitted_at,
        },
        "carryover_tasks": dump_tasks(carryover_tasks(db, user_id, target)),
    }


@router.delete("/{report_id}")
def delete_report(report_id: str, request: Request, db: Session = Depends(get_db)):
    user_id = require_user_id(request)
    DeleteReportUseCase(db).execute(user_id, report_id)
    return {"success": True}
