"""
Dashboard API: submission status for a date and per-user history.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from workhub.api.deps import get_db, get_identity, get_settings, require_user_id
from workhub.application.errors import ValidationError
from workhub.application.profiles import ensure_profile, get_profile
from workhub.application.reports import calculate_statistics, list_user_reports
from workhub.config import Settings
from workhub.domain.dates import month_label, month_range, parse_date, period_range, today
from workhub.domain.report import dump_tasks, total_hours
from workhub.infrastructure.identity import IdentityProvider
from workhub.readmodels.report_aggregator import ReportAggregator
from workhub.readmodels.submission_status import SubmissionStatusBuilder, submission_counts

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
def dashboard(
    request: Request,
    date: str | None = None,
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    settings: Settings = Depends(get_settings),
):
    user_id = require_user_id(request)
    try:
        target = parse_date(date) if date else today(settings.tz)
    except ValueError as exc:
        raise ValidationError("日付の形式が不正です") from exc

    me = ensure_profile(db, user_id, identity.get_user_email(user_id) or f"{user_id}@unknown.local")

    summaries = SubmissionStatusBuilder(db).summarize(target)
    start, end = month_range(target)
    aggregator = ReportAggregator(db)

    result = {
        "date": target.isoformat(),
        "profile": me.model_dump(mode="json"),
        "summaries": summaries,
        "stats": submission_counts(summaries),
        "month": {
            "label": month_label(target),
            "start": start.isoformat(),
            "end": end.isoformat(),
            "my_total_hours": aggregator.user_monthly_hours(user_id, start, end),
        },
    }
    if me.role == "admin":
        result["month"]["users"] = aggregator.monthly_hours(start, end)
    return result


@router.get("/users/{user_id}")
def user_detail(
    user_id: str,
    request: Request,
    period: str = "30days",
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    require_user_id(request)
    profile = get_profile(db, user_id)
    try:
        start, end = period_range(period, today(settings.tz))
    except ValueError as exc:
        raise ValidationError("期間の指定が不正です") from exc

    reports = list_user_reports(db, user_id, start, end)
    return {
        "profile": profile.model_dump(mode="json"),
        "period": period,
        "statistics": calculate_statistics(reports),
        "reports": [
            {
                "id": r.id,
                "report_date": r.report_date.isoformat(),
                "yesterday_tasks": dump_tasks(r.yesterday_tasks),
                "today_tasks": dump_tasks(r.today_tasks),
                "yesterday_total_hours": total_hours(r.yesterday_tasks),
                "today_total_hours": total_hours(r.today_tasks),
                "notes": r.notes,
                "submitted_at": r.submitted_at,
            }
            for r in reports
        ],
    }
