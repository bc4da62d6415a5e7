"""
Report use cases: submit (upsert by account and date), delete, read helpers.
"""
import logging
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from workhub.application.errors import NotFound, ValidationError
from workhub.application.line_messaging import LineMessagingClient, admin_notification_message
from workhub.config import Settings
from workhub.domain.dates import previous_day
from workhub.domain.report import (
    TaskEntry, clean_today_tasks, clean_yesterday_tasks, dump_tasks, total_hours,
)
from workhub.infrastructure.db.models import Profile, Report
from workhub.infrastructure.db.schemas import ReportRow

logger = logging.getLogger(__name__)


class SubmitReportUseCase:
    """
    Create or replace the report of one account for one date.

    The whole report is replaced on resubmission (last write wins).
    Non-admin submissions notify every LINE-linked admin; a failed
    notification never fails the submission.
    """

    def __init__(self, db: Session, settings: Settings, line: LineMessagingClient | None = None):
        self.db = db
        self.settings = settings
        self.line = line or LineMessagingClient(settings)

    def execute(
        self,
        user_id: str,
        report_date: date,
        yesterday_tasks: list[TaskEntry],
        today_tasks: list[TaskEntry],
        notes: str | None = None,
    ) -> str:
        yesterday = clean_yesterday_tasks(yesterday_tasks)
        today = clean_today_tasks(today_tasks)
        if not yesterday and not today:
            raise ValidationError("昨日の実績または今日の予定を最低1つ入力してください")

        profile = self.db.get(Profile, user_id)
        if profile is None:
            raise NotFound("ユーザーが見つかりません")

        now = datetime.now(timezone.utc)
        report = self.db.query(Report).filter(
            Report.user_id == user_id,
            Report.report_date == report_date,
        ).first()
        if report is None:
            report = Report(user_id=user_id, report_date=report_date)
            self.db.add(report)

        report.yesterday_tasks = dump_tasks(yesterday)
        report.today_tasks = dump_tasks(today)
        report.notes = (notes or "").strip() or None
        report.submitted_at = now
        self.db.commit()
        logger.info("Report %s submitted by %s for %s", report.id, user_id, report_date)

        if not profile.is_admin:
            self._notify_admins(profile, report_date)
        return report.id

    def _notify_admins(self, submitter: Profile, report_date: date) -> None:
        admin_ids = [
            line_id
            for (line_id,) in self.db.query(Profile.line_user_id).filter(
                Profile.role == "admin",
                Profile.line_user_id.isnot(None),
            ).all()
        ]
        if not admin_ids:
            return
        message = admin_notification_message(
            self.settings.base_url, submitter.name, report_date.isoformat(), submitter.id,
        )
        if not self.line.multicast(admin_ids, message):
            logger.warning("Failed to notify admins about report of %s", submitter.id)


class DeleteReportUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: str, report_id: str) -> None:
        deleted = self.db.query(Report).filter(
            Report.id == report_id,
            Report.user_id == user_id,
        ).delete()
        if not deleted:
            raise NotFound("報告が見つかりません")
        self.db.commit()


def get_report(db: Session, user_id: str, report_date: date) -> ReportRow | None:
    report = db.query(Report).filter(
        Report.user_id == user_id,
        Report.report_date == report_date,
    ).first()
    return ReportRow.model_validate(report) if report else None


def carryover_tasks(db: Session, user_id: str, report_date: date) -> list[TaskEntry]:
    """
    Prefill for a new report: the previous day's plan becomes the
    starting point of today's actuals. Empty if a report already exists.
    """
    if get_report(db, user_id, report_date) is not None:
        return []
    previous = get_report(db, user_id, previous_day(report_date))
    return previous.today_tasks if previous else []


def list_user_reports(db: Session, user_id: str, start: date, end: date) -> list[ReportRow]:
    """Reports dated [start, end], newest first."""
    rows = (
        db.query(Report)
        .filter(
            Report.user_id == user_id,
            Report.report_date >= start,
            Report.report_date <= end,
        )
        .order_by(Report.report_date.desc())
        .all()
    )
    return [ReportRow.model_validate(r) for r in rows]


def calculate_statistics(reports: list[ReportRow]) -> dict:
    total_reports = len(reports)
    if total_reports == 0:
        return {
            "total_reports": 0,
            "total_yesterday_hours": 0,
            "total_today_hours": 0,
            "average_yesterday_hours": 0,
            "average_today_hours": 0,
            "total_tasks": 0,
        }

    yesterday_hours = sum(total_hours(r.yesterday_tasks) for r in reports)
    today_hours = sum(total_hours(r.today_tasks) for r in reports)
    return {
        "total_reports": total_reports,
        "total_yesterday_hours": yesterday_hours,
        "total_today_hours": today_hours,
        "average_yesterday_hours": yesterday_hours / total_reports,
        "average_today_hours": today_hours / total_reports,
        "total_tasks": sum(len(r.yesterday_tasks) + len(r.today_tasks) for r in reports),
    }
