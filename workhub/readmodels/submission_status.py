"""
Per-date submission status for every active account.
"""
from datetime import date

from sqlalchemy.orm import Session

from workhub.domain.report import dump_tasks, total_hours
from workhub.infrastructure.db.models import Profile, Report
from workhub.infrastructure.db.schemas import ProfileRow, ReportRow


class SubmissionStatusBuilder:
    def __init__(self, db: Session):
        self.db = db

    def summarize(self, target_date: date) -> list[dict]:
        """One entry per active account; never omits anyone."""
        profiles = [
            ProfileRow.model_validate(p)
            for p in self.db.query(Profile)
            .filter(Profile.is_active.is_(True))
            .order_by(Profile.name)
            .all()
        ]
        reports = {
            r.user_id: ReportRow.model_validate(r)
            for r in self.db.query(Report).filter(Report.report_date == target_date).all()
        }

        summaries = []
        for profile in profiles:
            report = reports.get(profile.id)
            entry = {
                "user_id": profile.id,
                "user_name": profile.name,
                "user_email": profile.email,
                "role": profile.role,
                "report_date": target_date.isoformat(),
                "has_submitted": report is not None,
                "yesterday_tasks": [],
                "today_tasks": [],
                "yesterday_total_hours": 0,
                "today_total_hours": 0,
                "notes": None,
                "submitted_at": None,
            }
            if report is not None:
                entry.update({
                    "yesterday_tasks": dump_tasks(report.yesterday_tasks),
                    "today_tasks": dump_tasks(report.today_tasks),
                    "yesterday_total_hours": total_hours(report.yesterday_tasks),
                    "today_total_hours": total_hours(report.today_tasks),
                    "notes": report.notes,
                    "submitted_at": report.submitted_at,
                })
            summaries.append(entry)
        return summaries


def submission_counts(summaries: list[dict]) -> dict:
    submitted = sum(1 for s in summaries if s["has_submitted"])
    return {
        "total_users": len(summaries),
        "submitted_count": submitted,
        "not_submitted_count": len(summaries) - submitted,
    }
