"""
Worked-hours aggregation over reports.

Hours for calendar days [start, end] come from the yesterday lists of
reports dated [start+1, end+1] (see workhub.domain.dates.reporting_window).
All functions accept a SQLAlchemy Session and return plain dicts.
"""
from datetime import date

from sqlalchemy.orm import Session

from workhub.domain.dates import reporting_window
from workhub.domain.report import parse_tasks, total_hours
from workhub.infrastructure.db.models import Profile, Report


class ReportAggregator:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def total_hours(tasks) -> float:
        return total_hours(tasks)

    def monthly_hours(self, start: date, end: date, active_only: bool = True) -> list[dict]:
        """
        Worked hours per account for calendar days [start, end].

        Every account is listed (zero when it has no reports), ordered by name.
        """
        q = self.db.query(Profile.id, Profile.name)
        if active_only:
            q = q.filter(Profile.is_active.is_(True))
        profiles = q.order_by(Profile.name).all()

        hours = self._hours_by_user(start, end)
        return [
            {
                "user_id": user_id,
                "user_name": name,
                "total_hours": hours.get(user_id, 0),
            }
            for user_id, name in profiles
        ]

    def user_monthly_hours(self, user_id: str, start: date, end: date) -> float:
        """Worked hours of one account for calendar days [start, end]."""
        return self._hours_by_user(start, end, user_id=user_id).get(user_id, 0)

    def _hours_by_user(self, start: date, end: date, user_id: str | None = None) -> dict[str, float]:
        query_start, query_end = reporting_window(start, end)
        q = self.db.query(Report.user_id, Report.yesterday_tasks).filter(
            Report.report_date >= query_start,
            Report.report_date <= query_end,
        )
        if user_id is not None:
            q = q.filter(Report.user_id == user_id)

        hours: dict[str, float] = {}
        for uid, tasks in q.all():
            hours[uid] = hours.get(uid, 0) + total_hours(parse_tasks(tasks))
        return hours
