"""Tests for report use cases"""
from datetime import date
from unittest.mock import MagicMock

import pytest

from workhub.application.errors import NotFound, ValidationError
from workhub.application.reports import (
    DeleteReportUseCase, SubmitReportUseCase, calculate_statistics, carryover_tasks,
    get_report, list_user_reports,
)
from workhub.domain.report import TaskEntry
from workhub.infrastructure.db.models import Report


def _line():
    line = MagicMock()
    line.multicast.return_value = True
    return line


def _submit(db, settings, user_id, report_date, yesterday=None, today=None, notes=None, line=None):
    return SubmitReportUseCase(db, settings, line=line or _line()).execute(
        user_id=user_id,
        report_date=report_date,
        yesterday_tasks=yesterday or [],
        today_tasks=today or [],
        notes=notes,
    )


class TestSubmitReport:
    def test_creates_report(self, db_session, settings, make_user):
        alice = make_user("Alice")
        report_id = _submit(
            db_session, settings, alice.id, date(2026, 1, 15),
            yesterday=[TaskEntry(task_name="設計", actual_hours=3, completed=True)],
            today=[TaskEntry(task_name="実装", planned_hours=5)],
            notes="  順調  ",
        )

        report = db_session.get(Report, report_id)
        assert report.yesterday_tasks == [{"task_name": "設計", "actual_hours": 3, "completed": True}]
        assert report.today_tasks == [{"task_name": "実装", "planned_hours": 5}]
        assert report.notes == "順調"

    def test_resubmission_replaces_whole_report(self, db_session, settings, make_user):
        alice = make_user("Alice")
        first_id = _submit(
            db_session, settings, alice.id, date(2026, 1, 15),
            yesterday=[TaskEntry(task_name="A", actual_hours=1), TaskEntry(task_name="B", actual_hours=2)],
            notes="first",
        )
        second_id = _submit(
            db_session, settings, alice.id, date(2026, 1, 15),
            today=[TaskEntry(task_name="C", planned_hours=4)],
        )

        assert second_id == first_id
        assert db_session.query(Report).count() == 1
        report = db_session.get(Report, first_id)
        assert report.yesterday_tasks == []
        assert report.today_tasks == [{"task_name": "C", "planned_hours": 4}]
        assert report.notes is None

    def test_invalid_entries_dropped(self, db_session, settings, make_user):
        alice = make_user("Alice")
        report_id = _submit(
            db_session, settings, alice.id, date(2026, 1, 15),
            yesterday=[TaskEntry(task_name="", actual_hours=2), TaskEntry(task_name="A", actual_hours=2)],
            today=[TaskEntry(task_name="B", planned_hours=0)],
        )
        report = db_session.get(Report, report_id)
        assert [t["task_name"] for t in report.yesterday_tasks] == ["A"]
        assert report.today_tasks == []

    def test_nothing_valid_is_rejected_before_write(self, db_session, settings, make_user):
        alice = make_user("Alice")
        with pytest.raises(ValidationError):
            _submit(
                db_session, settings, alice.id, date(2026, 1, 15),
                yesterday=[TaskEntry(task_name=" ", actual_hours=2)],
            )
        assert db_session.query(Report).count() == 0

    def test_member_submission_notifies_linked_admins(self, db_session, settings, make_user):
        make_user("Boss", role="admin", line_user_id="Uadmin1")
        make_user("Boss2", role="admin")
        alice = make_user("Alice", line_user_id="Ualice")
        line = _line()

        _submit(db_session, settings, alice.id, date(2026, 1, 15),
                today=[TaskEntry(task_name="A", planned_hours=1)], line=line)

        line.multicast.assert_called_once()
        ids, message = line.multicast.call_args.args
        assert ids == ["Uadmin1"]
        assert "Aliceさんが 2026-01-15 の日次報告を提出しました" in message
        assert f"https://workhub.example.com/dashboard/{alice.id}" in message

    def test_admin_submission_does_not_notify(self, db_session, settings, make_user):
        boss = make_user("Boss", role="admin", line_user_id="Uadmin1")
        line = _line()

        _submit(db_session, settings, boss.id, date(2026, 1, 15),
                today=[TaskEntry(task_name="A", planned_hours=1)], line=line)

        line.multicast.assert_not_called()

    def test_notification_failure_does_not_fail_submission(self, db_session, settings, make_user):
        make_user("Boss", role="admin", line_user_id="Uadmin1")
        alice = make_user("Alice")
        line = _line()
        line.multicast.return_value = False

        report_id = _submit(db_session, settings, alice.id, date(2026, 1, 15),
                            today=[TaskEntry(task_name="A", planned_hours=1)], line=line)

        assert db_session.get(Report, report_id) is not None

    def test_unknown_account(self, db_session, settings):
        with pytest.raises(NotFound):
            _submit(db_session, settings, "missing", date(2026, 1, 15),
                    today=[TaskEntry(task_name="A", planned_hours=1)])


class TestDeleteReport:
    def test_owner_can_delete(self, db_session, make_user, make_report):
        alice = make_user("Alice")
        report = make_report(alice.id, date(2026, 1, 15), today=[{"task_name": "A", "planned_hours": 1}])

        DeleteReportUseCase(db_session).execute(alice.id, report.id)

        assert db_session.query(Report).count() == 0

    def test_other_user_cannot_delete(self, db_session, make_user, make_report):
        alice = make_user("Alice")
        bob = make_user("Bob")
        report = make_report(alice.id, date(2026, 1, 15), today=[{"task_name": "A", "planned_hours": 1}])

        with pytest.raises(NotFound):
            DeleteReportUseCase(db_session).execute(bob.id, report.id)
        assert db_session.query(Report).count() == 1


class TestReadHelpers:
    def test_carryover_uses_previous_plan(self, db_session, make_user, make_report):
        alice = make_user("Alice")
        make_report(alice.id, date(2026, 1, 14), today=[{"task_name": "実装", "planned_hours": 5}])

        tasks = carryover_tasks(db_session, alice.id, date(2026, 1, 15))
        assert tasks == [TaskEntry(task_name="実装", planned_hours=5)]

    def test_no_carryover_when_report_exists(self, db_session, make_user, make_report):
        alice = make_user("Alice")
        make_report(alice.id, date(2026, 1, 14), today=[{"task_name": "実装", "planned_hours": 5}])
        make_report(alice.id, date(2026, 1, 15), today=[{"task_name": "x", "planned_hours": 1}])

        assert carryover_tasks(db_session, alice.id, date(2026, 1, 15)) == []

    def test_get_report(self, db_session, make_user, make_report):
        alice = make_user("Alice")
        make_report(alice.id, date(2026, 1, 15), yesterday=[{"task_name": "a", "actual_hours": 2}])

        row = get_report(db_session, alice.id, date(2026, 1, 15))
        assert row.yesterday_tasks == [TaskEntry(task_name="a", actual_hours=2)]
        assert get_report(db_session, alice.id, date(2026, 1, 16)) is None

    def test_list_and_statistics(self, db_session, make_user, make_report):
        alice = make_user("Alice")
        make_report(alice.id, date(2026, 1, 10),
                    yesterday=[{"task_name": "a", "actual_hours": 4}],
                    today=[{"task_name": "b", "planned_hours": 6}])
        make_report(alice.id, date(2026, 1, 12),
                    yesterday=[{"task_name": "c", "actual_hours": 2}])
        make_report(alice.id, date(2026, 2, 1),
                    yesterday=[{"task_name": "d", "actual_hours": 8}])

        reports = list_user_reports(db_session, alice.id, date(2026, 1, 1), date(2026, 1, 31))
        assert [r.report_date for r in reports] == [date(2026, 1, 12), date(2026, 1, 10)]

        stats = calculate_statistics(reports)
        assert stats == {
            "total_reports": 2,
            "total_yesterday_hours": 6,
            "total_today_hours": 6,
            "average_yesterday_hours": 3,
            "average_today_hours": 3,
            "total_tasks": 3,
        }

    def test_statistics_empty(self):
        assert calculate_statistics([])["total_reports"] == 0
