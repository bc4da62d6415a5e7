"""Tests for SubmissionStatusBuilder"""
from datetime import date

from workhub.readmodels.submission_status import SubmissionStatusBuilder, submission_counts


def test_every_active_account_listed(db_session, make_user, make_report):
    alice = make_user("Alice")
    bob = make_user("Bob")
    make_user("Zed", is_active=False)
    make_report(
        alice.id, date(2026, 1, 15),
        yesterday=[{"task_name": "設計", "actual_hours": 3, "completed": True}],
        today=[{"task_name": "実装", "planned_hours": 5}],
        notes="順調",
    )

    summaries = SubmissionStatusBuilder(db_session).summarize(date(2026, 1, 15))

    assert [s["user_name"] for s in summaries] == ["Alice", "Bob"]
    submitted, missing = summaries
    assert submitted["has_submitted"] is True
    assert submitted["yesterday_total_hours"] == 3
    assert submitted["today_total_hours"] == 5
    assert submitted["notes"] == "順調"
    assert submitted["submitted_at"] is not None

    assert missing["user_id"] == bob.id
    assert missing["has_submitted"] is False
    assert missing["yesterday_tasks"] == []
    assert missing["today_tasks"] == []
    assert missing["submitted_at"] is None


def test_other_dates_ignored(db_session, make_user, make_report):
    alice = make_user("Alice")
    make_report(alice.id, date(2026, 1, 14), yesterday=[{"task_name": "a", "actual_hours": 1}])

    summaries = SubmissionStatusBuilder(db_session).summarize(date(2026, 1, 15))
    assert summaries[0]["has_submitted"] is False


def test_no_accounts(db_session):
    assert SubmissionStatusBuilder(db_session).summarize(date(2026, 1, 15)) == []


def test_counts(db_session, make_user, make_report):
    alice = make_user("Alice")
    make_user("Bob")
    make_user("Carol")
    make_report(alice.id, date(2026, 1, 15), today=[{"task_name": "a", "planned_hours": 1}])

    counts = submission_counts(SubmissionStatusBuilder(db_session).summarize(date(2026, 1, 15)))
    assert counts == {"total_users": 3, "submitted_count": 1, "not_submitted_count": 2}
