"""Tests for the morning reminder job"""
from datetime import date
from unittest.mock import MagicMock

import pytest

from workhub.application.errors import ConfigurationError, UpstreamFailure
from workhub.application.reminders import SendRemindersUseCase


@pytest.fixture
def line():
    client = MagicMock()
    client.is_configured = True
    client.multicast.return_value = True
    return client


def test_reminds_linked_active_members_without_report(db_session, settings, line, make_user, make_report):
    alice = make_user("Alice", line_user_id="Ualice")
    make_user("Bob", line_user_id="Ubob")
    make_user("Carol")                                         # not linked
    make_user("Dave", line_user_id="Udave", is_active=False)   # inactive
    make_report(alice.id, date(2026, 1, 15), today=[{"task_name": "a", "planned_hours": 1}])

    result = SendRemindersUseCase(db_session, settings, line=line).execute(date(2026, 1, 15))

    assert result == {"success": True, "notified": 1, "users": ["Bob"]}
    ids, message = line.multicast.call_args.args
    assert ids == ["Ubob"]
    assert "https://workhub.example.com/report" in message


def test_nobody_to_remind(db_session, settings, line, make_user, make_report):
    alice = make_user("Alice", line_user_id="Ualice")
    make_report(alice.id, date(2026, 1, 15), today=[{"task_name": "a", "planned_hours": 1}])

    result = SendRemindersUseCase(db_session, settings, line=line).execute(date(2026, 1, 15))

    assert result["notified"] == 0
    line.multicast.assert_not_called()


def test_send_failure_surfaces(db_session, settings, line, make_user):
    make_user("Bob", line_user_id="Ubob")
    line.multicast.return_value = False

    with pytest.raises(UpstreamFailure):
        SendRemindersUseCase(db_session, settings, line=line).execute(date(2026, 1, 15))


def test_requires_messaging_configuration(db_session, settings, line):
    line.is_configured = False
    with pytest.raises(ConfigurationError):
        SendRemindersUseCase(db_session, settings, line=line).execute(date(2026, 1, 15))
