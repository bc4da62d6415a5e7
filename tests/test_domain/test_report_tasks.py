"""Tests for report task entries and hour arithmetic"""
from workhub.domain.report import (
    TaskEntry, clean_today_tasks, clean_yesterday_tasks, dump_tasks,
    is_valid_task, parse_tasks, total_hours,
)


class TestTotalHours:
    def test_sums_actual_hours(self):
        tasks = [{"task_name": "A", "actual_hours": 3}, {"task_name": "B", "actual_hours": 2.5}]
        assert total_hours(tasks) == 5.5

    def test_falls_back_to_planned_hours(self):
        tasks = [{"task_name": "A", "actual_hours": 3}, {"task_name": "B", "planned_hours": 2}]
        assert total_hours(tasks) == 5

    def test_missing_hours_count_as_zero(self):
        assert total_hours([{"task_name": "A"}]) == 0

    def test_zero_actual_is_not_replaced_by_planned(self):
        assert total_hours([{"task_name": "A", "actual_hours": 0, "planned_hours": 4}]) == 0

    def test_empty_and_none(self):
        assert total_hours([]) == 0
        assert total_hours(None) == 0

    def test_accepts_task_entries(self):
        assert total_hours([TaskEntry(task_name="A", planned_hours=1.5)]) == 1.5


class TestParseTasks:
    def test_ignores_unknown_keys(self):
        tasks = parse_tasks([{"task_name": "A", "actual_hours": 1, "id": "tmp-1"}])
        assert tasks == [TaskEntry(task_name="A", actual_hours=1)]

    def test_none_is_empty(self):
        assert parse_tasks(None) == []

    def test_dump_omits_unset_fields(self):
        assert dump_tasks([TaskEntry(task_name="A", planned_hours=2)]) == [
            {"task_name": "A", "planned_hours": 2},
        ]


class TestCleaning:
    def test_invalid_entries(self):
        assert not is_valid_task(TaskEntry(task_name="  ", actual_hours=1))
        assert not is_valid_task(TaskEntry(task_name="A", actual_hours=0))
        assert not is_valid_task(TaskEntry(task_name="A", actual_hours=-1))
        assert not is_valid_task(TaskEntry(task_name="A", actual_hours=25))
        assert is_valid_task(TaskEntry(task_name="A", actual_hours=24))

    def test_yesterday_tasks_get_actual_hours_and_completed(self):
        cleaned = clean_yesterday_tasks([
            TaskEntry(task_name=" 設計 ", actual_hours=3, completed=True),
            TaskEntry(task_name="レビュー", planned_hours=1),
            TaskEntry(task_name="", actual_hours=2),
        ])
        assert cleaned == [
            TaskEntry(task_name="設計", actual_hours=3, completed=True),
            TaskEntry(task_name="レビュー", actual_hours=1, completed=False),
        ]

    def test_today_tasks_get_planned_hours(self):
        cleaned = clean_today_tasks([
            TaskEntry(task_name="実装", planned_hours=5),
            TaskEntry(task_name="会議", planned_hours=0),
        ])
        assert cleaned == [TaskEntry(task_name="実装", planned_hours=5)]
