"""
Report task entries and hour arithmetic.

A report holds two ordered task lists stored as JSON:
  yesterday_tasks - actual work done the previous workday (actual_hours, completed)
  today_tasks     - plan for the report date (planned_hours)

Task entries have no identity of their own; editing any entry rewrites the
whole list.
"""
from typing import Iterable

from pydantic import BaseModel, ConfigDict, TypeAdapter

MAX_TASK_HOURS = 24


class TaskEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    task_name: str = ""
    actual_hours: float | None = None
    planned_hours: float | None = None
    completed: bool | None = None

    @property
    def hours(self) -> float:
        if self.actual_hours is not None:
            return self.actual_hours
        if self.planned_hours is not None:
            return self.planned_hours
        return 0


_task_list = TypeAdapter(list[TaskEntry])


def parse_tasks(raw: Iterable | None) -> list[TaskEntry]:
    """Validate a JSON task list read from storage or a request body."""
    return _task_list.validate_python(list(raw or []))


def dump_tasks(tasks: Iterable[TaskEntry]) -> list[dict]:
    return [t.model_dump(exclude_none=True) for t in tasks]


def total_hours(tasks: Iterable[TaskEntry | dict] | None) -> float:
    """Sum of actual hours, falling back to planned hours, else 0, per task."""
    total = 0.0
    for task in tasks or []:
        if isinstance(task, dict):
            task = TaskEntry.model_validate(task)
        total += task.hours
    return total


def is_valid_task(task: TaskEntry) -> bool:
    """A submittable entry has a name and a positive number of hours."""
    return bool(task.task_name.strip()) and 0 < task.hours <= MAX_TASK_HOURS


def clean_yesterday_tasks(tasks: Iterable[TaskEntry]) -> list[TaskEntry]:
    return [
        TaskEntry(
            task_name=t.task_name.strip(),
            actual_hours=t.hours,
            completed=bool(t.completed),
        )
        for t in tasks
        if is_valid_task(t)
    ]


def clean_today_tasks(tasks: Iterable[TaskEntry]) -> list[TaskEntry]:
    return [
        TaskEntry(task_name=t.task_name.strip(), planned_hours=t.hours)
        for t in tasks
        if is_valid_task(t)
    ]
