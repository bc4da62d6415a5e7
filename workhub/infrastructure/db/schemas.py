"""
Typed views of stored rows, validated when they leave the data-access layer.
"""
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from workhub.domain.report import TaskEntry, parse_tasks

Role = Literal["admin", "member"]


class ProfileRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: Role
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    line_user_id: str | None = None
    line_linked_at: datetime | None = None


class ReportRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    report_date: date
    yesterday_tasks: list[TaskEntry]
    today_tasks: list[TaskEntry]
    notes: str | None = None
    submitted_at: datetime | None = None

    @field_validator("yesterday_tasks", "today_tasks", mode="before")
    @classmethod
    def _tasks(cls, value):
        return parse_tasks(value)
