# taskboard/models.py
"""Task, recurring task, week and settings models for the task board API."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Column, String
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskStatus(str, Enum):
    backlog = "backlog"
    sunday = "sunday"
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    completed = "completed"


class DayOfWeek(str, Enum):
    sunday = "sunday"
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Frequency(str, Enum):
    weekly = "weekly"
    monthly = "monthly"


# ─── Tasks ──────────────────────────────────────────────────────────

class TaskStatusType(TypeDecorator):
    """Task status stored as plain text.

    Unrecognised values load as raw strings, leaving the board's bucketing to
    reject them with UnknownTaskStatus rather than failing inside the ORM.
    """
    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return value.value if isinstance(value, Enum) else value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return TaskStatus(value)
        except ValueError:
            return value


class TaskBase(SQLModel):
    """Shared fields for create/update operations."""
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None)
    priority: TaskPriority = Field(default=TaskPriority.medium)


class Task(TaskBase, table=True):
    """Task database table.

    ``week_id`` is set exactly when the task sits in a day column or is
    completed; backlog tasks never carry one.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    status: TaskStatus = Field(default=TaskStatus.backlog, sa_type=TaskStatusType, index=True)
    week_id: Optional[str] = Field(default=None, index=True)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    is_commitment: bool = Field(default=False)
    commitment_week_id: Optional[str] = Field(default=None)
    recurring_task_id: Optional[int] = Field(default=None, index=True)
    recurrence_week_id: Optional[str] = Field(default=None)


class TaskCreate(TaskBase):
    """Schema for creating a task. New tasks start in the backlog or a day of this week."""
    status: TaskStatus = Field(default=TaskStatus.backlog)


class TaskUpdate(SQLModel):
    """Schema for editing a task. All fields optional."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None


class TaskStatusUpdate(SQLModel):
    status: TaskStatus


class TaskSchedule(SQLModel):
    """Place a task into a day column of an explicit week."""
    status: DayOfWeek
    week_id: str


# ─── Recurring tasks ────────────────────────────────────────────────

class RecurringTaskBase(SQLModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None)
    priority: TaskPriority = Field(default=TaskPriority.medium)
    frequency: Frequency = Field(default=Frequency.weekly)
    preferred_day: Optional[DayOfWeek] = Field(default=None)


class RecurringTask(RecurringTaskBase, table=True):
    """Template that is materialized into a Task once per target week."""
    id: Optional[int] = Field(default=None, primary_key=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)


class RecurringTaskCreate(RecurringTaskBase):
    pass


class RecurringTaskUpdate(SQLModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    frequency: Optional[Frequency] = None
    preferred_day: Optional[DayOfWeek] = None


# ─── Weeks ──────────────────────────────────────────────────────────

class Week(SQLModel, table=True):
    """Archive record of a calendar week, keyed by the week's first day."""
    id: Optional[int] = Field(default=None, primary_key=True)
    week_id: str = Field(index=True, unique=True)
    start_date: str
    end_date: str
    is_archived: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    commitment_task_ids: list[int] = Field(default_factory=list, sa_column=Column(JSON))
    week_theme: Optional[str] = Field(default=None)
    reflection_note: Optional[str] = Field(default=None)
    review_completed_at: Optional[datetime] = Field(default=None)


class CommitmentsRequest(SQLModel):
    week_id: str
    task_ids: list[int]
    week_theme: Optional[str] = None


class ReviewComplete(SQLModel):
    week_id: str
    reflection_note: Optional[str] = None


# ─── Settings ───────────────────────────────────────────────────────

class UserSettings(SQLModel, table=True):
    """Single-row record of which weeks the household has already reviewed."""
    id: Optional[int] = Field(default=None, primary_key=True)
    last_backlog_review_week_id: Optional[str] = Field(default=None)
    last_week_review_week_id: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
