# taskboard/routes/tasks.py
"""CRUD and board endpoints for tasks."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, or_, select

from taskboard.bucketing import bucket_tasks
from taskboard.database import get_session
from taskboard.dependencies import get_now, get_week_policy, require_week_key
from taskboard.models import (
    Task,
    TaskCreate,
    TaskPriority,
    TaskSchedule,
    TaskStatus,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskboard.review import oldest_backlog_tasks
from taskboard.transitions import status_fields
from taskboard.weeks import (
    WeekPolicy,
    current_week_key,
    day_labels_for_week,
    next_week_key,
    week_range_label,
)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _get_task_or_404(session: Session, task_id: int) -> Task:
    task = session.get(Task, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _save(session: Session, task: Task, fields: dict) -> Task:
    for key, value in fields.items():
        setattr(task, key, value)
    session.add(task)
    session.commit()
    session.refresh(task)
    return task


def build_board(session: Session, week_key: str) -> dict:
    """The week's columns plus the backlog, bucketed and priority-sorted."""
    statement = (
        select(Task)
        .where(or_(Task.week_id == week_key, Task.status == TaskStatus.backlog))
        .order_by(Task.created_at, Task.id)
    )
    tasks = session.exec(statement).all()
    start, end = week_range_label(week_key)
    return {
        "week_id": week_key,
        "next_week_id": next_week_key(week_key),
        "week_range": {"start": start, "end": end},
        "days": [{"day": day, "date": label} for day, label in day_labels_for_week(week_key)],
        "columns": bucket_tasks(tasks),
    }


@router.get("/")
def list_tasks(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    week_id: Optional[str] = None,
    session: Session = Depends(get_session),
) -> list[Task]:
    """List all tasks, optionally filtered by status, priority and/or week."""
    statement = select(Task)
    if status is not None:
        statement = statement.where(Task.status == status)
    if priority is not None:
        statement = statement.where(Task.priority == priority)
    if week_id is not None:
        statement = statement.where(Task.week_id == require_week_key(week_id))
    statement = statement.order_by(Task.created_at.desc())
    return list(session.exec(statement).all())


@router.get("/board")
def current_board(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    """Board for the week containing now."""
    return build_board(session, current_week_key(now, policy))


@router.get("/week/{week_id}")
def week_board(week_id: str, session: Session = Depends(get_session)) -> dict:
    """Board for any week, e.g. next week while planning."""
    return build_board(session, require_week_key(week_id))


@router.get("/backlog/oldest")
def oldest_backlog(
    limit: int = Query(default=10, ge=1, le=100),
    session: Session = Depends(get_session),
) -> list[Task]:
    """Longest-waiting backlog tasks, for the backlog review."""
    backlog = session.exec(select(Task).where(Task.status == TaskStatus.backlog)).all()
    return oldest_backlog_tasks(backlog, limit)


@router.get("/{task_id}")
def get_task(task_id: int, session: Session = Depends(get_session)) -> Task:
    """Get a single task by ID."""
    return _get_task_or_404(session, task_id)


@router.post("/", status_code=201)
def create_task(
    body: TaskCreate,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> Task:
    """Create a task in the backlog or in a column of the current week."""
    task = Task(
        title=body.title,
        description=body.description,
        priority=body.priority,
        created_at=now,
    )
    return _save(session, task, status_fields(body.status, now, policy))


@router.put("/{task_id}")
def update_task(
    task_id: int, body: TaskUpdate, session: Session = Depends(get_session)
) -> Task:
    """Edit title, description or priority. Only provided fields are changed."""
    task = _get_task_or_404(session, task_id)
    return _save(session, task, body.model_dump(exclude_unset=True))


@router.patch("/{task_id}/status")
def move_task(
    task_id: int,
    body: TaskStatusUpdate,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> Task:
    """Move a task to another column of the current board."""
    task = _get_task_or_404(session, task_id)
    return _save(session, task, status_fields(body.status, now, policy))


@router.post("/{task_id}/schedule")
def schedule_task(
    task_id: int,
    body: TaskSchedule,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> Task:
    """Place a task on a day of an explicit week (this week or a later one)."""
    task = _get_task_or_404(session, task_id)
    week_id = require_week_key(body.week_id)
    return _save(session, task, status_fields(body.status, now, policy, week_id=week_id))


@router.post("/{task_id}/complete")
def complete_task(
    task_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> Task:
    """Mark a task completed now, from any column."""
    task = _get_task_or_404(session, task_id)
    return _save(session, task, status_fields(TaskStatus.completed, now, policy))


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: int, session: Session = Depends(get_session)) -> None:
    """Delete a task by ID."""
    task = _get_task_or_404(session, task_id)
    session.delete(task)
    session.commit()
