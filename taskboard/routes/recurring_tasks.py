# taskboard/routes/recurring_tasks.py
"""Endpoints for recurring task templates and their weekly generation."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from taskboard.database import get_session
from taskboard.dependencies import get_now, get_week_policy, require_week_key
from taskboard.models import RecurringTask, RecurringTaskCreate, RecurringTaskUpdate, Task
from taskboard.recurring import plan_recurring_tasks
from taskboard.weeks import WeekPolicy, current_week_key

router = APIRouter(prefix="/api/recurring-tasks", tags=["recurring-tasks"])


def _get_template_or_404(session: Session, template_id: int) -> RecurringTask:
    template = session.get(RecurringTask, template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Recurring task not found")
    return template


@router.get("/")
def list_recurring_tasks(
    include_inactive: bool = False, session: Session = Depends(get_session)
) -> list[RecurringTask]:
    """List active templates, or all of them with ``include_inactive``."""
    statement = select(RecurringTask).order_by(RecurringTask.created_at)
    if not include_inactive:
        statement = statement.where(RecurringTask.is_active == True)  # noqa: E712
    return list(session.exec(statement).all())


@router.post("/", status_code=201)
def create_recurring_task(
    body: RecurringTaskCreate,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
) -> RecurringTask:
    template = RecurringTask.model_validate(body, update={"created_at": now})
    session.add(template)
    session.commit()
    session.refresh(template)
    return template


@router.put("/{template_id}")
def update_recurring_task(
    template_id: int, body: RecurringTaskUpdate, session: Session = Depends(get_session)
) -> RecurringTask:
    """Edit a template. Already generated tasks are left as they are."""
    template = _get_template_or_404(session, template_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(template, key, value)
    session.add(template)
    session.commit()
    session.refresh(template)
    return template


@router.post("/{template_id}/toggle")
def toggle_recurring_task(
    template_id: int, session: Session = Depends(get_session)
) -> RecurringTask:
    template = _get_template_or_404(session, template_id)
    template.is_active = not template.is_active
    session.add(template)
    session.commit()
    session.refresh(template)
    return template


@router.delete("/{template_id}", status_code=204)
def delete_recurring_task(template_id: int, session: Session = Depends(get_session)) -> None:
    template = _get_template_or_404(session, template_id)
    session.delete(template)
    session.commit()


@router.post("/generate")
def generate_recurring_tasks(
    week_id: Optional[str] = None,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    """Create this week's (or ``week_id``'s) instances of every due template.

    Templates that already have an instance for the week are skipped.
    """
    week_key = require_week_key(week_id) if week_id else current_week_key(now, policy)
    templates = session.exec(
        select(RecurringTask).where(RecurringTask.is_active == True)  # noqa: E712
    ).all()
    existing = session.exec(
        select(Task).where(Task.recurrence_week_id == week_key, Task.recurring_task_id.is_not(None))
    ).all()
    planned = plan_recurring_tasks(templates, existing, week_key, now)
    for task in planned:
        session.add(task)
    session.commit()
    for task in planned:
        session.refresh(task)
    return {"week_id": week_key, "generated_count": len(planned), "tasks": planned}
