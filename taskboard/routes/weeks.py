# taskboard/routes/weeks.py
"""Week rollover, archival and history endpoints."""

import logging
from dataclasses import replace
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from taskboard.database import get_session
from taskboard.dependencies import get_now, get_week_policy, require_week_key
from taskboard.models import Task, TaskStatus, Week
from taskboard.review import HISTORY_WEEK_LIMIT, completion_stats
from taskboard.rollover import RolloverResult, close_week, rollover
from taskboard.weeks import (
    WeekPolicy,
    current_week_key,
    day_labels_for_week,
    next_week_key,
    week_range_label,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/weeks", tags=["weeks"])


def find_week(session: Session, week_key: str) -> Week | None:
    return session.exec(select(Week).where(Week.week_id == week_key)).first()


def apply_result(session: Session, result: RolloverResult) -> RolloverResult:
    """Apply a rollover plan's patches and inserts in a single commit.

    Returns the plan as applied: tasks deleted since the snapshot was read are
    dropped from ``moved``.
    """
    skipped = set()
    for patch in result.task_patches:
        task = session.get(Task, patch.task_id)
        if task is None:
            logger.warning("Task %s vanished before rollover was applied", patch.task_id)
            skipped.add(patch.task_id)
            continue
        for key, value in patch.fields.items():
            setattr(task, key, value)
        session.add(task)
    for patch in result.week_patches:
        week = find_week(session, patch.week_id)
        if week is None:
            continue
        for key, value in patch.fields.items():
            setattr(week, key, value)
        session.add(week)
    for insert in result.week_inserts:
        session.add(Week.model_validate(insert.record))
    session.commit()
    if not skipped:
        return result
    return replace(
        result,
        moved=[task_id for task_id in result.moved if task_id not in skipped],
        task_patches=[patch for patch in result.task_patches if patch.task_id not in skipped],
    )


def _completed_tasks(session: Session, week_key: str) -> list[Task]:
    statement = (
        select(Task)
        .where(Task.week_id == week_key, Task.status == TaskStatus.completed)
        .order_by(Task.completed_at)
    )
    return list(session.exec(statement).all())


@router.post("/rollover")
def rollover_previous_weeks(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    """Return stranded tasks to the backlog and archive finished weeks.

    Safe to call on every board load; a second call finds nothing to do.
    """
    tasks = session.exec(select(Task).where(Task.week_id.is_not(None))).all()
    weeks = session.exec(select(Week)).all()
    result = rollover(now, tasks, weeks, policy)
    if not result.is_empty:
        result = apply_result(session, result)
    return result.to_dict()


@router.post("/current/close")
def close_current_week(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    """Manually end the current week: unfinished tasks go back to the backlog."""
    week_key = current_week_key(now, policy)
    tasks = session.exec(select(Task).where(Task.week_id == week_key)).all()
    weeks = session.exec(select(Week).where(Week.week_id == week_key)).all()
    result = close_week(now, tasks, weeks, policy)
    if not result.is_empty:
        result = apply_result(session, result)
    return result.to_dict()


@router.get("/current")
def current_week(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    week_key = current_week_key(now, policy)
    start, end = week_range_label(week_key)
    return {
        "week_id": week_key,
        "next_week_id": next_week_key(week_key),
        "week_range": {"start": start, "end": end},
        "days": [{"day": day, "date": label} for day, label in day_labels_for_week(week_key)],
        "record": find_week(session, week_key),
    }


@router.get("/history")
def archived_weeks(session: Session = Depends(get_session)) -> list[dict]:
    """Most recent archived weeks with their completed tasks."""
    statement = (
        select(Week)
        .where(Week.is_archived == True)  # noqa: E712
        .order_by(Week.week_id.desc())
        .limit(HISTORY_WEEK_LIMIT)
    )
    history = []
    for week in session.exec(statement).all():
        completed = _completed_tasks(session, week.week_id)
        history.append({
            **week.model_dump(),
            "completed_tasks": completed,
            "completed_count": len(completed),
        })
    return history


@router.get("/stats")
def weekly_stats(session: Session = Depends(get_session)) -> list[dict]:
    """Completion rate of the last eight archived weeks."""
    weeks = session.exec(select(Week).where(Week.is_archived == True)).all()  # noqa: E712
    keys = [week.week_id for week in weeks]
    tasks = session.exec(select(Task).where(Task.week_id.in_(keys))).all() if keys else []
    return completion_stats(weeks, tasks)


@router.get("/{week_id}")
def week_history(week_id: str, session: Session = Depends(get_session)) -> dict:
    """A single week record with its completed tasks."""
    week = find_week(session, require_week_key(week_id))
    if week is None:
        raise HTTPException(status_code=404, detail="Week not found")
    return {**week.model_dump(), "completed_tasks": _completed_tasks(session, week.week_id)}
