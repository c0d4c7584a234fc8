# taskboard/routes/review.py
"""Weekly review, commitment and backlog review endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from taskboard.database import get_session
from taskboard.dependencies import get_now, get_week_policy, require_week_key
from taskboard.models import CommitmentsRequest, ReviewComplete, Task, UserSettings, Week
from taskboard.review import (
    commitment_summary,
    should_show_backlog_review,
    should_show_weekly_review,
    weekly_summary,
)
from taskboard.routes.weeks import find_week
from taskboard.weeks import WeekPolicy, current_week_key, week_end_date

router = APIRouter(prefix="/api/review", tags=["review"])


def get_settings(session: Session) -> UserSettings | None:
    return session.exec(select(UserSettings).order_by(UserSettings.id)).first()


def update_settings(session: Session, now: datetime, **fields) -> UserSettings:
    """Patch the settings row, creating it on first use."""
    settings = get_settings(session)
    if settings is None:
        settings = UserSettings(created_at=now)
    for key, value in fields.items():
        setattr(settings, key, value)
    settings.updated_at = now
    session.add(settings)
    return settings


def _week_tasks(session: Session, week_key: str) -> list[Task]:
    statement = select(Task).where(Task.week_id == week_key).order_by(Task.completed_at, Task.id)
    return list(session.exec(statement).all())


@router.get("/summary/{week_id}")
def get_weekly_summary(week_id: str, session: Session = Depends(get_session)) -> dict:
    week_key = require_week_key(week_id)
    return weekly_summary(week_key, _week_tasks(session, week_key), find_week(session, week_key))


@router.get("/should-show")
def should_show_review(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    return {"show": should_show_weekly_review(now, get_settings(session), policy)}


@router.post("/complete")
def mark_week_reviewed(
    body: ReviewComplete,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
) -> dict:
    """Record that the week was reviewed, with an optional reflection note."""
    week_key = require_week_key(body.week_id)
    update_settings(session, now, last_week_review_week_id=week_key)
    if body.reflection_note:
        week = find_week(session, week_key)
        if week is not None:
            week.reflection_note = body.reflection_note
            week.review_completed_at = now
            session.add(week)
    session.commit()
    return {"success": True, "week_id": week_key}


@router.post("/commitments")
def set_week_commitments(
    body: CommitmentsRequest,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
) -> dict:
    """Flag the chosen tasks as the week's commitments and store the theme."""
    week_key = require_week_key(body.week_id)
    committed = []
    for task_id in body.task_ids:
        task = session.get(Task, task_id)
        if task is None:
            continue
        task.is_commitment = True
        task.commitment_week_id = week_key
        session.add(task)
        committed.append(task_id)

    week = find_week(session, week_key)
    if week is None:
        week = Week(
            week_id=week_key,
            start_date=week_key,
            end_date=week_end_date(week_key),
            is_archived=False,
            created_at=now,
        )
    week.commitment_task_ids = committed
    week.week_theme = body.week_theme
    session.add(week)
    session.commit()
    return {"success": True, "commitment_count": len(committed)}


@router.get("/commitments/{week_id}")
def get_week_commitments(week_id: str, session: Session = Depends(get_session)) -> dict:
    week_key = require_week_key(week_id)
    return commitment_summary(week_key, _week_tasks(session, week_key), find_week(session, week_key))


@router.get("/backlog/should-show")
def should_show_backlog(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    return {"show": should_show_backlog_review(now, get_settings(session), policy)}


@router.post("/backlog/complete")
def mark_backlog_reviewed(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    week_key = current_week_key(now, policy)
    update_settings(session, now, last_backlog_review_week_id=week_key)
    session.commit()
    return {"success": True, "week_id": week_key}
