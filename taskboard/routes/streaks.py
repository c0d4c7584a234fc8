# taskboard/routes/streaks.py
"""Completion streak endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from taskboard.database import get_session
from taskboard.dependencies import get_now, get_week_policy
from taskboard.models import Task, TaskStatus
from taskboard.streaks import has_completed_today, milestone_message, streak_for
from taskboard.weeks import WeekPolicy

router = APIRouter(prefix="/api/streaks", tags=["streaks"])


def completed_tasks(session: Session) -> list[Task]:
    statement = select(Task).where(Task.status == TaskStatus.completed)
    return list(session.exec(statement).all())


@router.get("/")
def get_streak(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    state = streak_for(now, completed_tasks(session), policy)
    return {
        **state.to_dict(),
        "milestone_message": milestone_message(state.current_streak) if state.is_milestone else None,
    }


@router.get("/today")
def completed_today(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
) -> dict:
    """Whether today already counts toward the streak."""
    tasks = completed_tasks(session)
    return {
        "has_completed": has_completed_today(now, tasks, policy),
        "current_streak": streak_for(now, tasks, policy).current_streak,
    }
