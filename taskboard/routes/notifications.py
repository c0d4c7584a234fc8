# taskboard/routes/notifications.py
"""Slack notification endpoints, triggered by the platform's cron schedule.

Schedule (UTC): daily tasks 14:00, streak alert 00:00, end of day 01:00,
weekly recap Monday 02:00.
"""

import logging
from datetime import datetime
from typing import Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session, select

from taskboard.database import get_session
from taskboard.dependencies import (
    get_now,
    get_slack_webhook_url,
    get_week_policy,
    require_week_key,
)
from taskboard.errors import SlackWebhookError
from taskboard.models import DayOfWeek, Task, TaskStatus
from taskboard.notifications import (
    format_daily_tasks,
    format_end_of_day,
    format_streak_alert,
    format_weekly_recap,
    send_to_slack,
)
from taskboard.review import commitment_summary, recap_week_key, weekly_summary
from taskboard.routes.weeks import find_week
from taskboard.streaks import StreakState, has_completed_today, streak_for
from taskboard.weeks import WeekPolicy, current_week_key, day_name_for, format_key, local_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])

NOT_CONFIGURED = {"success": False, "error": "SLACK_WEBHOOK_URL not configured"}


async def _deliver(webhook_url: str, message: dict, description: str) -> dict:
    try:
        await send_to_slack(webhook_url, message)
    except (SlackWebhookError, httpx.HTTPError) as e:
        logger.error(f"Failed to send {description} to Slack: {e}")
        return {"success": False, "error": str(e)}
    logger.info(f"Sent {description} to Slack")
    return {"success": True}


def _completed(session: Session) -> list[Task]:
    return list(session.exec(select(Task).where(Task.status == TaskStatus.completed)).all())


def _day_column(session: Session, week_key: str, day_name: str) -> list[Task]:
    statement = (
        select(Task)
        .where(Task.week_id == week_key, Task.status == TaskStatus(day_name))
        .order_by(Task.created_at, Task.id)
    )
    return list(session.exec(statement).all())


def _week_tasks(session: Session, week_key: str) -> list[Task]:
    return list(session.exec(select(Task).where(Task.week_id == week_key)).all())




# Database reads are synchronous and run in the threadpool; only Slack
# delivery is awaited on the event loop.

def _daily_message(
    session: Session, now: datetime, policy: WeekPolicy, day: str
) -> tuple[list[Task], Optional[dict]]:
    week_key = current_week_key(now, policy)
    tasks = _day_column(session, week_key, day)
    if not tasks:
        return tasks, None
    streak = streak_for(now, _completed(session), policy)
    commitments = commitment_summary(week_key, _week_tasks(session, week_key), None)
    return tasks, format_daily_tasks(tasks, day, streak=streak, commitments=commitments)


def _end_of_day_message(
    session: Session, now: datetime, policy: WeekPolicy
) -> tuple[list[Task], list[Task], Optional[dict]]:
    today = format_key(local_date(now, policy))
    completed = _completed(session)
    completed_today = [
        task for task in completed
        if task.completed_at is not None
        and format_key(local_date(task.completed_at, policy)) == today
    ]
    remaining = _day_column(session, current_week_key(now, policy), day_name_for(now, policy))
    if not completed_today and not remaining:
        return completed_today, remaining, None
    message = format_end_of_day(completed_today, remaining, streak_for(now, completed, policy))
    return completed_today, remaining, message


def _streak_alert_message(
    session: Session, now: datetime, policy: WeekPolicy
) -> tuple[StreakState, Optional[dict]]:
    completed = _completed(session)
    streak = streak_for(now, completed, policy)
    if streak.current_streak == 0 or has_completed_today(now, completed, policy):
        return streak, None
    return streak, format_streak_alert(streak)


def _weekly_recap_message(
    session: Session, now: datetime, policy: WeekPolicy, week_key: str
) -> dict:
    summary = weekly_summary(week_key, _week_tasks(session, week_key), find_week(session, week_key))
    streak = streak_for(now, _completed(session), policy)
    return format_weekly_recap(summary, streak)


@router.post("/daily-tasks")
async def send_daily_tasks(
    day_name: Optional[DayOfWeek] = None,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
    webhook_url: str = Depends(get_slack_webhook_url),
) -> dict:
    """Post today's column (or ``day_name``'s) of the current week."""
    if not webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not configured, skipping daily notification")
        return NOT_CONFIGURED

    day = day_name.value if day_name else day_name_for(now, policy)
    tasks, message = await run_in_threadpool(_daily_message, session, now, policy, day)
    if message is None:
        logger.info(f"No tasks scheduled for {day}, skipping notification")
        return {"success": True, "task_count": 0, "day": day}

    result = await _deliver(webhook_url, message, f"daily tasks ({len(tasks)} for {day})")
    return {**result, "task_count": len(tasks), "day": day}


@router.post("/end-of-day")
async def send_end_of_day_summary(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
    webhook_url: str = Depends(get_slack_webhook_url),
) -> dict:
    if not webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not configured, skipping end of day summary")
        return NOT_CONFIGURED

    completed_today, remaining, message = await run_in_threadpool(
        _end_of_day_message, session, now, policy
    )
    if message is None:
        return {"success": True, "skipped": True}

    result = await _deliver(webhook_url, message, "end of day summary")
    return {**result, "completed_count": len(completed_today), "remaining_count": len(remaining)}


@router.post("/streak-alert")
async def send_streak_alert(
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
    webhook_url: str = Depends(get_slack_webhook_url),
) -> dict:
    """Warn when a running streak will break unless something is completed today."""
    if not webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not configured, skipping streak alert")
        return NOT_CONFIGURED

    streak, message = await run_in_threadpool(_streak_alert_message, session, now, policy)
    if message is None:
        return {"success": True, "skipped": True, "current_streak": streak.current_streak}

    result = await _deliver(webhook_url, message, "streak alert")
    return {**result, "current_streak": streak.current_streak}


@router.post("/weekly-recap")
async def send_weekly_recap(
    week_id: Optional[str] = None,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    policy: WeekPolicy = Depends(get_week_policy),
    webhook_url: str = Depends(get_slack_webhook_url),
) -> dict:
    if not webhook_url:
        logger.warning("SLACK_WEBHOOK_URL not configured, skipping weekly recap")
        return NOT_CONFIGURED

    week_key = require_week_key(week_id) if week_id else recap_week_key(now, policy)
    message = await run_in_threadpool(_weekly_recap_message, session, now, policy, week_key)
    result = await _deliver(webhook_url, message, "weekly recap")
    return {**result, "week_id": week_key}
