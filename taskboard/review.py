"""Weekly review: summaries, commitments, completion stats and review prompts."""

from datetime import datetime
from typing import Iterable, Optional

from taskboard.models import Task, TaskStatus, UserSettings, Week
from taskboard.weeks import (
    WeekPolicy,
    current_week_key,
    day_name_for,
    format_key,
    local_date,
    parse_week_key,
    previous_week_key,
    week_end_date,
)

REVIEW_DAYS = ("saturday", "sunday")
SUMMARY_COMPLETED_LIMIT = 10
STATS_WEEK_LIMIT = 8
HISTORY_WEEK_LIMIT = 20


def percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _completed(tasks: Iterable[Task]) -> list[Task]:
    return [task for task in tasks if task.status == TaskStatus.completed]


def commitments_for(week_key: str, tasks: Iterable[Task]) -> list[Task]:
    return [
        task for task in tasks
        if task.is_commitment and task.commitment_week_id == week_key
    ]


def weekly_summary(week_key: str, tasks: Iterable[Task], week: Optional[Week]) -> dict:
    """Totals for the week review modal. ``tasks`` are the tasks of ``week_key``."""
    parse_week_key(week_key)
    tasks = [task for task in tasks if task.week_id == week_key]
    completed = _completed(tasks)
    commitments = commitments_for(week_key, tasks)
    completed_commitments = _completed(commitments)
    return {
        "week_id": week_key,
        "total_tasks": len(tasks),
        "completed_tasks": len(completed),
        "completion_rate": percent(len(completed), len(tasks)),
        "commitment_tasks": len(commitments),
        "completed_commitments": len(completed_commitments),
        "commitment_rate": percent(len(completed_commitments), len(commitments)),
        "week_theme": week.week_theme if week else None,
        "completed_tasks_list": completed[:SUMMARY_COMPLETED_LIMIT],
        "pending_commitments": [
            task for task in commitments if task.status != TaskStatus.completed
        ],
    }


def commitment_summary(week_key: str, tasks: Iterable[Task], week: Optional[Week]) -> dict:
    parse_week_key(week_key)
    commitments = commitments_for(week_key, tasks)
    return {
        "commitments": commitments,
        "completed_count": len(_completed(commitments)),
        "total_count": len(commitments),
        "week_theme": week.week_theme if week else None,
    }


def completion_stats(
    weeks: Iterable[Week], tasks: Iterable[Task], limit: int = STATS_WEEK_LIMIT
) -> list[dict]:
    """Completion rate of the most recent archived weeks, newest first.

    The total counts every task still attached to the week; tasks rolled back
    to the backlog no longer count against it.
    """
    tasks = list(tasks)
    archived = sorted(
        (week for week in weeks if week.is_archived),
        key=lambda week: week.week_id,
        reverse=True,
    )[:limit]
    stats = []
    for week in archived:
        week_tasks = [task for task in tasks if task.week_id == week.week_id]
        completed = len(_completed(week_tasks))
        stats.append({
            "week_id": week.week_id,
            "start_date": week.start_date,
            "completed_count": completed,
            "total_count": len(week_tasks),
            "completion_rate": percent(completed, len(week_tasks)),
        })
    return stats


def should_show_weekly_review(
    now: datetime, settings: Optional[UserSettings], policy: WeekPolicy
) -> bool:
    """Offer the review on weekends, once per week."""
    if day_name_for(now, policy) not in REVIEW_DAYS:
        return False
    if settings is None:
        return True
    return settings.last_week_review_week_id != current_week_key(now, policy)


def should_show_backlog_review(
    now: datetime, settings: Optional[UserSettings], policy: WeekPolicy
) -> bool:
    if settings is None or not settings.last_backlog_review_week_id:
        return True
    return settings.last_backlog_review_week_id != current_week_key(now, policy)


def oldest_backlog_tasks(tasks: Iterable[Task], limit: int = 10) -> list[Task]:
    backlog = [task for task in tasks if task.status == TaskStatus.backlog]
    return sorted(backlog, key=lambda task: task.created_at)[:limit]


def recap_week_key(now: datetime, policy: WeekPolicy) -> str:
    """The week a recap sent at ``now`` should cover.

    On the last day of a week that is the current week; otherwise the week
    that just ended.
    """
    week_key = current_week_key(now, policy)
    if format_key(local_date(now, policy)) == week_end_date(week_key):
        return week_key
    return previous_week_key(week_key)
