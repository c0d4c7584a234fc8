"""Consecutive-day completion streaks.

A streak counts calendar days (in the policy zone) on which at least one
task was completed. The current streak stays alive through "today" until the
day is over: if the last completion was yesterday the streak still counts,
two silent days break it.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from taskboard.models import Task, TaskStatus
from taskboard.weeks import WeekPolicy, format_key, local_date, parse_date

MILESTONES = (7, 14, 30, 60, 100, 200, 365)

_MILESTONE_MESSAGES = (
    (365, "🏆 ONE YEAR STREAK! Absolutely legendary!"),
    (200, "⭐ 200+ Days! You're a productivity superhero!"),
    (100, "💯 100 Day Streak! Triple digits!"),
    (60, "🚀 60 Day Streak! You're unstoppable!"),
    (30, "🎉 30 Day Streak! A full month!"),
    (14, "💪 Two Week Streak! Keep it going!"),
    (7, "🔥 One Week Streak! Great start!"),
)


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_completion_date: Optional[str] = None
    streak_start_date: Optional[str] = None
    is_milestone: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def is_milestone(days: int) -> bool:
    return days in MILESTONES


def milestone_message(days: int) -> str:
    """Celebration text for the highest milestone ``days`` has reached."""
    for threshold, message in _MILESTONE_MESSAGES:
        if days >= threshold:
            return message
    return f"🎊 {days} Day Streak!"


def _is_next_day(later: date, earlier: date) -> bool:
    return later - earlier == timedelta(days=1)


def calculate_streak(completion_dates: Iterable[str], today: date) -> StreakState:
    """Compute the streak state from ``YYYY-MM-DD`` completion dates.

    Duplicates are collapsed first, so several completions on one day count
    once. Raises MalformedDate for anything that is not a calendar date.
    """
    days = sorted({parse_date(value) for value in completion_dates}, reverse=True)
    if not days:
        return StreakState()

    current = 0
    start: Optional[date] = None
    if days[0] in (today, today - timedelta(days=1)):
        current = 1
        start = days[0]
        for later, earlier in zip(days, days[1:]):
            if not _is_next_day(later, earlier):
                break
            current += 1
            start = earlier

    longest_run = run = 1
    for later, earlier in zip(days, days[1:]):
        run = run + 1 if _is_next_day(later, earlier) else 1
        longest_run = max(longest_run, run)

    return StreakState(
        current_streak=current,
        longest_streak=max(current, longest_run),
        last_completion_date=format_key(days[0]),
        streak_start_date=format_key(start) if start else None,
        is_milestone=is_milestone(current),
    )


def completion_dates(tasks: Iterable[Task], policy: WeekPolicy) -> list[str]:
    """Local completion dates of every completed task."""
    return [
        format_key(local_date(task.completed_at, policy))
        for task in tasks
        if task.status == TaskStatus.completed and task.completed_at is not None
    ]


def streak_for(now: datetime, tasks: Iterable[Task], policy: WeekPolicy) -> StreakState:
    return calculate_streak(completion_dates(tasks, policy), local_date(now, policy))


def has_completed_today(now: datetime, tasks: Iterable[Task], policy: WeekPolicy) -> bool:
    today = format_key(local_date(now, policy))
    return today in completion_dates(tasks, policy)
