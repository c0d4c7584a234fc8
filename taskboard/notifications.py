"""Slack notifications: Block Kit message formatting and webhook delivery."""

import logging
from typing import Optional

import httpx

from taskboard.config import SLACK_TIMEOUT_SECONDS
from taskboard.errors import SlackWebhookError
from taskboard.models import Task, TaskPriority
from taskboard.streaks import StreakState

logger = logging.getLogger(__name__)

_PRIORITY_SECTIONS = (
    (TaskPriority.high, "🔴", "High Priority"),
    (TaskPriority.medium, "🟡", "Medium Priority"),
    (TaskPriority.low, "🟢", "Low Priority"),
)


# ─── Block helpers ──────────────────────────────────────────────────

def _header(text: str) -> dict:
    return {"type": "header", "text": {"type": "plain_text", "text": text, "emoji": True}}


def _section(markdown: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": markdown}}


def _context(markdown: str) -> dict:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": markdown}]}


_DIVIDER = {"type": "divider"}


def _task_line(task: Task) -> str:
    line = f"• {task.title}"
    if task.description:
        line += f"\n  _{task.description}_"
    return line


def _by_priority(tasks: list[Task], priority: TaskPriority) -> list[Task]:
    return [task for task in tasks if task.priority == priority]


def _status_footer(
    streak: Optional[StreakState], commitments: Optional[dict]
) -> Optional[dict]:
    parts = []
    if streak is not None and streak.current_streak > 0:
        parts.append(f"🔥 {streak.current_streak}-day streak")
    if commitments is not None and commitments.get("total_count"):
        parts.append(
            f"🎯 Commitments: {commitments['completed_count']}/{commitments['total_count']}"
        )
    return _context(" | ".join(parts)) if parts else None


# ─── Messages ───────────────────────────────────────────────────────

def format_daily_tasks(
    tasks: list[Task],
    day_name: str,
    streak: Optional[StreakState] = None,
    commitments: Optional[dict] = None,
) -> dict:
    """Morning message listing the day's tasks grouped by priority."""
    formatted_day = day_name.capitalize()
    counts = " | ".join(
        f"{emoji} {label.split()[0]}: {len(_by_priority(tasks, priority))}"
        for priority, emoji, label in _PRIORITY_SECTIONS
    )
    blocks = [
        _header(f"📋 {formatted_day}'s Tasks"),
        _section(f"*Total: {len(tasks)} tasks* | {counts}"),
        _DIVIDER,
    ]
    for priority, emoji, label in _PRIORITY_SECTIONS:
        group = _by_priority(tasks, priority)
        if group:
            lines = "\n".join(_task_line(task) for task in group)
            blocks.append(_section(f"*{emoji} {label}*\n{lines}"))
    if not tasks:
        blocks.append(_section("🎉 No tasks scheduled for today! Enjoy your day!"))

    footer = _status_footer(streak, commitments)
    if footer is not None:
        blocks.append(footer)

    return {"blocks": blocks, "text": f"{formatted_day}'s Tasks: {len(tasks)} tasks"}


def format_end_of_day(
    completed: list[Task], remaining: list[Task], streak: Optional[StreakState] = None
) -> dict:
    """Evening summary of what got done today and what is still open."""
    blocks = [
        _header("🌙 End of Day Summary"),
        _section(f"*Completed today: {len(completed)}* | *Still open: {len(remaining)}*"),
        _DIVIDER,
    ]
    if completed:
        lines = "\n".join(f"✅ {task.title}" for task in completed)
        blocks.append(_section(f"*Done*\n{lines}"))
    if remaining:
        lines = "\n".join(f"⬜ {task.title}" for task in remaining)
        blocks.append(_section(f"*Carry over*\n{lines}"))
    if not completed and not remaining:
        blocks.append(_section("Nothing was scheduled today."))

    footer = _status_footer(streak, None)
    if footer is not None:
        blocks.append(footer)

    return {
        "blocks": blocks,
        "text": f"End of day: {len(completed)} completed, {len(remaining)} open",
    }


def format_streak_alert(streak: StreakState) -> dict:
    """Evening nudge sent when nothing has been completed yet today."""
    days = streak.current_streak
    text = (
        f"⚠️ Your {days}-day streak is at risk! "
        "Complete at least one task today to keep it going."
    )
    return {
        "blocks": [_header("🔥 Streak Protection"), _section(text)],
        "text": f"Your {days}-day streak is at risk",
    }


def format_weekly_recap(summary: dict, streak: Optional[StreakState] = None) -> dict:
    """Sunday-night recap built from a weekly review summary."""
    blocks = [
        _header(f"📊 Weekly Recap ({summary['week_id']})"),
        _section(
            f"*Completed: {summary['completed_tasks']}/{summary['total_tasks']} tasks* "
            f"({summary['completion_rate']}%)"
        ),
    ]
    if summary.get("week_theme"):
        blocks.append(_section(f"*Theme:* {summary['week_theme']}"))
    if summary["commitment_tasks"]:
        blocks.append(_section(
            f"*Commitments:* {summary['completed_commitments']}/{summary['commitment_tasks']} "
            f"({summary['commitment_rate']}%)"
        ))
    pending = summary.get("pending_commitments") or []
    if pending:
        lines = "\n".join(f"• {task.title}" for task in pending)
        blocks.append(_section(f"*Missed commitments*\n{lines}"))

    footer = _status_footer(streak, None)
    if footer is not None:
        blocks.append(footer)

    return {
        "blocks": blocks,
        "text": (
            f"Weekly recap: {summary['completed_tasks']}/{summary['total_tasks']} tasks completed"
        ),
    }


# ─── Delivery ───────────────────────────────────────────────────────

async def send_to_slack(
    webhook_url: str,
    message: dict,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """POST ``message`` to an incoming webhook. Raises SlackWebhookError on failure."""
    async with httpx.AsyncClient(timeout=SLACK_TIMEOUT_SECONDS, transport=transport) as client:
        response = await client.post(webhook_url, json=message)
    if response.is_error:
        raise SlackWebhookError(response.status_code, response.text)
