"""Injectable clock and week policy. Tests override these via dependency_overrides."""

from datetime import datetime, timezone
from functools import lru_cache

from fastapi import HTTPException

from taskboard.config import FIRST_DAY, SLACK_WEBHOOK_URL, TIMEZONE
from taskboard.errors import MalformedWeekKey
from taskboard.weeks import WeekPolicy, parse_week_key


def get_now() -> datetime:
    """Current instant. The only place the service reads the wall clock."""
    return datetime.now(timezone.utc)


@lru_cache
def get_week_policy() -> WeekPolicy:
    return WeekPolicy.from_names(TIMEZONE, FIRST_DAY)


def require_week_key(week_id: str) -> str:
    """Validate a week key coming from a request, answering 400 when malformed."""
    try:
        parse_week_key(week_id)
    except MalformedWeekKey as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return week_id


def get_slack_webhook_url() -> str:
    """Incoming webhook for notifications; empty when Slack is not configured."""
    return SLACK_WEBHOOK_URL
