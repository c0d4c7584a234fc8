"""Field changes that keep a task's status, week and completion time consistent."""

from datetime import datetime
from typing import Optional

from taskboard.models import TaskStatus
from taskboard.weeks import WeekPolicy, current_week_key, parse_week_key


def status_fields(
    status: TaskStatus | str,
    now: datetime,
    policy: WeekPolicy,
    week_id: Optional[str] = None,
) -> dict:
    """Fields to patch when a task moves to ``status``.

    - backlog: no week, no completion time.
    - a day: ``week_id`` if given, otherwise the current week.
    - completed: stamped with ``now`` and the week it was completed in.
      Backlog tasks may be completed directly.
    """
    status = TaskStatus(status)
    if status == TaskStatus.backlog:
        return {"status": status, "week_id": None, "completed_at": None}
    if status == TaskStatus.completed:
        return {
            "status": status,
            "week_id": current_week_key(now, policy),
            "completed_at": now,
        }
    if week_id is not None:
        parse_week_key(week_id)
    return {
        "status": status,
        "week_id": week_id or current_week_key(now, policy),
        "completed_at": None,
    }
