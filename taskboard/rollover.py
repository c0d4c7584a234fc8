"""Week-boundary rollover and archival.

Rollover runs on every board load and from a scheduled trigger, so it must be
idempotent: it only ever looks at weeks strictly before the current one, and
the plan it returns, once applied, leaves nothing for a second run to do.

The engine never touches the store. It returns a :class:`RolloverResult`
describing field-level task patches and week inserts/patches; the caller
applies them in one transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from taskboard.models import Task, TaskStatus, Week
from taskboard.weeks import (
    WeekPolicy,
    current_week_key,
    next_week_key,
    parse_week_key,
    week_end_date,
)

logger = logging.getLogger(__name__)

_TO_BACKLOG = {"status": TaskStatus.backlog, "week_id": None}


@dataclass(frozen=True)
class TaskPatch:
    task_id: int
    fields: dict


@dataclass(frozen=True)
class WeekPatch:
    week_id: str
    fields: dict


@dataclass(frozen=True)
class WeekInsert:
    record: dict
    table: str = "week"


@dataclass
class RolloverResult:
    moved: list[int] = field(default_factory=list)
    archived: list[str] = field(default_factory=list)
    task_patches: list[TaskPatch] = field(default_factory=list)
    week_patches: list[WeekPatch] = field(default_factory=list)
    week_inserts: list[WeekInsert] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.moved and not self.archived

    def to_dict(self) -> dict:
        return {
            "moved": list(self.moved),
            "archived": list(self.archived),
            "moved_tasks_count": len(self.moved),
            "archived_weeks_count": len(self.archived),
        }

    def apply_to(
        self, tasks: Iterable[Task], weeks: Iterable[Week]
    ) -> tuple[list[Task], list[Week]]:
        """Return the snapshot after this plan is applied. Inputs are not mutated."""
        task_fields = {patch.task_id: patch.fields for patch in self.task_patches}
        week_fields = {patch.week_id: patch.fields for patch in self.week_patches}

        new_tasks = [
            Task.model_validate({**task.model_dump(), **task_fields[task.id]})
            if task.id in task_fields
            else task
            for task in tasks
        ]
        new_weeks = [
            Week.model_validate({**week.model_dump(), **week_fields[week.week_id]})
            if week.week_id in week_fields
            else week
            for week in weeks
        ]
        new_weeks.extend(Week.model_validate(insert.record) for insert in self.week_inserts)
        return new_tasks, new_weeks


def archived_week_record(week_key: str, now: datetime) -> dict:
    """Fields of a new, already archived week record."""
    return {
        "week_id": week_key,
        "start_date": week_key,
        "end_date": week_end_date(week_key),
        "is_archived": True,
        "created_at": now,
    }


def _is_completed(task: Task) -> bool:
    return task.status == TaskStatus.completed


class _WeekWindow:
    """Classifies week keys relative to the week containing ``now``."""

    def __init__(self, now: datetime, policy: WeekPolicy) -> None:
        self.current = current_week_key(now, policy)
        self.upcoming = next_week_key(self.current)

    def is_past(self, week_key: Optional[str]) -> bool:
        if week_key is None:
            return False
        parse_week_key(week_key)
        # Keys are fixed-width ISO dates, so string order is date order.
        return week_key not in (self.current, self.upcoming) and week_key < self.current


def rollover(
    now: datetime,
    tasks: Iterable[Task],
    existing_weeks: Iterable[Week],
    policy: WeekPolicy,
) -> RolloverResult:
    """Plan the return of stranded tasks to the backlog and archive past weeks.

    - Incomplete tasks scheduled in a past week go back to the backlog.
    - Each past week holding completed tasks but no week record gets an
      archived record.
    - A past week record that is not archived yet is marked archived.

    The current and next week are never touched.
    """
    window = _WeekWindow(now, policy)
    tasks = list(tasks)
    existing_weeks = list(existing_weeks)
    result = RolloverResult()

    for task in tasks:
        if _is_completed(task) or not window.is_past(task.week_id):
            continue
        result.moved.append(task.id)
        result.task_patches.append(TaskPatch(task.id, dict(_TO_BACKLOG)))

    known_weeks = {week.week_id: week for week in existing_weeks}
    completed_week_keys = sorted(
        {task.week_id for task in tasks if _is_completed(task) and window.is_past(task.week_id)}
    )
    for week_key in completed_week_keys:
        if week_key in known_weeks:
            continue
        result.week_inserts.append(WeekInsert(archived_week_record(week_key, now)))
        result.archived.append(week_key)

    for week in existing_weeks:
        if window.is_past(week.week_id) and not week.is_archived:
            result.week_patches.append(WeekPatch(week.week_id, {"is_archived": True}))
            result.archived.append(week.week_id)

    result.archived.sort()
    if not result.is_empty:
        logger.info(
            "Rollover before week %s: moved %d task(s) to backlog, archived weeks %s",
            window.current, len(result.moved), result.archived,
        )
    return result


def close_week(
    now: datetime,
    tasks: Iterable[Task],
    existing_weeks: Iterable[Week],
    policy: WeekPolicy,
) -> RolloverResult:
    """Plan an explicit end-of-week close of the current week.

    Incomplete tasks of the current week return to the backlog and the current
    week is archived. Running it again after applying is a no-op.
    """
    week_key = current_week_key(now, policy)
    result = RolloverResult()

    for task in tasks:
        if task.week_id != week_key or _is_completed(task):
            continue
        result.moved.append(task.id)
        result.task_patches.append(TaskPatch(task.id, dict(_TO_BACKLOG)))

    existing = next((week for week in existing_weeks if week.week_id == week_key), None)
    if existing is None:
        result.week_inserts.append(WeekInsert(archived_week_record(week_key, now)))
        result.archived.append(week_key)
    elif not existing.is_archived:
        result.week_patches.append(WeekPatch(week_key, {"is_archived": True}))
        result.archived.append(week_key)

    if not result.is_empty:
        logger.info("Closed week %s: moved %d task(s) to backlog", week_key, len(result.moved))
    return result
