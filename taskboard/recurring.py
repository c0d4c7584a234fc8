"""Materializing recurring task templates into concrete tasks."""

import logging
from datetime import datetime
from typing import Iterable

from taskboard.models import Frequency, RecurringTask, Task, TaskStatus
from taskboard.weeks import parse_week_key, week_dates

logger = logging.getLogger(__name__)


def week_contains_month_start(week_key: str) -> bool:
    return any(day.day == 1 for day in week_dates(week_key))


def is_due(template: RecurringTask, week_key: str) -> bool:
    """Whether ``template`` should produce an instance for ``week_key``.

    Weekly templates are due every week; monthly ones only in the week that
    contains the first day of a month.
    """
    if not template.is_active:
        return False
    if template.frequency == Frequency.monthly:
        return week_contains_month_start(week_key)
    return True


def build_instance(template: RecurringTask, week_key: str, now: datetime) -> Task:
    if template.preferred_day is not None:
        status = TaskStatus(template.preferred_day)
        week_id = week_key
    else:
        status = TaskStatus.backlog
        week_id = None
    return Task(
        title=template.title,
        description=template.description,
        priority=template.priority,
        status=status,
        week_id=week_id,
        recurring_task_id=template.id,
        recurrence_week_id=week_key,
        created_at=now,
    )


def plan_recurring_tasks(
    templates: Iterable[RecurringTask],
    tasks: Iterable[Task],
    week_key: str,
    now: datetime,
) -> list[Task]:
    """New tasks to create so each due template has one instance in ``week_key``.

    Instances already generated for the week are found by
    ``(recurring_task_id, recurrence_week_id)``, which survives the instance
    being moved back to the backlog.
    """
    parse_week_key(week_key)
    generated = {
        task.recurring_task_id
        for task in tasks
        if task.recurring_task_id is not None and task.recurrence_week_id == week_key
    }
    planned = [
        build_instance(template, week_key, now)
        for template in templates
        if is_due(template, week_key) and template.id not in generated
    ]
    if planned:
        logger.info("Generating %d recurring task(s) for week %s", len(planned), week_key)
    return planned
