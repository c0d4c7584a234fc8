"""Group tasks into the board's nine columns."""

from typing import Iterable

from taskboard.errors import UnknownTaskStatus
from taskboard.models import Task, TaskPriority, TaskStatus

BUCKET_ORDER = tuple(status.value for status in TaskStatus)

_PRIORITY_RANK = {
    TaskPriority.high: 0,
    TaskPriority.medium: 1,
    TaskPriority.low: 2,
}


def priority_rank(priority: TaskPriority | str) -> int:
    """Sort rank of a priority; high sorts first."""
    return _PRIORITY_RANK[TaskPriority(priority)]


def bucket_name(task: Task) -> str:
    """Column a task belongs in, taken from its status alone."""
    try:
        return TaskStatus(task.status).value
    except ValueError:
        raise UnknownTaskStatus(task.status) from None


def bucket_tasks(tasks: Iterable[Task]) -> dict[str, list[Task]]:
    """Partition ``tasks`` by status, each column ordered high -> low priority.

    Every column is present even when empty. ``sorted`` is stable, so tasks
    of equal priority keep their input order.
    """
    buckets: dict[str, list[Task]] = {name: [] for name in BUCKET_ORDER}
    for task in tasks:
        buckets[bucket_name(task)].append(task)
    return {
        name: sorted(column, key=lambda task: priority_rank(task.priority))
        for name, column in buckets.items()
    }
