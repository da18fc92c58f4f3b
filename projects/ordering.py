# projects/ordering.py
"""
Kanban column ordering for tasks.

`order` is unique per (project, status) at the database level, so rows are
never written straight to their final position. A move first parks every
affected row on a distinct negative value, then writes the final dense
0..n-1 positions.
"""
import logging

from django.db import transaction
from django.db.models import Max

from .models import Project, Task

logger = logging.getLogger("taskboard.projects.ordering")


def next_order(project_id, status):
    """Position just below the last task in a column."""
    current = (
        Task.objects
        .filter(project_id=project_id, status=status)
        .aggregate(max_order=Max("order"))["max_order"]
    )
    return 0 if current is None else current + 1


def _lock_project(project_id):
    """Serialize ordering writes per project; column locks miss empty columns."""
    Project.objects.select_for_update().only("pk").get(pk=project_id)


def _column(project_id, status):
    return list(
        Task.objects
        .select_for_update()
        .filter(project_id=project_id, status=status)
        .order_by("order", "id")
    )


def _write_positions(columns):
    """
    columns: list of (status, [task, ...]) in final order.
    Two passes keep the unique constraint satisfied after every row update.
    """
    parked = -1
    for _, tasks in columns:
        for task in tasks:
            Task.objects.filter(pk=task.pk).update(order=parked)
            parked -= 1

    for status, tasks in columns:
        for position, task in enumerate(tasks):
            Task.objects.filter(pk=task.pk).update(status=status, order=position)
            task.status = status
            task.order = position


def create_task(project, **fields):
    """Create a task at the bottom of its column."""
    status = fields.pop("status", Task.STATUS_TODO)
    with transaction.atomic():
        _lock_project(project.pk)
        task = Task.objects.create(
            project=project,
            status=status,
            order=next_order(project.pk, status),
            **fields,
        )
    return task


def move_task(task, status, index):
    """
    Move `task` to position `index` of column `status` (drag-and-drop).
    `index` is clamped to the destination column. Source and destination
    columns are renumbered densely. Returns the refreshed task.
    """
    if status not in dict(Task.STATUS_CHOICES):
        raise ValueError(f"Invalid status: {status}")

    with transaction.atomic():
        _lock_project(task.project_id)
        task.refresh_from_db()
        source_status = task.status
        source = [t for t in _column(task.project_id, source_status) if t.pk != task.pk]

        if status == source_status:
            destination = source
        else:
            destination = _column(task.project_id, status)

        index = max(0, min(int(index), len(destination)))
        destination.insert(index, task)

        columns = [(status, destination)]
        if status != source_status:
            columns.append((source_status, source))

        _write_positions(columns)

    logger.info(
        "Task moved: task=%s, project=%s, from=%s, to=%s, index=%s",
        task.pk, task.project_id, source_status, status, index,
    )
    task.refresh_from_db()
    return task


def change_status(task, status):
    """Status change outside drag-and-drop: append to the end of the new column."""
    if status == task.status:
        return task
    destination_size = Task.objects.filter(project_id=task.project_id, status=status).count()
    return move_task(task, status, destination_size)
