"""
Daily task workflow: creation, field edits, listing and completion.

completed_at is owned by the workflow: it is stamped when a task moves to
COMPLETED (through complete_task or a status edit) and cleared when a
completed task is reopened.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from . import dao
from .db import transaction
from .errors import NotFoundError, ValidationError
from .schema import Task, TaskPriority, TaskStatus, utcnow, values_of
from ..util.logging import logger


def create_task(data: Dict[str, Any]) -> Task:
    return dao.create_task(data)


def get_task(task_id: int) -> Task:
    task = dao.get_task(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


def _check_enum_field(patch: Dict[str, Any], name: str, field: str, valid: List[str]):
    if name not in patch:
        return
    if patch[name] is None:
        raise ValidationError(f"{field} cannot be null", field=field)
    if patch[name] not in valid:
        raise ValidationError(f"{field} must be one of: {valid}", field=field)


def update_task(task_id: int, patch: Dict[str, Any]) -> Task:
    """Field update. A status change to or from COMPLETED keeps completed_at in step."""
    patch = dict(patch)
    if 'completed_at' in patch:
        raise ValidationError("completedAt is set by task completion", field="completedAt")

    for name in ('status', 'priority'):
        if isinstance(patch.get(name), (TaskStatus, TaskPriority)):
            patch[name] = patch[name].value
    _check_enum_field(patch, 'status', 'status', values_of(TaskStatus))
    _check_enum_field(patch, 'priority', 'priority', values_of(TaskPriority))

    completed = TaskStatus.COMPLETED.value
    with transaction() as conn:
        current = dao.get_task(task_id, conn=conn)
        if current is None:
            raise NotFoundError("Task", task_id)

        new_status = patch.get('status')
        if new_status == completed and current.status != completed:
            patch['completed_at'] = utcnow()
        elif new_status is not None and new_status != completed and current.status == completed:
            patch['completed_at'] = None

        task = dao.update_task(task_id, patch, conn=conn)

    if 'completed_at' in patch and task.completed_at is not None:
        logger.log_task_completion(task_id, details={"via": "update"})
    else:
        logger.log_entity_write("task", "update", task_id)
    return task


def list_tasks(team_id: int, assigned_to_id: Optional[str] = None, status: Optional[str] = None,
               due_before: Optional[datetime] = None) -> List[Task]:
    """Tasks of a team, earliest due first.

    `due_before` keeps tasks due at or before that instant.
    """
    if status and status not in values_of(TaskStatus):
        raise ValidationError(f"status must be one of: {values_of(TaskStatus)}", field="status")
    return dao.list_tasks(team_id, assigned_to_id=assigned_to_id, status=status, due_before=due_before)


def complete_task(task_id: int) -> Task:
    """Mark a task completed and stamp completed_at.

    Completing an already completed task returns it unchanged so the original
    completion time survives.
    """
    task = dao.get_task(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)

    if task.status == TaskStatus.COMPLETED.value and task.completed_at is not None:
        logger.log_task_completion(task_id, "noop", {"completed_at": task.completed_at.isoformat()})
        return task

    completed = dao.update_task(task_id, {
        'status': TaskStatus.COMPLETED.value,
        'completed_at': utcnow(),
    })
    logger.log_task_completion(task_id)
    return completed
