"""
Task endpoints.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query

from ..core import tasks
from .schemas import TaskCreateRequest, TaskResponse, TaskUpdateRequest

router = APIRouter()


@router.get("", response_model=List[TaskResponse])
def list_tasks_endpoint(
    team_id: int = Query(..., alias="teamId"),
    assigned_to_id: Optional[str] = Query(None, alias="assignedToId"),
    status: Optional[str] = None,
    due_date: Optional[datetime] = Query(None, alias="dueDate"),
):
    """Tasks for a team, earliest due first. `dueDate` keeps tasks due at or before it."""
    return tasks.list_tasks(team_id, assigned_to_id=assigned_to_id, status=status, due_before=due_date)


@router.post("", response_model=TaskResponse, status_code=201)
def create_task_endpoint(request: TaskCreateRequest):
    return tasks.create_task(request.model_dump())


@router.get("/{task_id}", response_model=TaskResponse)
def get_task_endpoint(task_id: int):
    return tasks.get_task(task_id)


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task_endpoint(task_id: int, request: TaskUpdateRequest):
    return tasks.update_task(task_id, request.model_dump(exclude_unset=True))


@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete_task_endpoint(task_id: int):
    return tasks.complete_task(task_id)
