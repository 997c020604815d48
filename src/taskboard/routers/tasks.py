from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator

from fastapi import APIRouter, Depends, Request, status

from ..repositories import Repository, StoreError
from ..schemas import (
    MessageOut,
    TaskCreate,
    TaskCreatedOut,
    TaskListOut,
    TaskOut,
    TaskStatusUpdate,
    TaskTitleEdit,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)

# Keyed by endpoint name; the validation handler in main looks messages up the same way.
FAILURE_MESSAGES: Dict[str, str] = {
    "get_all_tasks": "Failed to get all tasks.",
    "create_new_task": "Failed to add task.",
    "delete_task": "Task deletion failed.",
    "edit_task": "Task edit failed",
    "mark_as_complete": "task cannot be marked as complete",
}


class TaskOperationFailed(Exception):
    """
    Raised by an endpoint when its operation failed. Rendered as
    ``400 {"message": message}`` by the application.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@contextmanager
def _failing_as(operation: str) -> Iterator[None]:
    try:
        yield
    except StoreError as exc:
        logger.warning("%s reason: %s", FAILURE_MESSAGES[operation], exc)
        raise TaskOperationFailed(FAILURE_MESSAGES[operation]) from exc


def get_repository(request: Request) -> Repository:
    """
    Dependency returning the repository opened for this application.
    """
    return request.app.state.repository


_FAILURE_RESPONSE = {400: {"model": MessageOut, "description": "Operation failed"}}


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListOut,
    summary="List Tasks",
    description="Return every task ordered by creation time, oldest first.",
    responses=_FAILURE_RESPONSE,
)
def get_all_tasks(repo: Repository = Depends(get_repository)) -> TaskListOut:
    with _failing_as("get_all_tasks"):
        rows = repo.list_all()
    logger.info("%d items fetched", len(rows))
    return TaskListOut(rows=[TaskOut(**row) for row in rows])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskCreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task with the given title. The stored task is echoed back.",
    responses=_FAILURE_RESPONSE,
)
def create_new_task(payload: TaskCreate, repo: Repository = Depends(get_repository)) -> TaskCreatedOut:
    with _failing_as("create_new_task"):
        created = repo.create(payload.title)
    return TaskCreatedOut(message="Task added successfully", task=TaskOut(**created))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=MessageOut,
    summary="Delete Task",
    description="Delete a task by id. Deleting an unknown id also succeeds.",
    responses=_FAILURE_RESPONSE,
)
def delete_task(task_id: int, repo: Repository = Depends(get_repository)) -> MessageOut:
    with _failing_as("delete_task"):
        removed = repo.delete(task_id)
    logger.debug("Deleted task %s (%d rows)", task_id, removed)
    return MessageOut(message="Task deleted successfully")


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    summary="Edit Task Title",
    description="Replace the title of the task named by taskId in the body.",
    responses=_FAILURE_RESPONSE,
)
def edit_task(payload: TaskTitleEdit, repo: Repository = Depends(get_repository)) -> MessageOut:
    with _failing_as("edit_task"):
        changed = repo.edit_title(payload.task_id, payload.title)
    logger.debug("Edited title of task %s (%d rows)", payload.task_id, changed)
    return MessageOut(message="Task edited successfully")


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=MessageOut,
    summary="Set Task Completion",
    description="Set the completed flag of a task to the given status.",
    responses=_FAILURE_RESPONSE,
)
def mark_as_complete(
    task_id: int, payload: TaskStatusUpdate, repo: Repository = Depends(get_repository)
) -> MessageOut:
    with _failing_as("mark_as_complete"):
        changed = repo.set_completed(task_id, payload.status)
    logger.debug("Set completed=%s on task %s (%d rows)", payload.status, task_id, changed)
    return MessageOut(message="Task status updated")
