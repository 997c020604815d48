from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_title(value: str) -> str:
    """
    Strip surrounding whitespace and reject titles that end up empty.
    """
    if value is None:
        raise ValueError("title is required")
    s = value.strip()
    if not s:
        raise ValueError("title must not be empty")
    return s


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Body of ``POST /tasks``.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"title": "Buy milk"}})

    title: str = Field(..., description="Short title for the task", min_length=1)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)


# PUBLIC_INTERFACE
class TaskTitleEdit(BaseModel):
    """
    Body of ``PUT /tasks``. The id travels in the body as ``taskId``.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"title": "Buy oat milk", "taskId": 1}},
    )

    title: str = Field(..., description="New title for the task", min_length=1)
    task_id: int = Field(..., alias="taskId", description="Identifier of the task to rename")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)


# PUBLIC_INTERFACE
class TaskStatusUpdate(BaseModel):
    """
    Body of ``PUT /tasks/{id}``.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"status": True}})

    status: bool = Field(..., description="New completion status")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a Task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123000",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")


class TaskListOut(BaseModel):
    rows: List[TaskOut] = Field(..., description="All tasks ordered by created_at ascending")


class MessageOut(BaseModel):
    message: str = Field(..., description="Human readable outcome of the operation")


class TaskCreatedOut(MessageOut):
    """
    Creation response. ``task`` carries the stored row so clients can show the
    store-assigned ``id`` and ``created_at`` without a refetch.
    """

    task: TaskOut = Field(..., description="The created task")
