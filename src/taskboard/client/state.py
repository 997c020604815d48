"""Client-side task state.

State objects are frozen: every change returns a new TaskListState, so a
reference held by a renderer never changes under it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

MUTABLE_FIELDS = frozenset({"title", "completed"})


@dataclass(frozen=True)
class Task:
    id: int
    title: str
    completed: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Task":
        """Build a Task from a JSON row as returned by the store."""
        return cls(
            id=int(row["id"]),
            title=str(row["title"]),
            completed=bool(row.get("completed", False)),
            created_at=_parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class TaskListState:
    """
    Local mirror of the store.

    ``loading`` is only raised by the full fetch and by create. ``error`` holds
    the most recent failure message; only a new full fetch clears it.
    """

    tasks: Tuple[Task, ...] = ()
    loading: bool = False
    error: Optional[str] = None

    def find(self, task_id: int) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def with_tasks(self, tasks: Iterable[Task]) -> "TaskListState":
        return replace(self, tasks=tuple(tasks))

    def with_appended(self, task: Task) -> "TaskListState":
        return replace(self, tasks=self.tasks + (task,))

    def without(self, task_id: int) -> "TaskListState":
        return replace(self, tasks=tuple(t for t in self.tasks if t.id != task_id))

    def with_field(self, task_id: int, name: str, value: Any) -> "TaskListState":
        if name not in MUTABLE_FIELDS:
            raise ValueError(f"{name!r} is not a mutable task field")
        return replace(
            self,
            tasks=tuple(replace(t, **{name: value}) if t.id == task_id else t for t in self.tasks),
        )

    def with_loading(self, loading: bool) -> "TaskListState":
        return replace(self, loading=loading)

    def with_error(self, error: Optional[str]) -> "TaskListState":
        return replace(self, error=error)


@dataclass(frozen=True)
class FieldChange:
    """
    Compensating action for one optimistic field update.

    The three steps are explicit: ``capture`` reads the previous value from the
    state as it is before the change, ``apply`` writes the new value and
    ``revert`` writes the captured value back. Both write to the task with
    ``task_id`` in whatever state they are given, so overlapping changes on
    other tasks (or a delete of this one) are left alone.
    """

    task_id: int
    name: str
    previous: Any
    new: Any

    @classmethod
    def capture(cls, state: TaskListState, task_id: int, name: str, new: Any) -> Optional["FieldChange"]:
        """Return the change, or None when the task is not in ``state``."""
        if name not in MUTABLE_FIELDS:
            raise ValueError(f"{name!r} is not a mutable task field")
        task = state.find(task_id)
        if task is None:
            return None
        return cls(task_id=task_id, name=name, previous=getattr(task, name), new=new)

    def apply(self, state: TaskListState) -> TaskListState:
        return state.with_field(self.task_id, self.name, self.new)

    def revert(self, state: TaskListState) -> TaskListState:
        return state.with_field(self.task_id, self.name, self.previous)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
