"""Client side of taskboard: HTTP layer, local state and rendering."""

from .api import TaskApi, TaskApiError
from .app import TaskClient
from .state import FieldChange, Task, TaskListState

__all__ = ["FieldChange", "Task", "TaskApi", "TaskApiError", "TaskClient", "TaskListState"]
