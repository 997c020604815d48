"""Task client controller.

Owns the TaskListState and applies each user action as an optimistic update
reconciled against the store:

- fetch_all replaces the list wholesale
- create appends the stored task once the store answers
- delete removes at once and is not restored on failure
- toggle_complete and edit_title apply at once and revert on failure
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from .api import TaskApi, TaskApiError
from .state import FieldChange, Task, TaskListState

logger = logging.getLogger(__name__)

Listener = Callable[[TaskListState], None]

LOAD_FAILED = "Failed to load tasks. Check your internet connection."
CREATE_FAILED = "Failed to create task."
DELETE_FAILED = "Failed to delete task."
TOGGLE_FAILED = "Failed to update task status."
EDIT_FAILED = "Failed to edit task title."


class TaskClient:
    def __init__(self, api: TaskApi, state: Optional[TaskListState] = None) -> None:
        self.api = api
        self._state = state or TaskListState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> TaskListState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new state. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, state: TaskListState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _fail(self, message: str, exc: TaskApiError) -> None:
        logger.warning("%s reason: %s", message, exc)
        self._set(self._state.with_error(message))

    async def fetch_all(self) -> bool:
        """Load the full list. On failure the previous tasks stay in place."""
        self._set(self._state.with_loading(True).with_error(None))
        try:
            tasks = await self.api.list_tasks()
            self._set(self._state.with_tasks(tasks))
        except TaskApiError as exc:
            self._fail(LOAD_FAILED, exc)
            return False
        finally:
            self._set(self._state.with_loading(False))
        return True

    async def create_task(self, title: str) -> Optional[Task]:
        """
        Create a task from a trimmed title; blank titles are ignored.

        A store that does not echo the created task triggers a full fetch so
        the list never holds anything but real tasks.
        """
        title = title.strip()
        if not title:
            return None

        self._set(self._state.with_loading(True))
        try:
            created = await self.api.create_task(title)
            if created is not None:
                self._set(self._state.with_appended(created))
        except TaskApiError as exc:
            self._fail(CREATE_FAILED, exc)
            return None
        finally:
            self._set(self._state.with_loading(False))

        if created is None:
            await self.fetch_all()
        return created

    async def delete_task(self, task_id: int) -> bool:
        self._set(self._state.without(task_id))
        try:
            await self.api.delete_task(task_id)
        except TaskApiError as exc:
            self._fail(DELETE_FAILED, exc)
            return False
        return True

    async def toggle_complete(self, task_id: int, completed: Optional[bool] = None) -> bool:
        """
        Set the completed flag of a task; ``None`` flips the current value.
        Unknown ids are ignored.
        """
        if completed is None:
            task = self._state.find(task_id)
            if task is None:
                return False
            completed = not task.completed

        change = FieldChange.capture(self._state, task_id, "completed", completed)
        if change is None:
            return False
        return await self._apply_change(
            change, lambda: self.api.set_completed(task_id, completed), TOGGLE_FAILED
        )

    async def edit_title(self, task_id: int, title: str) -> bool:
        """
        Rename a task. Blank titles and titles equal to the current one are ignored.
        """
        title = title.strip()
        if not title:
            return False
        change = FieldChange.capture(self._state, task_id, "title", title)
        if change is None or change.previous == title:
            return False
        return await self._apply_change(change, lambda: self.api.edit_title(task_id, title), EDIT_FAILED)

    async def _apply_change(
        self, change: FieldChange, send: Callable[[], Awaitable[Any]], failure: str
    ) -> bool:
        self._set(change.apply(self._state))
        try:
            await send()
        except TaskApiError as exc:
            self._set(change.revert(self._state))
            self._fail(failure, exc)
            return False
        return True
