from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import List

from .models import TaskEntity
from .settings import Settings


class StoreError(Exception):
    """Raised by a storage backend when a statement cannot be carried out."""


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for task storage backends.

    Mutations report the number of affected rows instead of raising on a
    missing id; callers decide whether zero rows matters.
    """

    @abstractmethod
    def list_all(self) -> List[TaskEntity]:
        """Return every task ordered by created_at ascending (id breaks ties)."""

    @abstractmethod
    def create(self, title: str) -> TaskEntity:
        """Insert a task with the given title and return the stored row."""

    @abstractmethod
    def delete(self, task_id: int) -> int:
        """Delete a task by id. Return the number of rows removed."""

    @abstractmethod
    def edit_title(self, task_id: int, title: str) -> int:
        """Replace the title of a task. Return the number of rows changed."""

    @abstractmethod
    def set_completed(self, task_id: int, completed: bool) -> int:
        """Set the completion flag of a task. Return the number of rows changed."""

    def close(self) -> None:
        """Release any resources held by the backend."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TaskEntity] = {}
        self._next_id = 1

    def _now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def list_all(self) -> List[TaskEntity]:
        with self._lock:
            items = sorted(self._items.values(), key=lambda t: (t["created_at"], t["id"]))
            return [t.copy() for t in items]

    def create(self, title: str) -> TaskEntity:
        entity: TaskEntity = {
            "id": self._allocate_id(),
            "title": title,
            "completed": False,
            "created_at": self._now(),
        }
        with self._lock:
            self._items[entity["id"]] = entity
            return entity.copy()

    def delete(self, task_id: int) -> int:
        with self._lock:
            return 0 if self._items.pop(task_id, None) is None else 1

    def edit_title(self, task_id: int, title: str) -> int:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                return 0
            self._items[task_id] = {**existing, "title": title}
            return 1

    def set_completed(self, task_id: int, completed: bool) -> int:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                return 0
            self._items[task_id] = {**existing, "completed": completed}
            return 1


# PUBLIC_INTERFACE
def open_repository(settings: Settings) -> Repository:
    """
    Build the repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by settings.sqlite_db_path
    """
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .db import Database, SQLiteRepository

    database = Database(settings.sqlite_db_path)
    database.init_schema()
    return SQLiteRepository(database)
