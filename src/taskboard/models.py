from __future__ import annotations

from datetime import datetime
from typing import TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A lightweight record representing one row of the ``tasks`` table as the
    storage backends hand it to the API layer.

    Fields:
    - id: Unique integer identifier, assigned by the store, never reused
    - title: Short title (trimmed, non-empty on input via schemas)
    - completed: Boolean completion flag, false at creation
    - created_at: Creation timestamp; the only ordering key for listing
    """

    id: int
    title: str
    completed: bool
    created_at: datetime
