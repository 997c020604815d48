"""HTTP layer of the task client.

One method per store endpoint. Nothing here retries or caches; a failed call
raises TaskApiError and the caller decides what to show.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .state import Task

logger = logging.getLogger(__name__)


class TaskApiError(Exception):
    """A store call failed: transport error or non-2xx response."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TaskApi:
    """Async client for the ``/tasks`` endpoints.

    Args:
        base_url: URL of the tasks collection, e.g. ``http://localhost:8000/tasks``.
        client: Optional pre-built ``httpx.AsyncClient``. When given, the caller
            owns its lifetime.
        transport: Optional transport for the client built here, e.g.
            ``httpx.ASGITransport`` to talk to an app in-process.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(transport=transport)
        self._owns_client = client is None

    async def __aenter__(self) -> "TaskApi":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _send(self, method: str, url: str, json: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.request(method, url, json=json)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TaskApiError(str(exc)) from exc

        if response.is_error:
            message = _message_of(response) or f"HTTP {response.status_code}"
            logger.warning("%s %s returned %d: %s", method, url, response.status_code, message)
            raise TaskApiError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise TaskApiError("response body is not JSON", status_code=response.status_code) from exc

    async def list_tasks(self) -> List[Task]:
        """Return every task, oldest first."""
        data = await self._send("GET", self.base_url)
        rows = data.get("rows") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise TaskApiError("response has no task rows")
        return [_task_of(row) for row in rows]

    async def create_task(self, title: str) -> Optional[Task]:
        """
        Create a task and return it as stored. Stores that only answer with a
        message yield None.
        """
        data = await self._send("POST", self.base_url, json={"title": title})
        row = data.get("task") if isinstance(data, dict) else None
        return None if row is None else _task_of(row)

    async def delete_task(self, task_id: int) -> Dict[str, Any]:
        return await self._send("DELETE", f"{self.base_url}/{task_id}")

    async def edit_title(self, task_id: int, title: str) -> Dict[str, Any]:
        return await self._send("PUT", self.base_url, json={"title": title, "taskId": task_id})

    async def set_completed(self, task_id: int, status: bool) -> Dict[str, Any]:
        return await self._send("PUT", f"{self.base_url}/{task_id}", json={"status": status})


def _message_of(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return None


def _task_of(row: Any) -> Task:
    try:
        return Task.from_row(row)
    except (KeyError, TypeError, ValueError) as exc:
        raise TaskApiError(f"malformed task row: {row!r}") from exc
