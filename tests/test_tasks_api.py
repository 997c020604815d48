from datetime import datetime
from typing import List

import pytest
from fastapi.testclient import TestClient

from taskboard.main import create_app
from taskboard.models import TaskEntity
from taskboard.repositories import InMemoryRepository, Repository, StoreError
from taskboard.settings import Settings


def make_settings(backend="memory", db_path="./data/tasks.db"):
    return Settings(
        host="127.0.0.1",
        port=8000,
        persistence_backend=backend,
        sqlite_db_path=db_path,
        cors_allow_origins=["*"],
        log_level="WARNING",
        api_url="http://testserver/tasks",
    )


@pytest.fixture
def client():
    app = create_app(make_settings(), repository=InMemoryRepository())
    return TestClient(app)


def list_rows(client) -> List[dict]:
    res = client.get("/tasks")
    assert res.status_code == 200
    return res.json()["rows"]


def create(client, title) -> dict:
    res = client.post("/tasks", json={"title": title})
    assert res.status_code == 201
    return res.json()["task"]


def assert_task_shape(task: dict):
    for key in ["id", "title", "completed", "created_at"]:
        assert key in task
    assert isinstance(task["id"], int)
    assert isinstance(task["title"], str)
    assert isinstance(task["completed"], bool)
    datetime.fromisoformat(task["created_at"])


class FailingRepository(Repository):
    """Every statement fails the way a broken database connection would."""

    def list_all(self) -> List[TaskEntity]:
        raise StoreError("connection refused")

    def create(self, title: str) -> TaskEntity:
        raise StoreError("connection refused")

    def delete(self, task_id: int) -> int:
        raise StoreError("connection refused")

    def edit_title(self, task_id: int, title: str) -> int:
        raise StoreError("connection refused")

    def set_completed(self, task_id: int, completed: bool) -> int:
        raise StoreError("connection refused")


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] == "memory"


class TestTasksCRUD:
    def test_list_starts_empty(self, client):
        res = client.get("/tasks")
        assert res.status_code == 200
        assert res.json() == {"rows": []}

    def test_create_returns_message_and_task(self, client):
        res = client.post("/tasks", json={"title": "  Buy milk  "})
        assert res.status_code == 201
        body = res.json()
        assert body["message"] == "Task added successfully"
        assert_task_shape(body["task"])
        # Title is stored trimmed
        assert body["task"]["title"] == "Buy milk"
        assert body["task"]["completed"] is False

    def test_create_then_list_grows_by_one(self, client):
        create(client, "First")
        before = list_rows(client)
        create(client, "Second")
        after = list_rows(client)
        assert len(after) == len(before) + 1
        assert after[-1]["title"] == "Second"
        assert after[-1]["completed"] is False

    def test_list_is_ordered_by_created_at(self, client):
        for title in ["a", "b", "c", "d"]:
            create(client, title)
        rows = list_rows(client)
        assert [r["title"] for r in rows] == ["a", "b", "c", "d"]
        created = [datetime.fromisoformat(r["created_at"]) for r in rows]
        assert created == sorted(created)

    def test_toggle_twice_restores_status(self, client):
        tid = create(client, "Toggle me")["id"]

        res = client.put(f"/tasks/{tid}", json={"status": True})
        assert res.status_code == 200
        assert res.json() == {"message": "Task status updated"}
        assert list_rows(client)[0]["completed"] is True

        res = client.put(f"/tasks/{tid}", json={"status": False})
        assert res.status_code == 200
        assert list_rows(client)[0]["completed"] is False

    def test_edit_title_changes_only_that_task(self, client):
        first = create(client, "One")
        second = create(client, "Two")
        third = create(client, "Three")

        res = client.put("/tasks", json={"title": "Deux", "taskId": second["id"]})
        assert res.status_code == 201
        assert res.json() == {"message": "Task edited successfully"}

        titles = {r["id"]: r["title"] for r in list_rows(client)}
        assert titles == {first["id"]: "One", second["id"]: "Deux", third["id"]: "Three"}

    def test_edit_does_not_touch_completion(self, client):
        tid = create(client, "Keep status")["id"]
        client.put(f"/tasks/{tid}", json={"status": True})
        client.put("/tasks", json={"title": "Renamed", "taskId": tid})
        row = list_rows(client)[0]
        assert row["title"] == "Renamed"
        assert row["completed"] is True

    def test_delete_removes_task(self, client):
        keep = create(client, "Keep")
        gone = create(client, "Gone")

        res = client.delete(f"/tasks/{gone['id']}")
        assert res.status_code == 200
        assert res.json() == {"message": "Task deleted successfully"}
        assert [r["id"] for r in list_rows(client)] == [keep["id"]]

    def test_delete_unknown_id_still_succeeds(self, client):
        create(client, "Untouched")
        before = list_rows(client)
        res = client.delete("/tasks/424242")
        assert res.status_code == 200
        assert res.json()["message"] == "Task deleted successfully"
        assert list_rows(client) == before

    def test_edit_and_toggle_unknown_id_still_succeed(self, client):
        res = client.put("/tasks", json={"title": "Nobody", "taskId": 999})
        assert res.status_code == 201
        res = client.put("/tasks/999", json={"status": True})
        assert res.status_code == 200
        assert list_rows(client) == []

    def test_ids_are_not_reused_after_delete(self, client):
        first = create(client, "First")
        client.delete(f"/tasks/{first['id']}")
        second = create(client, "Second")
        assert second["id"] > first["id"]

    def test_end_to_end_scenario(self, client):
        tid = create(client, "Buy milk")["id"]
        rows = list_rows(client)
        assert len(rows) == 1 and rows[0]["completed"] is False

        client.put(f"/tasks/{tid}", json={"status": True})
        rows = list_rows(client)
        assert len(rows) == 1 and rows[0]["completed"] is True

        client.put("/tasks", json={"title": "Buy oat milk", "taskId": tid})
        assert list_rows(client)[0]["title"] == "Buy oat milk"

        client.delete(f"/tasks/{tid}")
        assert list_rows(client) == []


class TestFailures:
    def test_blank_title_is_rejected_with_create_message(self, client):
        res = client.post("/tasks", json={"title": "   "})
        assert res.status_code == 400
        assert res.json() == {"message": "Failed to add task."}
        assert list_rows(client) == []

    def test_missing_title_is_rejected(self, client):
        res = client.post("/tasks", json={})
        assert res.status_code == 400
        assert res.json() == {"message": "Failed to add task."}

    def test_edit_without_task_id(self, client):
        res = client.put("/tasks", json={"title": "No id"})
        assert res.status_code == 400
        assert res.json() == {"message": "Task edit failed"}

    def test_edit_with_blank_title(self, client):
        tid = create(client, "Original")["id"]
        res = client.put("/tasks", json={"title": " ", "taskId": tid})
        assert res.status_code == 400
        assert res.json() == {"message": "Task edit failed"}
        assert list_rows(client)[0]["title"] == "Original"

    def test_status_must_be_boolean(self, client):
        tid = create(client, "Status")["id"]
        res = client.put(f"/tasks/{tid}", json={"status": "maybe"})
        assert res.status_code == 400
        assert res.json() == {"message": "task cannot be marked as complete"}

    def test_non_integer_ids(self, client):
        res = client.delete("/tasks/abc")
        assert res.status_code == 400
        assert res.json() == {"message": "Task deletion failed."}

        res = client.put("/tasks/abc", json={"status": True})
        assert res.status_code == 400
        assert res.json() == {"message": "task cannot be marked as complete"}

    @pytest.mark.parametrize(
        "method, path, body, message",
        [
            ("GET", "/tasks", None, "Failed to get all tasks."),
            ("POST", "/tasks", {"title": "x"}, "Failed to add task."),
            ("DELETE", "/tasks/1", None, "Task deletion failed."),
            ("PUT", "/tasks", {"title": "x", "taskId": 1}, "Task edit failed"),
            ("PUT", "/tasks/1", {"status": True}, "task cannot be marked as complete"),
        ],
    )
    def test_store_errors_collapse_to_400(self, method, path, body, message):
        client = TestClient(create_app(make_settings(), repository=FailingRepository()))
        res = client.request(method, path, json=body)
        assert res.status_code == 400
        assert res.json() == {"message": message}


class TestCors:
    def test_any_origin_is_allowed(self, client):
        res = client.options(
            "/tasks",
            headers={"Origin": "https://example.org", "Access-Control-Request-Method": "PUT"},
        )
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] in ("*", "https://example.org")


class TestIdsOutsideStoreRange:
    TOO_BIG = 2**64

    @pytest.fixture
    def sqlite_client(self, tmp_path):
        settings = make_settings(backend="sqlite", db_path=str(tmp_path / "tasks.db"))
        with TestClient(create_app(settings)) as client:
            yield client

    def test_id_taking_routes_answer_400(self, sqlite_client):
        res = sqlite_client.delete(f"/tasks/{self.TOO_BIG}")
        assert res.status_code == 400
        assert res.json() == {"message": "Task deletion failed."}

        res = sqlite_client.put(f"/tasks/{self.TOO_BIG}", json={"status": True})
        assert res.status_code == 400
        assert res.json() == {"message": "task cannot be marked as complete"}

        res = sqlite_client.put("/tasks", json={"title": "x", "taskId": self.TOO_BIG})
        assert res.status_code == 400
        assert res.json() == {"message": "Task edit failed"}

    def test_store_keeps_working_afterwards(self, sqlite_client):
        sqlite_client.delete(f"/tasks/{self.TOO_BIG}")
        res = sqlite_client.post("/tasks", json={"title": "Still fine"})
        assert res.status_code == 201
        assert [r["title"] for r in sqlite_client.get("/tasks").json()["rows"]] == ["Still fine"]
