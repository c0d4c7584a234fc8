"""Tests for task CRUD, moves and the weekly board."""

from datetime import datetime, timezone

from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlmodel import Session, select

from taskboard.models import Task, TaskPriority, TaskStatus

CURRENT = "2024-06-09"
NEXT = "2024-06-16"


def create(client: TestClient, **body) -> dict:
    body.setdefault("title", "Water plants")
    response = client.post("/api/tasks/", json=body)
    assert response.status_code == 201
    return response.json()


class TestCreateTask:
    def test_defaults_to_backlog(self, client: TestClient):
        data = create(client, title="Fix the fence")
        assert data["title"] == "Fix the fence"
        assert data["status"] == "backlog"
        assert data["priority"] == "medium"
        assert data["week_id"] is None
        assert data["completed_at"] is None
        assert "id" in data

    def test_day_status_joins_current_week(self, client: TestClient):
        data = create(client, status="thursday", priority="high")
        assert data["status"] == "thursday"
        assert data["week_id"] == CURRENT

    def test_empty_title_rejected(self, client: TestClient):
        response = client.post("/api/tasks/", json={"title": ""})
        assert response.status_code == 422

    def test_unknown_status_rejected(self, client: TestClient):
        response = client.post("/api/tasks/", json={"title": "x", "status": "someday"})
        assert response.status_code == 422


class TestReadTasks:
    def test_get_task(self, client: TestClient):
        task_id = create(client)["id"]
        response = client.get(f"/api/tasks/{task_id}")
        assert response.status_code == 200
        assert response.json()["title"] == "Water plants"

    def test_get_missing_task(self, client: TestClient):
        response = client.get("/api/tasks/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Task not found"

    def test_list_filters(self, client: TestClient):
        create(client, title="A", status="monday", priority="high")
        create(client, title="B", priority="high")
        create(client, title="C", status="monday", priority="low")

        assert len(client.get("/api/tasks/").json()) == 3
        monday = client.get("/api/tasks/", params={"status": "monday"}).json()
        assert {task["title"] for task in monday} == {"A", "C"}
        high = client.get("/api/tasks/", params={"priority": "high"}).json()
        assert {task["title"] for task in high} == {"A", "B"}
        week = client.get("/api/tasks/", params={"week_id": CURRENT}).json()
        assert {task["title"] for task in week} == {"A", "C"}

    def test_list_rejects_malformed_week(self, client: TestClient):
        response = client.get("/api/tasks/", params={"week_id": "June"})
        assert response.status_code == 400


class TestUpdateTask:
    def test_partial_update(self, client: TestClient):
        task_id = create(client, title="Old", description="keep me")["id"]
        response = client.put(f"/api/tasks/{task_id}", json={"title": "New", "priority": "low"})
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "New"
        assert data["priority"] == "low"
        assert data["description"] == "keep me"

    def test_update_missing(self, client: TestClient):
        assert client.put("/api/tasks/42", json={"title": "x"}).status_code == 404


class TestMoveTask:
    def test_move_to_day_and_back_to_backlog(self, client: TestClient):
        task_id = create(client)["id"]

        moved = client.patch(f"/api/tasks/{task_id}/status", json={"status": "friday"}).json()
        assert moved["status"] == "friday"
        assert moved["week_id"] == CURRENT

        back = client.patch(f"/api/tasks/{task_id}/status", json={"status": "backlog"}).json()
        assert back["status"] == "backlog"
        assert back["week_id"] is None

    def test_complete_then_reopen_clears_completion(self, client: TestClient):
        task_id = create(client, status="monday")["id"]
        done = client.post(f"/api/tasks/{task_id}/complete").json()
        assert done["status"] == "completed"
        assert done["completed_at"] is not None

        reopened = client.patch(f"/api/tasks/{task_id}/status", json={"status": "tuesday"}).json()
        assert reopened["completed_at"] is None
        assert reopened["week_id"] == CURRENT

    def test_backlog_task_can_be_completed_directly(self, client: TestClient):
        task_id = create(client)["id"]
        data = client.post(f"/api/tasks/{task_id}/complete").json()
        assert data["status"] == "completed"
        assert data["week_id"] == CURRENT
        assert data["completed_at"].startswith("2024-06-12T16:00")

    def test_schedule_into_next_week(self, client: TestClient):
        task_id = create(client)["id"]
        response = client.post(
            f"/api/tasks/{task_id}/schedule", json={"status": "monday", "week_id": NEXT}
        )
        assert response.status_code == 200
        assert response.json()["week_id"] == NEXT

    def test_schedule_rejects_bad_week(self, client: TestClient):
        task_id = create(client)["id"]
        response = client.post(
            f"/api/tasks/{task_id}/schedule", json={"status": "monday", "week_id": "2024-6-16"}
        )
        assert response.status_code == 400
        assert "Malformed week key" in response.json()["detail"]

    def test_schedule_rejects_completed_status(self, client: TestClient):
        task_id = create(client)["id"]
        response = client.post(
            f"/api/tasks/{task_id}/schedule", json={"status": "completed", "week_id": NEXT}
        )
        assert response.status_code == 422


class TestDeleteTask:
    def test_delete(self, client: TestClient):
        task_id = create(client)["id"]
        assert client.delete(f"/api/tasks/{task_id}").status_code == 204
        assert client.get(f"/api/tasks/{task_id}").status_code == 404

    def test_delete_missing(self, client: TestClient):
        assert client.delete("/api/tasks/7").status_code == 404


class TestBoard:
    def test_board_buckets_current_week_and_backlog(self, client: TestClient, session: Session):
        create(client, title="low", status="monday", priority="low")
        create(client, title="high", status="monday", priority="high")
        create(client, title="someday")
        session.add(Task(title="old", status=TaskStatus.monday, week_id="2024-06-02"))
        session.add(Task(title="ahead", status=TaskStatus.monday, week_id=NEXT))
        session.commit()

        board = client.get("/api/tasks/board").json()
        assert board["week_id"] == CURRENT
        assert board["next_week_id"] == NEXT
        assert board["week_range"] == {"start": "Jun 9", "end": "Jun 15"}
        assert board["days"][0] == {"day": "sunday", "date": "Jun 9"}
        assert len(board["columns"]) == 9
        assert [task["title"] for task in board["columns"]["monday"]] == ["high", "low"]
        assert [task["title"] for task in board["columns"]["backlog"]] == ["someday"]

    def test_next_week_board(self, client: TestClient, session: Session):
        session.add(Task(title="ahead", status=TaskStatus.tuesday, week_id=NEXT))
        session.commit()
        board = client.get(f"/api/tasks/week/{NEXT}").json()
        assert board["week_id"] == NEXT
        assert [task["title"] for task in board["columns"]["tuesday"]] == ["ahead"]

    def test_week_board_rejects_bad_key(self, client: TestClient):
        assert client.get("/api/tasks/week/soon").status_code == 400

    def test_stored_unknown_status_fails_loudly(self, client: TestClient, session: Session):
        session.connection().execute(text(
            "INSERT INTO task (title, priority, status, week_id, created_at, is_commitment) "
            "VALUES ('Mystery', 'medium', 'someday', '2024-06-09', '2024-06-01 00:00:00', 0)"
        ))
        session.commit()

        response = client.get("/api/tasks/board")
        assert response.status_code == 500
        assert "Unknown task status" in response.json()["detail"]

    def test_known_status_round_trips_as_enum(self, session: Session):
        session.add(Task(title="Sweep", status=TaskStatus.friday, week_id=CURRENT))
        session.commit()
        session.expire_all()
        task = session.exec(select(Task).where(Task.status == TaskStatus.friday)).one()
        assert task.status is TaskStatus.friday

    def test_oldest_backlog(self, client: TestClient, session: Session):
        for day, title in ((20, "newer"), (3, "oldest"), (10, "middle")):
            session.add(Task(title=title, created_at=datetime(2024, 5, day, tzinfo=timezone.utc)))
        session.add(Task(title="scheduled", status=TaskStatus.monday, week_id=CURRENT,
                         priority=TaskPriority.high, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)))
        session.commit()

        response = client.get("/api/tasks/backlog/oldest", params={"limit": 2})
        assert [task["title"] for task in response.json()] == ["oldest", "middle"]
