"""Tests for the Slack notification endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from taskboard.dependencies import get_slack_webhook_url
from taskboard.errors import SlackWebhookError
from taskboard.main import app
from taskboard.models import Task, TaskPriority, TaskStatus

WEBHOOK = "https://hooks.slack.test/services/T000/B000/XXXX"
CURRENT = "2024-06-09"


@pytest.fixture()
def slack(client: TestClient):
    """Configure a webhook and capture outgoing messages."""
    app.dependency_overrides[get_slack_webhook_url] = lambda: WEBHOOK
    with patch("taskboard.routes.notifications.send_to_slack", new_callable=AsyncMock) as send:
        yield send


def add(session: Session, *tasks: Task) -> None:
    for task in tasks:
        session.add(task)
    session.commit()


class TestNotConfigured:
    @pytest.mark.parametrize(
        "path", ["daily-tasks", "end-of-day", "streak-alert", "weekly-recap"]
    )
    def test_reports_missing_webhook(self, client: TestClient, path: str):
        response = client.post(f"/api/notifications/{path}")
        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "SLACK_WEBHOOK_URL not configured"}


class TestDailyTasks:
    def test_sends_todays_column(self, client: TestClient, session: Session, slack: AsyncMock):
        add(
            session,
            Task(title="Pay rent", status=TaskStatus.wednesday, week_id=CURRENT, priority=TaskPriority.high),
            Task(title="Call mom", status=TaskStatus.wednesday, week_id=CURRENT),
            Task(title="Not today", status=TaskStatus.thursday, week_id=CURRENT),
        )
        data = client.post("/api/notifications/daily-tasks").json()
        assert data == {"success": True, "task_count": 2, "day": "wednesday"}

        slack.assert_awaited_once()
        url, message = slack.await_args.args
        assert url == WEBHOOK
        assert message["text"] == "Wednesday's Tasks: 2 tasks"

    def test_explicit_day(self, client: TestClient, session: Session, slack: AsyncMock):
        add(session, Task(title="Market", status=TaskStatus.saturday, week_id=CURRENT))
        data = client.post("/api/notifications/daily-tasks", params={"day_name": "saturday"}).json()
        assert data["day"] == "saturday"
        assert data["task_count"] == 1

    def test_skips_empty_day(self, client: TestClient, slack: AsyncMock):
        data = client.post("/api/notifications/daily-tasks").json()
        assert data == {"success": True, "task_count": 0, "day": "wednesday"}
        slack.assert_not_awaited()

    def test_webhook_failure_reported(self, client: TestClient, session: Session, slack: AsyncMock):
        add(session, Task(title="Pay rent", status=TaskStatus.wednesday, week_id=CURRENT))
        slack.side_effect = SlackWebhookError(500, "oops")
        data = client.post("/api/notifications/daily-tasks").json()
        assert data["success"] is False
        assert "500" in data["error"]

    def test_network_failure_reported(self, client: TestClient, session: Session, slack: AsyncMock):
        add(session, Task(title="Pay rent", status=TaskStatus.wednesday, week_id=CURRENT))
        slack.side_effect = httpx.ConnectError("refused")
        assert client.post("/api/notifications/daily-tasks").json()["success"] is False


class TestStreakAlert:
    def test_alerts_when_streak_at_risk(self, client: TestClient, session: Session, slack: AsyncMock):
        add(session, Task(title="x", status=TaskStatus.completed, week_id=CURRENT,
                          completed_at=datetime(2024, 6, 11, 15, 0, tzinfo=timezone.utc)))
        data = client.post("/api/notifications/streak-alert").json()
        assert data == {"success": True, "current_streak": 1}
        slack.assert_awaited_once()

    def test_quiet_when_done_today(self, client: TestClient, session: Session, slack: AsyncMock, now):
        add(session, Task(title="x", status=TaskStatus.completed, week_id=CURRENT, completed_at=now))
        data = client.post("/api/notifications/streak-alert").json()
        assert data["skipped"] is True
        slack.assert_not_awaited()

    def test_quiet_without_streak(self, client: TestClient, slack: AsyncMock):
        assert client.post("/api/notifications/streak-alert").json()["skipped"] is True
        slack.assert_not_awaited()


class TestSummaries:
    def test_end_of_day(self, client: TestClient, session: Session, slack: AsyncMock, now):
        add(
            session,
            Task(title="Done", status=TaskStatus.completed, week_id=CURRENT, completed_at=now),
            Task(title="Open", status=TaskStatus.wednesday, week_id=CURRENT),
        )
        data = client.post("/api/notifications/end-of-day").json()
        assert data == {"success": True, "completed_count": 1, "remaining_count": 1}

    def test_end_of_day_skips_quiet_day(self, client: TestClient, slack: AsyncMock):
        assert client.post("/api/notifications/end-of-day").json()["skipped"] is True
        slack.assert_not_awaited()

    def test_weekly_recap(self, client: TestClient, session: Session, slack: AsyncMock, now):
        add(session, Task(title="Done", status=TaskStatus.completed, week_id="2024-06-02", completed_at=now))
        data = client.post("/api/notifications/weekly-recap").json()
        assert data == {"success": True, "week_id": "2024-06-02"}
        _, message = slack.await_args.args
        assert message["text"] == "Weekly recap: 1/1 tasks completed"


class TestOffloadsDatabaseReads:
    @pytest.mark.parametrize(
        "path, reader",
        [
            ("daily-tasks", "_daily_message"),
            ("end-of-day", "_end_of_day_message"),
            ("streak-alert", "_streak_alert_message"),
            ("weekly-recap", "_weekly_recap_message"),
        ],
    )
    def test_reads_run_in_threadpool(self, client: TestClient, slack: AsyncMock, path: str, reader: str):
        offloaded = []

        async def run_inline(func, *args, **kwargs):
            offloaded.append(func.__name__)
            return func(*args, **kwargs)

        with patch("taskboard.routes.notifications.run_in_threadpool", new=run_inline):
            assert client.post(f"/api/notifications/{path}").status_code == 200
        assert offloaded == [reader]
