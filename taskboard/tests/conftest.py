"""Shared fixtures: in-memory database, pinned clock and week policy."""

import itertools
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from taskboard.database import get_session
from taskboard.dependencies import get_now, get_slack_webhook_url, get_week_policy
from taskboard.main import app
from taskboard.models import Task, TaskPriority, TaskStatus
from taskboard.weeks import FirstDayOfWeek, WeekPolicy

# Wednesday 2024-06-12, noon in New York. Current week 2024-06-09, next 2024-06-16.
WEDNESDAY_NOON = datetime(2024, 6, 12, 16, 0, tzinfo=timezone.utc)
NEW_YORK_SUNDAY_FIRST = WeekPolicy(ZoneInfo("America/New_York"), FirstDayOfWeek.sunday)


@pytest.fixture(name="now")
def now_fixture() -> datetime:
    return WEDNESDAY_NOON


@pytest.fixture(name="policy")
def policy_fixture() -> WeekPolicy:
    return NEW_YORK_SUNDAY_FIRST


@pytest.fixture(name="make_task")
def make_task_fixture():
    """Factory for detached Task records with increasing ids."""
    ids = itertools.count(1)

    def make(
        status=TaskStatus.backlog,
        week_id=None,
        priority=TaskPriority.medium,
        completed_at=None,
        **fields,
    ) -> Task:
        task_id = next(ids)
        return Task(
            id=task_id,
            title=fields.pop("title", f"Task {task_id}"),
            status=status,
            week_id=week_id,
            priority=priority,
            completed_at=completed_at,
            **fields,
        )

    return make


@pytest.fixture(name="session")
def session_fixture():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session, now: datetime, policy: WeekPolicy):
    """Test client with overridden session, clock, policy and no Slack webhook."""
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_now] = lambda: now
    app.dependency_overrides[get_week_policy] = lambda: policy
    app.dependency_overrides[get_slack_webhook_url] = lambda: ""
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
