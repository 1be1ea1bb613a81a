# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.db.store import TaskStore
from app.features.tasks.broadcast import TaskBroadcaster
from app.features.tasks.services import TaskService
from app.main import create_app


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throw-away SQLite file (no .env lookup)."""
    return Settings(
        _env_file=None,
        ENV="test",
        SQLITE_PATH=str(tmp_path / "tasks.db"),
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def store(settings: Settings) -> Iterator[TaskStore]:
    task_store = TaskStore(settings.DATABASE_URL)
    task_store.open()
    yield task_store
    task_store.close()


@pytest.fixture()
def broadcaster() -> TaskBroadcaster:
    return TaskBroadcaster(max_pending=16)


@pytest.fixture()
def service(store: TaskStore, broadcaster: TaskBroadcaster) -> TaskService:
    return TaskService(store, broadcaster)


@pytest.fixture()
def client(settings: Settings) -> Iterator[TestClient]:
    """TestClient with lifespan: the store is opened and closed around each test."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client
