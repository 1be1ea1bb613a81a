# tests/test_task_service.py

from __future__ import annotations

import pytest

from app.db.store import StorageError, TaskStore
from app.features.tasks.broadcast import (
    INITIAL_TASKS,
    NEW_TASK,
    TASK_DELETED,
    TASK_UPDATED,
    TaskBroadcaster,
)
from app.features.tasks.services import (
    NotFoundError,
    TaskService,
    ValidationError,
    parse_task_id,
)


class RacingStore:
    """
    Wraps a real TaskStore and deletes the task right after the existence
    check, to exercise the lookup/mutation race.
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self.armed = False

    def __getattr__(self, name):
        return getattr(self._store, name)

    def get_by_id(self, task_id: int):
        task = self._store.get_by_id(task_id)
        if self.armed and task is not None:
            self.armed = False
            self._store.delete(task_id)
        return task


class BrokenStore:
    def get_all(self):
        raise StorageError("disk on fire")


# --------------- create ---------------

@pytest.mark.asyncio
async def test_create_trims_and_broadcasts(service: TaskService, broadcaster: TaskBroadcaster) -> None:
    sub = broadcaster.subscribe()

    task = await service.create("  Buy milk  ", "  2 litres ")

    assert task.title == "Buy milk"
    assert task.description == "2 litres"
    assert task.status == "pending"
    assert task.created_at == task.updated_at

    message = await sub.next()
    assert message["event"] == NEW_TASK
    assert message["data"] == task.model_dump(mode="json")
    assert sub.pending == 0


@pytest.mark.asyncio
async def test_create_without_description_keeps_none(service: TaskService) -> None:
    task = await service.create("Buy milk")
    assert task.description is None

    blank = await service.create("Other", "   ")
    assert blank.description == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "title, description",
    [
        ("", None),
        ("    ", None),
        (None, None),
        (42, None),
        ("x" * 101, None),
        ("ok", "d" * 501),
        ("ok", 7),
    ],
)
async def test_create_rejects_invalid_input(
    service: TaskService, store: TaskStore, broadcaster: TaskBroadcaster, title, description
) -> None:
    sub = broadcaster.subscribe()

    with pytest.raises(ValidationError):
        await service.create(title, description)

    assert store.count() == 0
    assert sub.pending == 0


@pytest.mark.asyncio
async def test_create_accepts_limits_after_trim(service: TaskService) -> None:
    task = await service.create(" " + "t" * 100 + " ", " " + "d" * 500 + " ")
    assert len(task.title) == 100
    assert len(task.description) == 500


# --------------- list ---------------

@pytest.mark.asyncio
async def test_list_returns_newest_first(service: TaskService) -> None:
    assert await service.list() == []

    created = [await service.create(f"task {i}") for i in range(4)]
    tasks = await service.list()

    assert [t.id for t in tasks] == [t.id for t in reversed(created)]


# --------------- update ---------------

@pytest.mark.asyncio
async def test_update_status_broadcasts_full_payload(
    service: TaskService, broadcaster: TaskBroadcaster
) -> None:
    created = await service.create("Write report")
    sub = broadcaster.subscribe()

    updated = await service.update_status(str(created.id), "completed")

    assert updated.status == "completed"
    assert updated.created_at == created.created_at
    assert updated.updated_at >= created.updated_at

    message = await sub.next()
    assert message["event"] == TASK_UPDATED
    assert message["data"] == {
        "id": created.id,
        "status": "completed",
        "task": updated.model_dump(mode="json"),
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [None, "", 3, "done", "PENDING"])
async def test_update_rejects_invalid_status_even_for_missing_id(service: TaskService, status) -> None:
    with pytest.raises(ValidationError):
        await service.update_status("999", status)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw_id", ["abc", "0", "-3", "", None, "1.5"])
async def test_update_rejects_invalid_id(service: TaskService, raw_id) -> None:
    with pytest.raises(ValidationError):
        await service.update_status(raw_id, "completed")


@pytest.mark.asyncio
async def test_update_missing_task_is_not_found(service: TaskService) -> None:
    with pytest.raises(NotFoundError):
        await service.update_status("999", "completed")


@pytest.mark.asyncio
async def test_update_racing_delete_is_not_found(store: TaskStore, broadcaster: TaskBroadcaster) -> None:
    racing = RacingStore(store)
    service = TaskService(racing, broadcaster)
    created = await service.create("Doomed")
    sub = broadcaster.subscribe()

    racing.armed = True
    with pytest.raises(NotFoundError):
        await service.update_status(created.id, "completed")

    assert sub.pending == 0


# --------------- delete ---------------

@pytest.mark.asyncio
async def test_delete_removes_and_broadcasts(
    service: TaskService, store: TaskStore, broadcaster: TaskBroadcaster
) -> None:
    created = await service.create("Temporary")
    sub = broadcaster.subscribe()

    assert await service.delete(str(created.id)) == created.id

    assert store.get_by_id(created.id) is None
    assert await service.list() == []
    assert await sub.next() == {"event": TASK_DELETED, "data": {"id": created.id}}

    with pytest.raises(NotFoundError):
        await service.delete(str(created.id))


@pytest.mark.asyncio
async def test_delete_racing_delete_is_not_found(store: TaskStore, broadcaster: TaskBroadcaster) -> None:
    racing = RacingStore(store)
    service = TaskService(racing, broadcaster)
    created = await service.create("Doomed")

    racing.armed = True
    with pytest.raises(NotFoundError):
        await service.delete(created.id)


@pytest.mark.asyncio
async def test_delete_rejects_invalid_id(service: TaskService) -> None:
    with pytest.raises(ValidationError):
        await service.delete("nope")


# --------------- subscribe ---------------

@pytest.mark.asyncio
async def test_subscribe_sends_snapshot_before_later_events(service: TaskService) -> None:
    first = await service.create("first")
    second = await service.create("second")

    sub = await service.subscribe()
    third = await service.create("third")

    snapshot = await sub.next()
    assert snapshot["event"] == INITIAL_TASKS
    assert [t["id"] for t in snapshot["data"]] == [second.id, first.id]

    event = await sub.next()
    assert event["event"] == NEW_TASK
    assert event["data"]["id"] == third.id


@pytest.mark.asyncio
async def test_subscribe_survives_snapshot_failure(broadcaster: TaskBroadcaster) -> None:
    service = TaskService(BrokenStore(), broadcaster)

    sub = await service.subscribe()

    assert sub.pending == 0
    assert broadcaster.subscriber_count == 1
    broadcaster.publish(NEW_TASK, {"id": 1})
    assert (await sub.next())["event"] == NEW_TASK


def test_parse_task_id() -> None:
    assert parse_task_id("7") == 7
    assert parse_task_id(7) == 7
    with pytest.raises(ValidationError):
        parse_task_id(True)


@pytest.mark.parametrize("raw_id", ["0_1", "+5", " 7", "7 ", "٣", str(2**63), 2**63, -1])
def test_parse_task_id_is_strict(raw_id) -> None:
    with pytest.raises(ValidationError):
        parse_task_id(raw_id)


def test_parse_task_id_accepts_largest_sqlite_integer() -> None:
    assert parse_task_id(str(2**63 - 1)) == 2**63 - 1


class ExplodingStore:
    def get_all(self):
        raise RuntimeError("unexpected")


@pytest.mark.asyncio
async def test_subscribe_unregisters_client_on_unexpected_error(broadcaster: TaskBroadcaster) -> None:
    service = TaskService(ExplodingStore(), broadcaster)

    with pytest.raises(RuntimeError):
        await service.subscribe()

    assert broadcaster.subscriber_count == 0
