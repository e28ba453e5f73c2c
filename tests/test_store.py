import asyncio

import pytest

from inteliose_a2a.db.store import TaskStateError, TaskStore
from inteliose_a2a.models import (
    Artifact, Message, TaskState, agent_message, data_part, text_part
)

def inbound() -> Message:
    return Message(role="user", parts=[text_part("hello")])

@pytest.mark.asyncio
async def test_create_and_get(store):
    """A created task is persisted as pending and readable straight away"""
    task = await store.create_task()

    loaded = await store.get_task(task.id)

    assert loaded is not None
    assert loaded.id == task.id
    assert loaded.status.state == TaskState.PENDING
    assert loaded.messages == []
    assert loaded.artifacts == []
    assert loaded.contextId

@pytest.mark.asyncio
async def test_create_with_context_id(store):
    task = await store.create_task("ctx-1")
    assert (await store.get_task(task.id)).contextId == "ctx-1"

@pytest.mark.asyncio
async def test_missing_task_is_none(store):
    assert await store.get_task("nope") is None
    assert await store.update_status("nope", TaskState.WORKING) is None
    assert await store.add_message("nope", inbound()) is None
    assert await store.add_artifact("nope", Artifact(parts=[text_part("x")])) is None

@pytest.mark.asyncio
async def test_messages_and_artifacts_keep_order(store):
    task = await store.create_task()
    await store.add_message(task.id, inbound())
    await store.add_message(task.id, agent_message("second"))
    await store.update_status(task.id, TaskState.WORKING)
    await store.add_artifact(task.id, Artifact(name="a", parts=[data_part({"n": 1})]))
    await store.add_artifact(task.id, Artifact(name="b", parts=[data_part({"n": 2})]))

    loaded = await store.get_task(task.id)

    assert [m.role for m in loaded.messages] == ["user", "agent"]
    assert [a.name for a in loaded.artifacts] == ["a", "b"]

@pytest.mark.asyncio
async def test_update_status_refreshes_updated_at(store):
    task = await store.create_task()
    await asyncio.sleep(0.01)

    updated = await store.update_status(task.id, TaskState.WORKING)

    assert updated.status.state == TaskState.WORKING
    assert updated.updatedAt > task.updatedAt
    assert updated.createdAt == task.createdAt

@pytest.mark.asyncio
async def test_terminal_state_is_final(store):
    """First terminal state wins; later writes are rejected without changes"""
    task = await store.create_task()
    await store.update_status(task.id, TaskState.WORKING)
    await store.update_status(task.id, TaskState.CANCELED)
    before = await store.get_task(task.id)

    with pytest.raises(TaskStateError):
        await store.update_status(task.id, TaskState.COMPLETED, agent_message("late"))
    with pytest.raises(TaskStateError):
        await store.add_artifact(task.id, Artifact(parts=[text_part("late")]))
    with pytest.raises(TaskStateError):
        await store.add_message(task.id, inbound())

    after = await store.get_task(task.id)
    assert after == before
    assert after.status.state == TaskState.CANCELED

@pytest.mark.asyncio
async def test_no_backwards_transition(store):
    task = await store.create_task()
    await store.update_status(task.id, TaskState.WORKING)

    with pytest.raises(TaskStateError):
        await store.update_status(task.id, TaskState.PENDING)

@pytest.mark.asyncio
async def test_list_tasks_newest_first(store):
    ids = []
    for _ in range(5):
        ids.append((await store.create_task()).id)

    listed = await store.list_tasks(limit=3)
    assert [t.id for t in listed] == list(reversed(ids))[:3]

    page = await store.list_tasks(limit=3, offset=3)
    assert [t.id for t in page] == list(reversed(ids))[3:]

@pytest.mark.asyncio
async def test_stats(store):
    pending = await store.create_task()
    working = await store.create_task()
    completed = await store.create_task()
    failed = await store.create_task()

    for task in (working, completed, failed):
        await store.update_status(task.id, TaskState.WORKING)
    await store.update_status(completed.id, TaskState.COMPLETED)
    await store.update_status(failed.id, TaskState.FAILED, agent_message("boom"))

    stats = await store.get_stats()

    assert stats.total == 4
    assert stats.pending == 1
    assert stats.working == 1
    assert stats.completed == 1
    assert stats.failed == 1
    assert stats.canceled == 0
    assert pending.status.state == TaskState.PENDING

@pytest.mark.asyncio
async def test_concurrent_updates_to_different_tasks(store):
    tasks = [await store.create_task() for _ in range(10)]

    await asyncio.gather(*(store.update_status(t.id, TaskState.WORKING) for t in tasks))
    await asyncio.gather(*(store.add_message(t.id, inbound()) for t in tasks))

    for task in tasks:
        loaded = await store.get_task(task.id)
        assert loaded.status.state == TaskState.WORKING
        assert len(loaded.messages) == 1

@pytest.mark.asyncio
async def test_file_backed_store_survives_reopen(tmp_path):
    url = f"sqlite:///{tmp_path / 'tasks.db'}"
    first = TaskStore.from_url(url)
    task = await first.create_task()
    await first.close()

    reopened = TaskStore.from_url(url)

    assert (await reopened.get_task(task.id)).id == task.id
    await reopened.close()

@pytest.mark.asyncio
async def test_rejected_write_releases_task_lock(store):
    """Writes against a finished task do not leave a lock behind"""
    task = await store.create_task()
    await store.update_status(task.id, TaskState.CANCELED)

    with pytest.raises(TaskStateError):
        await store.add_artifact(task.id, Artifact(parts=[text_part("late")]))
    with pytest.raises(TaskStateError):
        await store.update_status(task.id, TaskState.COMPLETED)

    assert task.id not in store._locks

@pytest.mark.asyncio
async def test_write_to_missing_task_releases_lock(store):
    await store.update_status("nope", TaskState.WORKING)
    assert "nope" not in store._locks

@pytest.mark.asyncio
async def test_running_task_keeps_its_lock_until_finished(store):
    task = await store.create_task()
    await store.update_status(task.id, TaskState.WORKING)

    with pytest.raises(TaskStateError):
        await store.update_status(task.id, TaskState.PENDING)
    assert task.id in store._locks

    await store.update_status(task.id, TaskState.COMPLETED)
    assert task.id not in store._locks

@pytest.mark.asyncio
async def test_reads_run_while_a_write_holds_the_task_lock(store):
    task = await store.create_task()

    async with store._lock_for(task.id):
        writer = asyncio.create_task(store.update_status(task.id, TaskState.WORKING))
        loaded = await asyncio.wait_for(store.get_task(task.id), timeout=5)
        listed = await asyncio.wait_for(store.list_tasks(), timeout=5)
        assert not writer.done()

    assert loaded.status.state == TaskState.PENDING
    assert [t.id for t in listed] == [task.id]
    assert (await writer).status.state == TaskState.WORKING

@pytest.mark.asyncio
async def test_long_context_id(store):
    context_id = "ctx-" + "x" * 500
    task = await store.create_task(context_id)
    assert (await store.get_task(task.id)).contextId == context_id
