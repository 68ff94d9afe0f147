"""Pruebas del registro de tareas desacopladas."""

import asyncio

import pytest

from freshbridge.services.tasks import TaskRegistry


async def test_join_waits_for_spawned_tasks() -> None:
    registry = TaskRegistry()
    done: list[str] = []

    async def work() -> None:
        await asyncio.sleep(0)
        done.append("ok")

    registry.spawn(work(), name="work")
    assert registry.pending == 1
    assert await registry.join() is True
    assert done == ["ok"]
    assert registry.pending == 0


async def test_join_includes_tasks_spawned_while_waiting() -> None:
    registry = TaskRegistry()
    done: list[str] = []

    async def child() -> None:
        done.append("child")

    async def parent() -> None:
        registry.spawn(child())
        done.append("parent")

    registry.spawn(parent())
    await registry.join()
    assert sorted(done) == ["child", "parent"]


async def test_failed_task_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    registry = TaskRegistry()

    async def boom() -> None:
        raise RuntimeError("boom")

    registry.spawn(boom(), name="boom")
    assert await registry.join() is True
    assert any(r.getMessage() == "tasks.unhandled_error" for r in caplog.records)


async def test_join_timeout_and_cancel_all() -> None:
    registry = TaskRegistry()
    blocker = asyncio.Event()
    registry.spawn(blocker.wait(), name="stuck")

    assert await registry.join(timeout=0.01) is False
    await registry.cancel_all()
    await asyncio.sleep(0)
    assert registry.pending == 0
