# tests/test_task_controller.py

from __future__ import annotations

import asyncio
import json

import pytest

from mouse_autopilot.tasks.task_autosave import flush_if_dirty, run_autosave_loop
from mouse_autopilot.tasks.task_controller import MouseController
from mouse_autopilot.tasks.task_models import TaskStatus, now_ms
from mouse_autopilot.tasks.task_registry import TaskNotFoundError, TaskRegistry
from mouse_autopilot.tasks.task_store import TaskStore

from .conftest import FAST_TIMING
from .fakes import FailingStore, FakePointerDriver


def _controller(driver: FakePointerDriver, store: TaskStore, interval: float = 0.05) -> MouseController:
    return MouseController(driver, store, timing=FAST_TIMING, autosave_interval_seconds=interval)


@pytest.mark.asyncio
async def test_scheduled_task_runs_at_its_time(driver: FakePointerDriver, store: TaskStore) -> None:
    ctl = _controller(driver, store)
    await ctl.start()
    try:
        task = ctl.add_task(action="move", x=40, y=30, scheduled_time=now_ms() + 30)
        assert ctl.scheduler.has_timer(task.id)

        await asyncio.sleep(0.15)

        assert ctl.get_task(task.id).status == TaskStatus.COMPLETED  # type: ignore[union-attr]
        assert driver.position == (40, 30)
        assert ctl.scheduler.timer_count == 0
    finally:
        await ctl.shutdown()


@pytest.mark.asyncio
async def test_delete_before_fire_cancels_execution(driver: FakePointerDriver, store: TaskStore) -> None:
    ctl = _controller(driver, store)
    await ctl.start()
    try:
        keep = ctl.add_task(action="move", x=1, y=1)
        doomed = ctl.add_task(action="move", x=50, y=50, scheduled_time=now_ms() + 40)
        before = ctl.get_status()

        assert ctl.delete_task(doomed.id) is True
        assert ctl.delete_task(doomed.id) is False
        await asyncio.sleep(0.1)

        assert driver.calls == []
        assert not ctl.scheduler.has_timer(doomed.id)
        after = ctl.get_status()
        assert after.pending_tasks == before.pending_tasks - 1
        assert ctl.get_task(keep.id).status == TaskStatus.PENDING  # type: ignore[union-attr]
    finally:
        await ctl.shutdown()


@pytest.mark.asyncio
async def test_reschedule_fires_once_at_new_time(driver: FakePointerDriver, store: TaskStore) -> None:
    ctl = _controller(driver, store)
    await ctl.start()
    try:
        task = ctl.add_task(action="move", x=2, y=2, scheduled_time=now_ms() + 20)
        new_time = now_ms() + 150
        updated = ctl.reschedule_task(task.id, new_time)
        assert updated.scheduled_time == new_time
        assert ctl.scheduler.timer_count == 1

        await asyncio.sleep(0.07)
        assert driver.calls == []  # the original time passed without a firing

        await asyncio.sleep(0.2)

        assert ctl.get_task(task.id).status == TaskStatus.COMPLETED  # type: ignore[union-attr]
        # one run from (0,0): two frames plus the final snap
        assert driver.moves == [(1, 1), (2, 2), (2, 2)]
        with pytest.raises(TaskNotFoundError):
            ctl.reschedule_task("missing", new_time)
    finally:
        await ctl.shutdown()


@pytest.mark.asyncio
async def test_clear_all_leaves_nothing_behind(driver: FakePointerDriver, store: TaskStore) -> None:
    ctl = _controller(driver, store)
    await ctl.start()
    try:
        for i in range(3):
            ctl.add_task(action="click", x=i, y=i, scheduled_time=now_ms() + 5_000)
        ctl.add_task(action="move", x=1, y=1)

        ctl.clear_all_tasks()

        assert ctl.get_tasks() == []
        assert ctl.scheduler.timer_count == 0
        assert ctl.get_status().to_dict() == {
            "activeTask": None,
            "pendingTasks": 0,
            "completedTasks": 0,
            "failedTasks": 0,
        }
    finally:
        await ctl.shutdown()


@pytest.mark.asyncio
async def test_run_task_surfaces_driver_failure(store: TaskStore) -> None:
    driver = FakePointerDriver(fail_on="scroll")
    ctl = _controller(driver, store)
    await ctl.start()
    try:
        task = ctl.add_task(action="scroll", x=1, y=1, scroll_y=2)

        with pytest.raises(RuntimeError):
            await ctl.run_task(task.id)
        with pytest.raises(TaskNotFoundError):
            await ctl.run_task("missing")

        assert ctl.get_status().failed_tasks == 1
        assert ctl.get_status().active_task is None
    finally:
        await ctl.shutdown()


@pytest.mark.asyncio
async def test_startup_runs_overdue_pending_task_once(driver: FakePointerDriver, store: TaskStore) -> None:
    store.initialize()
    seed = TaskRegistry()
    overdue = seed.add_task(action="move", x=12, y=34, scheduled_time=now_ms() - 5_000)
    stuck = seed.add_task(action="move", x=1, y=1)
    seed.mark_executing(stuck.id)
    store.save_tasks(seed.get_tasks())

    ctl = _controller(driver, store)
    try:
        assert await ctl.start() == 2
        await asyncio.sleep(0.1)

        assert ctl.get_task(overdue.id).status == TaskStatus.COMPLETED  # type: ignore[union-attr]
        assert ctl.get_task(stuck.id).status == TaskStatus.EXECUTING  # type: ignore[union-attr]
        assert driver.moves[-1] == (12, 34)
        assert driver.moves.count((12, 34)) == 2  # last sample + snap of a single run
    finally:
        await ctl.shutdown()


@pytest.mark.asyncio
async def test_autosave_persists_changes(driver: FakePointerDriver, store: TaskStore) -> None:
    ctl = _controller(driver, store, interval=0.02)
    await ctl.start()
    try:
        task = ctl.add_task(action="move", x=1, y=1, description="persist me")
        await asyncio.sleep(0.08)

        data = json.loads(store.tasks_path.read_text("utf-8"))
        assert [t["id"] for t in data["tasks"]] == [task.id]
        assert not ctl.registry.dirty
    finally:
        await ctl.shutdown()


@pytest.mark.asyncio
async def test_shutdown_flushes_pending_changes(driver: FakePointerDriver, store: TaskStore) -> None:
    ctl = _controller(driver, store, interval=60)
    await ctl.start()
    task = ctl.add_task(action="click", x=1, y=1)

    await ctl.shutdown()

    reopened = _controller(FakePointerDriver(), store)
    await reopened.start()
    try:
        assert [t.id for t in reopened.get_tasks()] == [task.id]
    finally:
        await reopened.shutdown()


def test_flush_only_writes_when_dirty_and_retries_after_failure() -> None:
    reg = TaskRegistry()
    failing = FailingStore(failures=1)

    assert flush_if_dirty(reg, failing) is False  # nothing changed yet

    reg.add_task(action="move", x=1, y=1)
    assert flush_if_dirty(reg, failing) is False
    assert reg.dirty

    assert flush_if_dirty(reg, failing) is True
    assert not reg.dirty
    assert len(failing.saved) == 1
    assert flush_if_dirty(reg, failing) is False


@pytest.mark.asyncio
async def test_autosave_loop_batches_bursts() -> None:
    reg = TaskRegistry()
    sink = FailingStore(failures=0)

    runner = asyncio.create_task(run_autosave_loop(reg, sink, interval_seconds=0.05))
    for i in range(10):
        reg.add_task(action="move", x=i, y=i)
    await asyncio.sleep(0.08)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(sink.saved) == 1
    assert len(sink.saved[0]) == 10


def test_pointer_position_delegates_to_driver(store: TaskStore) -> None:
    ctl = _controller(FakePointerDriver(position=(640, 480)), store)
    assert ctl.get_current_pointer_position() == (640, 480)
