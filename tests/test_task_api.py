# tests/test_task_api.py

from __future__ import annotations

import pytest

from mouse_autopilot.tasks import task_api
from mouse_autopilot.tasks.task_models import now_ms


@pytest.mark.asyncio
async def test_add_task_returns_plain_record(state) -> None:
    record = task_api.add_task(
        state,
        {
            "action": "drag",
            "x": "10",
            "y": 20,
            "targetX": 30,
            "targetY": 40,
            "id": "ignored",
            "status": "completed",
            "unknownKey": 1,
        },
    )

    assert record["id"] != "ignored"
    assert record["status"] == "pending"
    assert record["x"] == 10
    assert record["targetX"] == 30
    assert isinstance(record["createdAt"], int)
    assert task_api.get_task(state, record["id"]) == record
    assert task_api.get_tasks(state) == [record]


@pytest.mark.asyncio
async def test_add_task_validates_spec(state) -> None:
    with pytest.raises(ValueError):
        task_api.add_task(state, {"action": "move", "x": 1})
    with pytest.raises(ValueError):
        task_api.add_task(state, {"action": "move", "x": "left", "y": 1})
    with pytest.raises(ValueError):
        task_api.add_task(state, {"action": "wiggle", "x": 1, "y": 1})


@pytest.mark.asyncio
async def test_scheduled_add_and_delete(state) -> None:
    record = task_api.add_task(
        state, {"action": "move", "x": 1, "y": 1, "scheduledTime": now_ms() + 60_000}
    )
    assert state.controller.scheduler.has_timer(record["id"])

    assert task_api.delete_task(state, record["id"]) is True
    assert not state.controller.scheduler.has_timer(record["id"])
    assert task_api.get_task(state, record["id"]) is None


@pytest.mark.asyncio
async def test_run_status_and_position(state, driver) -> None:
    record = task_api.add_task(state, {"action": "move", "x": 7, "y": 9})

    await task_api.run_task(state, record["id"])

    assert task_api.get_status(state) == {
        "activeTask": None,
        "pendingTasks": 0,
        "completedTasks": 1,
        "failedTasks": 0,
    }
    assert task_api.get_current_pointer_position(state) == {"x": 7, "y": 9}

    task_api.clear_all_tasks(state)
    assert task_api.get_tasks(state) == []


@pytest.mark.asyncio
async def test_reschedule_updates_record(state) -> None:
    record = task_api.add_task(state, {"action": "click", "x": 1, "y": 1})
    when = now_ms() + 60_000

    updated = task_api.reschedule_task(state, record["id"], when)

    assert updated["scheduledTime"] == when
    assert state.controller.scheduler.has_timer(record["id"])
    state.controller.scheduler.cancel_all()


def test_storage_location_round_trip(state, settings, tmp_path) -> None:
    state.controller.store.initialize()
    before = task_api.get_storage_location(state)
    assert before["storageDir"] == str(settings.default_storage_dir)

    after = task_api.set_storage_location(state, str(tmp_path / "other"))

    assert after == {
        "storageDir": str(tmp_path / "other"),
        "tasksFile": str(tmp_path / "other" / "tasks.json"),
    }
    assert (tmp_path / "other" / "tasks.json").exists()
