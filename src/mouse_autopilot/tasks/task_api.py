# src/mouse_autopilot/tasks/task_api.py

"""
Plain-data operations for UI/IPC callers.

Every function takes and returns JSON-ready values using the persisted
camelCase keys (targetX, scheduledTime, ...). Errors are the engine's own:
ValueError for a bad spec, TaskNotFoundError for an unknown id, and whatever
the pointer driver raised for a failed run.
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.state import AppState

logger = logging.getLogger(__name__)

# camelCase spec key -> MouseController.add_task keyword
_SPEC_KEYS = {
    "action": "action",
    "x": "x",
    "y": "y",
    "targetX": "target_x",
    "targetY": "target_y",
    "button": "button",
    "scrollX": "scroll_x",
    "scrollY": "scroll_y",
    "delay": "delay",
    "scheduledTime": "scheduled_time",
    "description": "description",
}

# Assigned by the engine; ignored when present in a spec.
_ENGINE_KEYS = {"id", "createdAt", "status", "error"}


def spec_to_kwargs(spec: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(spec, dict):
        raise ValueError("task spec must be an object")
    for key in ("action", "x", "y"):
        if spec.get(key) is None:
            raise ValueError(f"{key} is required")

    kwargs: dict[str, Any] = {}
    for key, value in spec.items():
        if key in _ENGINE_KEYS or value is None:
            continue
        target = _SPEC_KEYS.get(key)
        if target is None:
            logger.debug("Ignoring unknown task spec key %r", key)
            continue
        kwargs[target] = value

    for key in ("x", "y", "target_x", "target_y", "scroll_x", "scroll_y", "delay", "scheduled_time"):
        if key in kwargs:
            try:
                kwargs[key] = int(kwargs[key])
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be an integer") from None
    return kwargs


def add_task(state: AppState, spec: dict[str, Any]) -> dict[str, Any]:
    task = state.controller.add_task(**spec_to_kwargs(spec))
    return task.to_dict()


def get_tasks(state: AppState) -> list[dict[str, Any]]:
    return [t.to_dict() for t in state.controller.get_tasks()]


def get_task(state: AppState, task_id: str) -> dict[str, Any] | None:
    task = state.controller.get_task(task_id)
    return task.to_dict() if task is not None else None


def delete_task(state: AppState, task_id: str) -> bool:
    return state.controller.delete_task(task_id)


async def run_task(state: AppState, task_id: str) -> None:
    await state.controller.run_task(task_id)


def reschedule_task(state: AppState, task_id: str, scheduled_time: int) -> dict[str, Any]:
    return state.controller.reschedule_task(task_id, int(scheduled_time)).to_dict()


def clear_all_tasks(state: AppState) -> None:
    state.controller.clear_all_tasks()


def get_status(state: AppState) -> dict[str, Any]:
    return state.controller.get_status().to_dict()


def get_current_pointer_position(state: AppState) -> dict[str, int]:
    x, y = state.controller.get_current_pointer_position()
    return {"x": x, "y": y}


def get_storage_location(state: AppState) -> dict[str, str]:
    store = state.controller.store
    return {"storageDir": str(store.storage_dir), "tasksFile": str(store.tasks_path)}


def set_storage_location(state: AppState, location: str) -> dict[str, str]:
    """Point the store at `location` and write the current tasks there right away."""
    controller = state.controller
    controller.store.set_storage_location(location)
    controller.registry.mark_dirty()
    controller.flush()
    return get_storage_location(state)


def clear_saved_tasks(state: AppState) -> bool:
    """Delete the tasks file on disk; in-memory tasks are kept (and saved again when they change)."""
    return state.controller.store.clear_tasks()
