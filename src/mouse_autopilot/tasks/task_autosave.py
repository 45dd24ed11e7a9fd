# src/mouse_autopilot/tasks/task_autosave.py

from __future__ import annotations

import asyncio
import logging

from ..core.ports import TaskPersistence
from .task_registry import TaskRegistry

logger = logging.getLogger(__name__)


def flush_if_dirty(registry: TaskRegistry, store: TaskPersistence) -> bool:
    """
    Persist the registry if it changed since the last successful flush.

    Returns True when a write happened. A failed write is logged and the dirty
    flag stays set, so the next tick retries.
    """
    if not registry.dirty:
        return False

    tasks = registry.get_tasks()
    try:
        store.save_tasks(tasks)
    except Exception:
        logger.exception("Autosave failed; will retry on next tick")
        return False

    registry.mark_clean()
    logger.debug("Autosaved %d tasks", len(tasks))
    return True


async def run_autosave_loop(
    registry: TaskRegistry,
    store: TaskPersistence,
    *,
    interval_seconds: float = 2.0,
) -> None:
    """
    Fixed-interval flush loop.

    Bursts of add/delete/status changes between ticks collapse into one write.
    To stop the loop, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        await asyncio.sleep(sleep_s)
        flush_if_dirty(registry, store)
