# src/mouse_autopilot/tasks/task_controller.py

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..core.ports import PointerDriver
from .task_autosave import flush_if_dirty, run_autosave_loop
from .task_executor import ExecutionTiming, TaskExecutor
from .task_models import MouseTask, TaskStatusSummary
from .task_registry import TaskRegistry
from .task_scheduler import TaskScheduler, reconcile_timers
from .task_store import TaskStore

logger = logging.getLogger(__name__)


class MouseController:
    """
    The task engine as one owned service.

    Owns the registry (tasks), the scheduler (timers) and the executor, and is
    the only place where a task and its timer change together (add, delete,
    reschedule, clear). Must be used from inside a running event loop.
    """

    def __init__(
        self,
        driver: PointerDriver,
        store: TaskStore,
        *,
        timing: ExecutionTiming | None = None,
        autosave_interval_seconds: float = 2.0,
    ) -> None:
        self._driver = driver
        self._store = store
        self._autosave_interval = autosave_interval_seconds
        self._autosave: asyncio.Task[None] | None = None

        self.registry = TaskRegistry()
        self.executor = TaskExecutor(self.registry, driver, timing)
        self.scheduler = TaskScheduler(self.executor.execute_task)

    @property
    def store(self) -> TaskStore:
        return self._store

    # ---- lifecycle ----

    async def start(self) -> int:
        """Initialize storage, restore persisted tasks, re-arm timers, start autosave."""
        try:
            self._store.initialize()
        except Exception:
            logger.exception("Storage initialization failed; continuing without restored tasks")

        restored = self.registry.restore(self._store.load_tasks())
        armed = reconcile_timers(self.registry.get_tasks(), self.scheduler)
        logger.info("Controller started tasks=%d timers=%d", restored, armed)

        if self._autosave is None:
            self._autosave = asyncio.create_task(
                run_autosave_loop(
                    self.registry,
                    self._store,
                    interval_seconds=self._autosave_interval,
                )
            )
        return restored

    async def shutdown(self) -> None:
        if self._autosave is not None:
            self._autosave.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._autosave
            self._autosave = None

        await self.scheduler.shutdown()
        self.flush()
        logger.info("Controller stopped")

    def flush(self) -> bool:
        return flush_if_dirty(self.registry, self._store)

    # ---- task operations ----

    def add_task(self, **spec) -> MouseTask:
        task = self.registry.add_task(**spec)
        if task.scheduled_time is not None:
            self.scheduler.schedule_task(task.id, task.scheduled_time)
        return task

    def get_tasks(self) -> list[MouseTask]:
        return self.registry.get_tasks()

    def get_task(self, task_id: str) -> MouseTask | None:
        return self.registry.get_task(task_id)

    def delete_task(self, task_id: str) -> bool:
        self.scheduler.cancel(task_id)
        return self.registry.remove_task(task_id)

    def clear_all_tasks(self) -> None:
        timers = self.scheduler.cancel_all()
        n = self.registry.clear()
        logger.info("Cleared %d tasks (%d timers)", n, timers)

    def reschedule_task(self, task_id: str, scheduled_time: int) -> MouseTask:
        task = self.registry.set_scheduled_time(task_id, int(scheduled_time))
        self.scheduler.schedule_task(task_id, task.scheduled_time)  # type: ignore[arg-type]
        return task

    async def run_task(self, task_id: str) -> None:
        """Execute now, bypassing the scheduler. Failures propagate to the caller."""
        await self.executor.execute_task(task_id)

    def get_status(self) -> TaskStatusSummary:
        return self.registry.get_status()

    def get_current_pointer_position(self) -> tuple[int, int]:
        return self._driver.get_position()
