# src/mouse_autopilot/tasks/task_scheduler.py

from __future__ import annotations

"""
Task scheduler.

One-shot timers on the running asyncio loop:
- at most one outstanding timer per task id (re-arming cancels the old one),
- a fired timer forgets itself before the execution starts,
- each firing runs the execution as its own asyncio.Task whose failure is
  logged here, so one failing task never stops other timers.

Cancelling a timer never touches an execution that has already started.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from .task_models import MouseTask, TaskStatus, now_ms

logger = logging.getLogger(__name__)

ExecuteFn = Callable[[str], Awaitable[None]]


class TaskScheduler:
    def __init__(self, execute: ExecuteFn, *, clock: Callable[[], int] = now_ms) -> None:
        self._execute = execute
        self._clock = clock
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._inflight: set[asyncio.Task[None]] = set()

    def schedule_task(self, task_id: str, scheduled_time: int) -> int:
        """
        Arm (or re-arm) the timer for `task_id`. Past times fire with zero delay.

        Must be called from inside the running event loop. Returns the delay in ms.
        """
        loop = asyncio.get_running_loop()
        self.cancel(task_id)

        delay_ms = max(0, int(scheduled_time) - self._clock())
        self._timers[task_id] = loop.call_later(delay_ms / 1000.0, self._fire, task_id)
        logger.debug("Timer armed task_id=%s delay_ms=%s", task_id, delay_ms)
        return delay_ms

    def cancel(self, task_id: str) -> bool:
        """Cancel the outstanding timer for `task_id`; no-op if there is none."""
        handle = self._timers.pop(task_id, None)
        if handle is None:
            return False
        handle.cancel()
        logger.debug("Timer cancelled task_id=%s", task_id)
        return True

    def cancel_all(self) -> int:
        handles = list(self._timers.values())
        self._timers.clear()
        for handle in handles:
            handle.cancel()
        return len(handles)

    def has_timer(self, task_id: str) -> bool:
        return task_id in self._timers

    @property
    def timer_count(self) -> int:
        return len(self._timers)

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    def _fire(self, task_id: str) -> None:
        self._timers.pop(task_id, None)
        logger.info("Timer fired task_id=%s", task_id)

        run = asyncio.ensure_future(self._run(task_id))
        self._inflight.add(run)
        run.add_done_callback(self._inflight.discard)

    async def _run(self, task_id: str) -> None:
        try:
            await self._execute(task_id)
        except Exception:
            logger.exception("Scheduled execution failed task_id=%s", task_id)

    async def shutdown(self) -> None:
        """Cancel all timers and in-flight scheduled executions."""
        cancelled = self.cancel_all()
        running = list(self._inflight)
        for run in running:
            run.cancel()
        if running:
            await asyncio.gather(*running, return_exceptions=True)
        logger.info("Scheduler stopped timers=%d inflight=%d", cancelled, len(running))


def reconcile_timers(tasks: Iterable[MouseTask], scheduler: TaskScheduler) -> int:
    """
    Re-arm timers for restored tasks.

    - pending/executing tasks with a scheduledTime are armed against the
      original scheduledTime (overdue ones fire immediately)
    - executing tasks without a scheduledTime stay executing; they need an
      explicit re-run
    """
    armed = 0
    for task in tasks:
        if task.status not in (TaskStatus.PENDING, TaskStatus.EXECUTING):
            continue

        if task.scheduled_time is None:
            if task.status == TaskStatus.EXECUTING:
                logger.warning(
                    "Task %s was interrupted while executing and has no schedule; run it again manually",
                    task.id,
                )
            continue

        delay_ms = scheduler.schedule_task(task.id, task.scheduled_time)
        if delay_ms == 0:
            logger.info("Task %s is overdue; running now", task.id)
        armed += 1
    return armed
