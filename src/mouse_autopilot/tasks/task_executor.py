# src/mouse_autopilot/tasks/task_executor.py

from __future__ import annotations

"""
Execution engine: runs one task through pending -> executing -> completed|failed.

All pauses (start delay, animation frames, click settle/hold) are asyncio
sleeps, so timers and other executions keep running meanwhile. Nothing here
serializes overlapping executions; the active-task marker is advisory.
"""

import asyncio
import logging
import math
from dataclasses import dataclass

from ..core.ports import PointerDriver
from .task_models import MouseButton, MouseTask, TaskAction
from .task_registry import TaskNotFoundError, TaskRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExecutionTiming:
    move_duration_ms: int = 500
    drag_duration_ms: int = 500
    frame_interval_ms: int = 16
    click_settle_ms: int = 100
    click_hold_ms: int = 50

    @staticmethod
    def from_settings(settings) -> ExecutionTiming:
        return ExecutionTiming(
            move_duration_ms=int(getattr(settings, "move_duration_ms", 500)),
            drag_duration_ms=int(getattr(settings, "drag_duration_ms", 500)),
            frame_interval_ms=max(1, int(getattr(settings, "frame_interval_ms", 16))),
            click_settle_ms=int(getattr(settings, "click_settle_ms", 100)),
            click_hold_ms=int(getattr(settings, "click_hold_ms", 50)),
        )


async def _sleep_ms(ms: int | float) -> None:
    if ms > 0:
        await asyncio.sleep(ms / 1000.0)


class TaskExecutor:
    def __init__(
        self,
        registry: TaskRegistry,
        driver: PointerDriver,
        timing: ExecutionTiming | None = None,
    ) -> None:
        self._registry = registry
        self._driver = driver
        self._timing = timing or ExecutionTiming()

    @property
    def timing(self) -> ExecutionTiming:
        return self._timing

    async def execute_task(self, task_id: str) -> None:
        """
        Run `task_id` once.

        Raises TaskNotFoundError (nothing changes) for an unknown id. Any other
        failure marks the task failed, records the message and is re-raised.
        Cancellation (shutdown) leaves the task in executing.
        """
        if task_id not in self._registry:
            raise TaskNotFoundError(task_id)

        task = self._registry.mark_executing(task_id)
        logger.info("Executing task id=%s action=%s", task_id, task.action.value)
        try:
            await _sleep_ms(task.delay)
            await self._perform(task)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            self._registry.mark_failed(task_id, message)
            logger.warning("Task %s failed: %s", task_id, message)
            raise
        else:
            self._registry.mark_completed(task_id)
            logger.info("Task %s completed", task_id)
        finally:
            self._registry.clear_active_task()

    async def _perform(self, task: MouseTask) -> None:
        if task.action == TaskAction.MOVE:
            await self.move_to(task.x, task.y, self._timing.move_duration_ms)
        elif task.action == TaskAction.CLICK:
            await self.click(task.x, task.y, task.button)
        elif task.action == TaskAction.DRAG:
            if not task.has_drag_target:
                logger.warning("Drag task %s has no target; skipping", task.id)
                return
            await self.drag(task.x, task.y, task.target_x, task.target_y)  # type: ignore[arg-type]
        elif task.action == TaskAction.SCROLL:
            await self.scroll(task.x, task.y, task.scroll_x, task.scroll_y)
        else:  # pragma: no cover - TaskAction is exhaustive
            raise ValueError(f"Unsupported action: {task.action}")

    # ---- pointer operations ----

    async def move_to(self, x: int, y: int, duration_ms: int | float) -> None:
        """
        Animate from the current position to (x, y) at one sample per frame.

        Each sample is the linear interpolation at step/steps rounded to whole
        pixels; the last sample snaps exactly onto (x, y).
        """
        start_x, start_y = self._driver.get_position()
        frame_ms = self._timing.frame_interval_ms
        steps = max(1, math.ceil(duration_ms / frame_ms))

        for step in range(1, steps + 1):
            progress = step / steps
            nx = round(start_x + (x - start_x) * progress)
            ny = round(start_y + (y - start_y) * progress)
            self._driver.set_position(nx, ny)
            if step < steps:
                await _sleep_ms(frame_ms)

        self._driver.set_position(x, y)
        logger.debug("Moved (%s,%s) -> (%s,%s) in %d steps", start_x, start_y, x, y, steps)

    async def click(self, x: int, y: int, button: MouseButton = MouseButton.LEFT) -> None:
        await self.move_to(x, y, self._timing.move_duration_ms)
        await _sleep_ms(self._timing.click_settle_ms)
        self._driver.press_button(button.value)
        try:
            await _sleep_ms(self._timing.click_hold_ms)
        finally:
            self._driver.release_button(button.value)

    async def drag(self, from_x: int, from_y: int, to_x: int, to_y: int) -> None:
        half = self._timing.drag_duration_ms / 2
        await self.move_to(from_x, from_y, half)
        self._driver.press_button(MouseButton.LEFT.value)
        try:
            await self.move_to(to_x, to_y, half)
        finally:
            self._driver.release_button(MouseButton.LEFT.value)

    async def scroll(self, x: int, y: int, scroll_x: int, scroll_y: int) -> None:
        self._driver.set_position(x, y)
        # Vertical first, then horizontal; zero deltas are skipped.
        if scroll_y:
            self._driver.scroll(0, scroll_y)
        if scroll_x:
            self._driver.scroll(scroll_x, 0)
