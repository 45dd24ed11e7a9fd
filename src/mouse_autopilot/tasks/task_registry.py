# src/mouse_autopilot/tasks/task_registry.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import replace

from .task_models import (
    MouseTask,
    TaskAction,
    TaskStatus,
    TaskStatusSummary,
    now_ms,
    parse_action,
    parse_button,
)

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


def new_task_id(created_at: int) -> str:
    # Time prefix keeps ids roughly sortable; the random suffix keeps them unique
    # for tasks created within the same millisecond.
    return f"{created_at}{uuid.uuid4().hex[:9]}"


class TaskRegistry:
    """
    In-memory task registry: the authoritative set of tasks.

    Readers get copies; only the registry's own mark_* methods mutate a stored
    task. Every mutation sets the dirty flag consumed by the autosave loop.
    Timers are not tracked here (see TaskScheduler).
    """

    def __init__(self, *, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        self._tasks: dict[str, MouseTask] = {}
        self._active_task: str | None = None
        self._dirty = False

    # ---- dirty flag ----

    @property
    def dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def mark_clean(self) -> None:
        self._dirty = False

    # ---- creation / lookup ----

    def add_task(
        self,
        *,
        action: TaskAction | str,
        x: int,
        y: int,
        target_x: int | None = None,
        target_y: int | None = None,
        button: str | None = None,
        scroll_x: int = 0,
        scroll_y: int = 0,
        delay: int = 0,
        scheduled_time: int | None = None,
        description: str | None = None,
    ) -> MouseTask:
        action = parse_action(action)
        if int(delay or 0) < 0:
            raise ValueError("delay cannot be negative")

        created_at = self._clock()
        task_id = new_task_id(created_at)
        while task_id in self._tasks:
            task_id = new_task_id(created_at)

        task = MouseTask(
            id=task_id,
            action=action,
            x=int(x),
            y=int(y),
            created_at=created_at,
            status=TaskStatus.PENDING,
            button=parse_button(button),
            target_x=None if target_x is None else int(target_x),
            target_y=None if target_y is None else int(target_y),
            scroll_x=int(scroll_x or 0),
            scroll_y=int(scroll_y or 0),
            delay=int(delay or 0),
            scheduled_time=None if scheduled_time is None else int(scheduled_time),
            description=(description or "").strip() or None,
        )
        self._tasks[task_id] = task
        self._dirty = True
        logger.debug(
            "Task added id=%s action=%s at=(%s,%s) scheduled_time=%s",
            task_id,
            action.value,
            task.x,
            task.y,
            task.scheduled_time,
        )
        return replace(task)

    def restore(self, tasks: Iterable[MouseTask]) -> int:
        """Load persisted tasks as-is (no status reset, dirty flag untouched)."""
        n = 0
        for task in tasks:
            if task.id in self._tasks:
                logger.warning("Duplicate task id %s in persisted data; keeping the first", task.id)
                continue
            self._tasks[task.id] = replace(task)
            n += 1
        return n

    def get_tasks(self) -> list[MouseTask]:
        return [replace(t) for t in self._tasks.values()]

    def get_task(self, task_id: str) -> MouseTask | None:
        task = self._tasks.get(task_id)
        return replace(task) if task is not None else None

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- removal ----

    def remove_task(self, task_id: str) -> bool:
        removed = self._tasks.pop(task_id, None) is not None
        if removed:
            self._dirty = True
            logger.debug("Task removed id=%s", task_id)
        return removed

    def clear(self) -> int:
        n = len(self._tasks)
        self._tasks.clear()
        self._active_task = None
        self._dirty = True
        return n

    # ---- execution bookkeeping (called by the executor) ----

    @property
    def active_task(self) -> str | None:
        return self._active_task

    def mark_executing(self, task_id: str) -> MouseTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        task.status = TaskStatus.EXECUTING
        task.error = None
        self._active_task = task_id
        self._dirty = True
        return replace(task)

    def mark_completed(self, task_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            logger.debug("Task %s finished after being removed", task_id)
            return
        task.status = TaskStatus.COMPLETED
        task.error = None
        self._dirty = True

    def mark_failed(self, task_id: str, error: str) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            logger.debug("Task %s failed after being removed: %s", task_id, error)
            return
        task.status = TaskStatus.FAILED
        task.error = error
        self._dirty = True

    def clear_active_task(self) -> None:
        self._active_task = None

    def set_scheduled_time(self, task_id: str, scheduled_time: int | None) -> MouseTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        task.scheduled_time = scheduled_time
        self._dirty = True
        return replace(task)

    # ---- status ----

    def get_status(self) -> TaskStatusSummary:
        pending = completed = failed = 0
        for t in self._tasks.values():
            if t.status == TaskStatus.PENDING:
                pending += 1
            elif t.status == TaskStatus.COMPLETED:
                completed += 1
            elif t.status == TaskStatus.FAILED:
                failed += 1
        return TaskStatusSummary(
            active_task=self._active_task,
            pending_tasks=pending,
            completed_tasks=completed,
            failed_tasks=failed,
        )
