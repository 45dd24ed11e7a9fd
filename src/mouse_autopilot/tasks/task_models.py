# src/mouse_autopilot/tasks/task_models.py

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


def now_ms() -> int:
    """Wall-clock epoch milliseconds (the unit of createdAt / scheduledTime)."""
    return int(time.time() * 1000)


class TaskAction(StrEnum):
    MOVE = "move"
    CLICK = "click"
    DRAG = "drag"
    SCROLL = "scroll"


class MouseButton(StrEnum):
    LEFT = "left"
    RIGHT = "right"
    MIDDLE = "middle"


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    pending -> executing -> completed | failed. A finished task may be run
    again explicitly, which re-enters executing.
    """

    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(str(raw))
        except ValueError:
            return cls.PENDING


@dataclass(slots=True)
class MouseTask:
    id: str
    action: TaskAction
    x: int
    y: int
    created_at: int
    status: TaskStatus

    button: MouseButton = MouseButton.LEFT
    target_x: int | None = None
    target_y: int | None = None
    scroll_x: int = 0
    scroll_y: int = 0
    delay: int = 0
    scheduled_time: int | None = None
    description: str | None = None
    error: str | None = None

    @property
    def has_drag_target(self) -> bool:
        return self.target_x is not None and self.target_y is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the persisted (camelCase) keys; unset optionals are omitted."""
        data: dict[str, Any] = {
            "id": self.id,
            "action": self.action.value,
            "x": self.x,
            "y": self.y,
            "button": self.button.value,
            "delay": self.delay,
            "createdAt": self.created_at,
            "status": self.status.value,
        }
        if self.target_x is not None:
            data["targetX"] = self.target_x
        if self.target_y is not None:
            data["targetY"] = self.target_y
        if self.action == TaskAction.SCROLL or self.scroll_x or self.scroll_y:
            data["scrollX"] = self.scroll_x
            data["scrollY"] = self.scroll_y
        if self.scheduled_time is not None:
            data["scheduledTime"] = self.scheduled_time
        if self.description:
            data["description"] = self.description
        if self.error is not None:
            data["error"] = self.error
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> MouseTask:
        """
        Rebuild a task from a persisted record.

        Raises ValueError when the record has no id or an unknown action; other
        fields are coerced leniently (missing numbers -> 0, unknown status -> pending).
        """
        task_id = str(data.get("id") or "").strip()
        if not task_id:
            raise ValueError("task record has no id")

        status = TaskStatus.from_raw(data.get("status"))
        error = data.get("error")
        return MouseTask(
            id=task_id,
            action=parse_action(data.get("action")),
            x=_as_int(data.get("x"), 0),
            y=_as_int(data.get("y"), 0),
            created_at=_as_int(data.get("createdAt"), 0),
            status=status,
            button=parse_button(data.get("button")),
            target_x=_as_optional_int(data.get("targetX")),
            target_y=_as_optional_int(data.get("targetY")),
            scroll_x=_as_int(data.get("scrollX"), 0),
            scroll_y=_as_int(data.get("scrollY"), 0),
            delay=max(0, _as_int(data.get("delay"), 0)),
            scheduled_time=_as_optional_int(data.get("scheduledTime")),
            description=str(data["description"]) if data.get("description") else None,
            error=str(error) if error is not None and status == TaskStatus.FAILED else None,
        )


@dataclass(slots=True, frozen=True)
class TaskStatusSummary:
    active_task: str | None
    pending_tasks: int
    completed_tasks: int
    failed_tasks: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeTask": self.active_task,
            "pendingTasks": self.pending_tasks,
            "completedTasks": self.completed_tasks,
            "failedTasks": self.failed_tasks,
        }


def parse_action(raw: Any) -> TaskAction:
    try:
        return TaskAction(str(raw or "").strip().lower())
    except ValueError:
        raise ValueError(f"Unknown action: {raw!r}") from None


def parse_button(raw: Any) -> MouseButton:
    if raw is None or raw == "":
        return MouseButton.LEFT
    try:
        return MouseButton(str(raw).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown mouse button: {raw!r}") from None


def _as_int(raw: Any, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(round(float(raw)))
    except (TypeError, ValueError):
        return default


def _as_optional_int(raw: Any) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        return int(round(float(raw)))
    except (TypeError, ValueError):
        return None
