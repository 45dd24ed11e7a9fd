# src/mouse_autopilot/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, cast

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_models import now_ms
from ..tasks.task_registry import TaskNotFoundError

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, /run, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command. Handlers may be coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(ms: int | None) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _fmt_task(task: dict[str, Any]) -> str:
    where = f"({task['x']},{task['y']})"
    action = task["action"]
    if action == "drag":
        if "targetX" in task and "targetY" in task:
            where += f" -> ({task['targetX']},{task['targetY']})"
        else:
            where += " -> (no target)"
    elif action == "click":
        where += f" {task['button']}"
    elif action == "scroll":
        where += f" scroll=({task.get('scrollX', 0)},{task.get('scrollY', 0)})"

    line = f"{task['id']}  {task['status']:<9} {action:<6} {where}"
    if task.get("delay"):
        line += f" delay={task['delay']}ms"
    if "scheduledTime" in task:
        line += f" at {_fmt_ts(task['scheduledTime'])}"
    if task.get("description"):
        line += f"  # {task['description']}"
    if task.get("error"):
        line += f"\n    error: {task['error']}"
    return line


def _parse_pair(raw: str) -> tuple[int, int]:
    a, sep, b = raw.partition(",")
    if not sep:
        raise ValueError(f"expected X,Y but got {raw!r}")
    return int(a), int(b)


def parse_add_args(args: list[str], *, now: int | None = None) -> dict[str, Any]:
    """
    Parse `/add` arguments into a task spec.

    /add <move|click|drag|scroll> X Y [button=left] [to=X,Y] [by=DX,DY]
         [delay=MS] [in=SECONDS | at=EPOCH_MS] [desc=TEXT...]
    """
    if len(args) < 3:
        raise ValueError("usage: /add <action> X Y [options]")

    spec: dict[str, Any] = {"action": args[0], "x": int(args[1]), "y": int(args[2])}
    desc_words: list[str] = []
    for opt in args[3:]:
        key, sep, value = opt.partition("=")
        if not sep:
            if desc_words:
                desc_words.append(opt)
                continue
            raise ValueError(f"bad option {opt!r} (expected key=value)")
        key = key.lower()
        if key == "button":
            spec["button"] = value
        elif key == "to":
            spec["targetX"], spec["targetY"] = _parse_pair(value)
        elif key == "by":
            spec["scrollX"], spec["scrollY"] = _parse_pair(value)
        elif key == "delay":
            spec["delay"] = int(value)
        elif key == "in":
            base = now_ms() if now is None else now
            spec["scheduledTime"] = base + int(float(value) * 1000)
        elif key == "at":
            spec["scheduledTime"] = int(value)
        elif key == "desc":
            desc_words.append(value)
        else:
            raise ValueError(f"unknown option {key!r}")
    if desc_words:
        spec["description"] = " ".join(desc_words)
    return spec


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    status = task_api.get_status(state)
    location = task_api.get_storage_location(state)
    return (
        "Status:\n"
        f"  Active task: {status['activeTask'] or '-'}\n"
        f"  Pending: {status['pendingTasks']}  Completed: {status['completedTasks']}"
        f"  Failed: {status['failedTasks']}\n"
        f"  Tasks file: {location['tasksFile']}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    try:
        task = task_api.add_task(state, parse_add_args(args))
    except ValueError as e:
        return f"Cannot add task: {e}"
    return "Added: " + _fmt_task(task)


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = task_api.get_tasks(state)
    if not tasks:
        return "No tasks."
    return "\n".join(_fmt_task(t) for t in tasks)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <task_id>"
    task = task_api.get_task(state, args[0])
    if task is None:
        return f"No task with id {args[0]}."
    return _fmt_task(task)


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <task_id>"
    if task_api.delete_task(state, args[0]):
        return f"Deleted {args[0]}."
    return f"No task with id {args[0]}."


async def cmd_run(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /run <task_id>"
    task_id = args[0]
    if emit:
        emit(f"Running {task_id}...")
    try:
        await task_api.run_task(state, task_id)
    except TaskNotFoundError:
        return f"No task with id {task_id}."
    except Exception as e:
        logger.debug("Manual run failed task_id=%s", task_id, exc_info=True)
        return f"Task {task_id} failed: {e}"
    return f"Task {task_id} completed."


def cmd_reschedule(state: AppState, args: list[str]) -> str:
    """
    /reschedule <id> in=SECONDS
    /reschedule <id> at=EPOCH_MS
    """
    if len(args) != 2:
        return "Usage: /reschedule <task_id> in=SECONDS | at=EPOCH_MS"
    key, _, value = args[1].partition("=")
    try:
        if key == "in":
            scheduled_time = now_ms() + int(float(value) * 1000)
        elif key == "at":
            scheduled_time = int(value)
        else:
            return "Usage: /reschedule <task_id> in=SECONDS | at=EPOCH_MS"
        task = task_api.reschedule_task(state, args[0], scheduled_time)
    except ValueError as e:
        return f"Cannot reschedule: {e}"
    except TaskNotFoundError:
        return f"No task with id {args[0]}."
    return "Rescheduled: " + _fmt_task(task)


def cmd_clear(state: AppState, args: list[str]) -> str:
    task_api.clear_all_tasks(state)
    return "All tasks cleared."


def cmd_pos(state: AppState, args: list[str]) -> str:
    pos = task_api.get_current_pointer_position(state)
    return f"Pointer at ({pos['x']},{pos['y']})."


def cmd_storage(state: AppState, args: list[str]) -> str:
    """
    /storage          -> show storage location
    /storage <dir>    -> move storage to <dir>
    /storage clear    -> delete the saved tasks file
    """
    if not args:
        location = task_api.get_storage_location(state)
        return f"Storage dir: {location['storageDir']}\nTasks file: {location['tasksFile']}"

    if args[0].lower() == "clear":
        if task_api.clear_saved_tasks(state):
            return "Saved tasks file deleted."
        return "No saved tasks file."

    target = " ".join(args)
    try:
        location = task_api.set_storage_location(state, target)
    except OSError as e:
        return f"Cannot use {target}: {e}"
    return f"Storage moved to {location['storageDir']}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show task counters and the active task.")
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add <move|click|drag|scroll> X Y [button=] [to=X,Y] [by=DX,DY] "
    "[delay=MS] [in=SEC|at=EPOCH_MS] [desc=TEXT].",
)
registry.register("list", cmd_list, help_text="List all tasks.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register("del", cmd_delete, help_text="Delete a task (cancels its timer): /del <id>.", aliases=["rm"])
registry.register("run", cmd_run, help_text="Run a task now: /run <id>.")
registry.register(
    "reschedule", cmd_reschedule, help_text="Re-arm a task: /reschedule <id> in=SEC | at=EPOCH_MS."
)
registry.register("clear", cmd_clear, help_text="Delete all tasks and timers.")
registry.register("pos", cmd_pos, help_text="Show the current pointer position.")
registry.register(
    "storage", cmd_storage, help_text="Storage location: /storage | /storage <dir> | /storage clear."
)
