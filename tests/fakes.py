# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mouse_autopilot.core.ports import PointerDriver
from mouse_autopilot.tasks.task_models import MouseTask


@dataclass(slots=True)
class FakePointerDriver(PointerDriver):
    """
    Deterministic PointerDriver for unit tests.

    - Tracks a virtual cursor
    - Records every mutating primitive in `calls` for assertions
    - `fail_on` names a primitive that raises RuntimeError
    """

    position: tuple[int, int] = (0, 0)
    calls: list[tuple[Any, ...]] = field(default_factory=list)
    fail_on: str | None = None

    def _maybe_fail(self, op: str) -> None:
        if self.fail_on == op:
            raise RuntimeError(f"{op} failed")

    def get_position(self) -> tuple[int, int]:
        self._maybe_fail("get_position")
        return self.position

    def set_position(self, x: int, y: int) -> None:
        self._maybe_fail("set_position")
        self.position = (x, y)
        self.calls.append(("set_position", x, y))

    def press_button(self, button: str) -> None:
        self._maybe_fail("press_button")
        self.calls.append(("press_button", button))

    def release_button(self, button: str) -> None:
        self._maybe_fail("release_button")
        self.calls.append(("release_button", button))

    def scroll(self, dx: int, dy: int) -> None:
        self._maybe_fail("scroll")
        self.calls.append(("scroll", dx, dy))

    @property
    def moves(self) -> list[tuple[int, int]]:
        return [(c[1], c[2]) for c in self.calls if c[0] == "set_position"]

    @property
    def button_calls(self) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] in ("press_button", "release_button")]


@dataclass(slots=True)
class FailingStore:
    """TaskPersistence whose saves fail until `failures` runs out."""

    failures: int = 1
    saved: list[list[MouseTask]] = field(default_factory=list)

    def load_tasks(self) -> list[MouseTask]:
        return []

    def save_tasks(self, tasks) -> None:
        if self.failures > 0:
            self.failures -= 1
            raise OSError("disk full")
        self.saved.append(list(tasks))
