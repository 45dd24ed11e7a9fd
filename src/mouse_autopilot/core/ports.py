# src/mouse_autopilot/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The engine depends on Protocols instead of concrete implementations.
This keeps the OS pointer backend and the storage swappable and makes testing easier.
"""

from collections.abc import Iterable
from typing import Any, Protocol


class PointerDriver(Protocol):
    """
    OS-level pointer capability.

    Coordinates are integer screen pixels. Scroll sign convention:
    positive dy scrolls down, positive dx scrolls right.
    """

    def get_position(self) -> tuple[int, int]: ...
    def set_position(self, x: int, y: int) -> None: ...
    def press_button(self, button: str) -> None: ...
    def release_button(self, button: str) -> None: ...
    def scroll(self, dx: int, dy: int) -> None: ...


class TaskPersistence(Protocol):
    """Durable storage of the whole task list as one document."""

    def load_tasks(self) -> list[Any]: ...
    def save_tasks(self, tasks: Iterable[Any]) -> None: ...
