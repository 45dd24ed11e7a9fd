# src/mouse_autopilot/drivers/dry_run.py

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class DryRunPointerDriver:
    """
    In-memory pointer driver for rehearsing task lists without touching the real cursor.

    Tracks a virtual cursor and held buttons; every primitive is logged
    (moves at DEBUG, everything else at INFO).
    """

    def __init__(self, start: tuple[int, int] = (0, 0)) -> None:
        self._x, self._y = start
        self._pressed: set[str] = set()

    @property
    def pressed_buttons(self) -> frozenset[str]:
        return frozenset(self._pressed)

    def get_position(self) -> tuple[int, int]:
        return self._x, self._y

    def set_position(self, x: int, y: int) -> None:
        self._x, self._y = int(x), int(y)
        logger.debug("[dry-run] move to (%s,%s)", self._x, self._y)

    def press_button(self, button: str) -> None:
        self._pressed.add(button)
        logger.info("[dry-run] press %s at (%s,%s)", button, self._x, self._y)

    def release_button(self, button: str) -> None:
        self._pressed.discard(button)
        logger.info("[dry-run] release %s at (%s,%s)", button, self._x, self._y)

    def scroll(self, dx: int, dy: int) -> None:
        logger.info("[dry-run] scroll dx=%s dy=%s at (%s,%s)", dx, dy, self._x, self._y)
