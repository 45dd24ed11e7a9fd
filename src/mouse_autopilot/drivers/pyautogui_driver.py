# src/mouse_autopilot/drivers/pyautogui_driver.py

from __future__ import annotations

import logging

import pyautogui

logger = logging.getLogger(__name__)


class PyAutoGuiPointerDriver:
    """
    PointerDriver backed by pyautogui.

    Importing this module needs a display (pyautogui connects on import), so the
    bootstrap imports it only when this backend is selected.
    """

    def __init__(self, *, failsafe: bool = True) -> None:
        # Move mouse to a screen corner to abort (pyautogui.FailSafeException).
        pyautogui.FAILSAFE = failsafe
        # The engine paces its own frames; no artificial pause per call.
        pyautogui.PAUSE = 0.0
        width, height = pyautogui.size()
        logger.info("pyautogui pointer driver ready screen=%sx%s failsafe=%s", width, height, failsafe)

    def get_position(self) -> tuple[int, int]:
        pos = pyautogui.position()
        return int(pos.x), int(pos.y)

    def set_position(self, x: int, y: int) -> None:
        pyautogui.moveTo(x, y)

    def press_button(self, button: str) -> None:
        pyautogui.mouseDown(button=button)

    def release_button(self, button: str) -> None:
        pyautogui.mouseUp(button=button)

    def scroll(self, dx: int, dy: int) -> None:
        # pyautogui: positive scroll() is up, positive hscroll() is right.
        if dy:
            pyautogui.scroll(-int(dy))
        if dx:
            pyautogui.hscroll(int(dx))
