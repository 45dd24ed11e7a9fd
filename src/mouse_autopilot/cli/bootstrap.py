# src/mouse_autopilot/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the pointer driver, the JSON task store and the controller into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import PointerDriver
from ..core.state import AppState
from ..drivers.dry_run import DryRunPointerDriver
from ..tasks.task_controller import MouseController
from ..tasks.task_executor import ExecutionTiming
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_config_path.parent.mkdir(parents=True, exist_ok=True)


def create_pointer_driver(settings) -> PointerDriver:
    backend = str(getattr(settings, "pointer_backend", "pyautogui"))
    if backend == "dry-run":
        logger.info("Using dry-run pointer driver (the real cursor is not touched)")
        return DryRunPointerDriver()

    from ..drivers.pyautogui_driver import PyAutoGuiPointerDriver

    return PyAutoGuiPointerDriver(failsafe=bool(getattr(settings, "pointer_failsafe", True)))


def create_initial_state(*, settings=None, driver: PointerDriver | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the driver) injectable makes the app easier to test and
    avoids hidden global config reads. If settings is None, falls back to get_settings().
    The controller is not started here; call `await state.controller.start()`.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if driver is None:
        driver = create_pointer_driver(settings)

    store = TaskStore(settings.default_storage_dir, settings.storage_config_path)
    controller = MouseController(
        driver,
        store,
        timing=ExecutionTiming.from_settings(settings),
        autosave_interval_seconds=float(getattr(settings, "autosave_interval_seconds", 2.0)),
    )
    return AppState(settings=settings, driver=driver, controller=controller)
