# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from mouse_autopilot.cli.bootstrap import create_initial_state
from mouse_autopilot.core.state import AppState
from mouse_autopilot.tasks.task_executor import ExecutionTiming
from mouse_autopilot.tasks.task_registry import TaskRegistry
from mouse_autopilot.tasks.task_store import TaskStore

from .fakes import FakePointerDriver

# Two 16ms frames per move, no click pauses: keeps execution tests fast.
FAST_TIMING = ExecutionTiming(
    move_duration_ms=32,
    drag_duration_ms=64,
    frame_interval_ms=16,
    click_settle_ms=0,
    click_hold_ms=0,
)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the engine.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="mouse-autopilot-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        storage_config_path=tmp_path / "storage-config.json",
        default_storage_dir=tmp_path / "data",
        pointer_backend="dry-run",
        pointer_failsafe=False,
        autosave_interval_seconds=0.05,
        move_duration_ms=FAST_TIMING.move_duration_ms,
        drag_duration_ms=FAST_TIMING.drag_duration_ms,
        frame_interval_ms=FAST_TIMING.frame_interval_ms,
        click_settle_ms=FAST_TIMING.click_settle_ms,
        click_hold_ms=FAST_TIMING.click_hold_ms,
    )


@pytest.fixture()
def driver() -> FakePointerDriver:
    return FakePointerDriver()


@pytest.fixture()
def registry() -> TaskRegistry:
    return TaskRegistry()


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.default_storage_dir, settings.storage_config_path)


@pytest.fixture()
def state(settings: SimpleNamespace, driver: FakePointerDriver) -> AppState:
    """
    AppState wired through the real composition root with a fake driver.

    NOTE: the JSON store is real (tmp dir) because its behavior is part of
    what we want to test. The controller is not started.
    """
    return create_initial_state(settings=settings, driver=driver)
