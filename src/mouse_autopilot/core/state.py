# src/mouse_autopilot/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_controller import MouseController
from .ports import PointerDriver


@dataclass
class AppState:
    # Store Settings on the state for easy access in commands/connectors.
    settings: object

    driver: PointerDriver
    controller: MouseController
