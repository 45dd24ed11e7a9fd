# src/mouse_autopilot/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Every component also accepts settings injected explicitly (tests never read the env).
- Unparsable values fall back to defaults instead of failing at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "AUTOPILOT"

POINTER_BACKENDS = ("pyautogui", "dry-run")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    storage_config_path: Path
    default_storage_dir: Path

    # ---- Pointer driver ----
    pointer_backend: str
    pointer_failsafe: bool

    # ---- Persistence ----
    autosave_interval_seconds: float

    # ---- Execution timing (milliseconds) ----
    move_duration_ms: int
    drag_duration_ms: int
    frame_interval_ms: int
    click_settle_ms: int
    click_hold_ms: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "mouse-autopilot") or "mouse-autopilot"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/mouse-autopilot"))
        storage_config_path = _env_path(_k("STORAGE_CONFIG_PATH"), data_dir / "storage-config.json")
        default_storage_dir = _env_path(_k("STORAGE_DIR"), data_dir / "data")

        pointer_backend = _env(_k("POINTER_BACKEND"), "pyautogui").strip().lower()
        if pointer_backend not in POINTER_BACKENDS:
            pointer_backend = "pyautogui"
        pointer_failsafe = _env_bool(_k("POINTER_FAILSAFE"), True)

        autosave_interval_seconds = _env_float(_k("AUTOSAVE_INTERVAL_SECONDS"), 2.0)

        move_duration_ms = _env_int(_k("MOVE_DURATION_MS"), 500)
        drag_duration_ms = _env_int(_k("DRAG_DURATION_MS"), 500)
        frame_interval_ms = _env_int(_k("FRAME_INTERVAL_MS"), 16)
        click_settle_ms = _env_int(_k("CLICK_SETTLE_MS"), 100)
        click_hold_ms = _env_int(_k("CLICK_HOLD_MS"), 50)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            storage_config_path=storage_config_path,
            default_storage_dir=default_storage_dir,
            pointer_backend=pointer_backend,
            pointer_failsafe=pointer_failsafe,
            autosave_interval_seconds=autosave_interval_seconds,
            move_duration_ms=move_duration_ms,
            drag_duration_ms=drag_duration_ms,
            frame_interval_ms=frame_interval_ms,
            click_settle_ms=click_settle_ms,
            click_hold_ms=click_hold_ms,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
