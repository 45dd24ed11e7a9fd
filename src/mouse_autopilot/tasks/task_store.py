# src/mouse_autopilot/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .task_models import MouseTask, now_ms

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = "1.0"
TASKS_FILENAME = "tasks.json"


class TaskStore:
    """
    JSON file task store.

    The whole task list is one document: {version, timestamp, tasks: [...]}.
    Every save rewrites the file atomically (write a temp file, then os.replace).

    A small separate config document ({"storageDir": "..."}) records a custom
    storage directory; when present and usable it overrides the default
    directory at initialize().
    """

    def __init__(self, default_dir: str | Path, config_path: str | Path) -> None:
        self._storage_dir = Path(default_dir)
        self._config_path = Path(config_path)

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    @property
    def tasks_path(self) -> Path:
        return self._storage_dir / TASKS_FILENAME

    # ---- storage location ----

    def initialize(self) -> None:
        """Apply the storage config (if any) and make sure the storage directory exists."""
        self._load_storage_config()
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        logger.info("TaskStore ready dir=%s", self._storage_dir)

    def _load_storage_config(self) -> None:
        path = self._config_path
        if not path.exists():
            return
        try:
            data = json.loads(path.read_text("utf-8"))
            raw_dir = data.get("storageDir") if isinstance(data, dict) else None
            if not raw_dir or not isinstance(raw_dir, str):
                logger.warning("Storage config %s has no usable storageDir; using default", path)
                return
            storage_dir = Path(raw_dir).expanduser()
            storage_dir.mkdir(parents=True, exist_ok=True)
            self._storage_dir = storage_dir
            logger.info("Loaded custom storage location: %s", storage_dir)
        except Exception:
            logger.warning("Failed to load storage config %s; using default", path, exc_info=True)

    def set_storage_location(self, location: str | Path) -> Path:
        """
        Move future loads/saves to `location`.

        The directory is created first (so an unusable location raises and
        nothing changes), then recorded in the storage config document.
        Existing task files are not copied.
        """
        storage_dir = Path(location).expanduser()
        storage_dir.mkdir(parents=True, exist_ok=True)

        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write_json(self._config_path, {"storageDir": str(storage_dir)})

        self._storage_dir = storage_dir
        logger.info("Storage location changed to %s", storage_dir)
        return storage_dir

    # ---- public API ----

    def load_tasks(self) -> list[MouseTask]:
        """
        Return the persisted tasks.

        Missing file, unreadable file or a document without a `tasks` list all
        yield an empty list. Individual malformed records are skipped.
        """
        path = self.tasks_path
        if not path.exists():
            logger.info("Tasks file %s does not exist; starting empty", path)
            return []

        try:
            data = json.loads(path.read_text("utf-8"))
        except Exception:
            logger.exception("Failed to read tasks file %s", path)
            self._backup_corrupt(path)
            return []

        records = data.get("tasks") if isinstance(data, dict) else None
        if not isinstance(records, list):
            logger.warning("Tasks file %s has invalid structure; starting empty", path)
            return []

        tasks: list[MouseTask] = []
        for raw in records:
            if not isinstance(raw, dict):
                logger.warning("Skipping non-object task record: %r", raw)
                continue
            try:
                tasks.append(MouseTask.from_dict(raw))
            except ValueError as e:
                logger.warning("Skipping invalid task record id=%s: %s", raw.get("id"), e)

        logger.info("Loaded %d tasks from %s", len(tasks), path)
        return tasks

    def save_tasks(self, tasks: Iterable[MouseTask]) -> None:
        """Write the full document. Errors propagate to the caller (autosave retries)."""
        records = [t.to_dict() for t in tasks]
        document: dict[str, Any] = {
            "version": DOCUMENT_VERSION,
            "timestamp": now_ms(),
            "tasks": records,
        }
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        _atomic_write_json(self.tasks_path, document)
        logger.debug("Saved %d tasks to %s", len(records), self.tasks_path)

    def clear_tasks(self) -> bool:
        """Delete the tasks file. Returns False if there was nothing to delete."""
        try:
            self.tasks_path.unlink()
        except FileNotFoundError:
            logger.info("Tasks file %s does not exist; nothing to clear", self.tasks_path)
            return False
        logger.info("Cleared saved tasks at %s", self.tasks_path)
        return True

    @staticmethod
    def _backup_corrupt(path: Path) -> None:
        backup = path.with_name(path.name + ".bak")
        if backup.exists():
            backup = path.with_name(f"{path.name}.{now_ms()}.bak")
        with contextlib.suppress(OSError):
            path.replace(backup)
            logger.warning("Moved unreadable tasks file aside to %s", backup)


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, path)
    except Exception:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise
