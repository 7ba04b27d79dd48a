# src/routine_keeper/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import threading
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any

from .task_models import Task, TaskRecordError

logger = logging.getLogger(__name__)


class TaskStore:
    """
    JSON-file task store.

    File layout: {"tasks": [<task record>, ...]}.

    - the whole file is read once and kept in memory
    - every mutation rewrites the file atomically (tmp file + os.replace) and only
      then updates the in-memory map
    - malformed records are logged and skipped, the rest still load

    Thread-safety:
    - a lock guards the in-memory map and the write
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._tasks: dict[str, Task] = self._load()
        logger.info("TaskStore ready path=%s total=%s", self._path, len(self._tasks))

    @property
    def path(self) -> Path:
        return self._path

    # ---- low-level helpers ----

    def _load(self) -> dict[str, Task]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.exception("Failed to read tasks from %s; starting empty.", self._path)
            return {}

        records: Any = data.get("tasks") if isinstance(data, dict) else data
        if not isinstance(records, list):
            logger.warning("Unexpected tasks file layout in %s; starting empty.", self._path)
            return {}

        out: dict[str, Task] = {}
        for i, raw in enumerate(records):
            if not isinstance(raw, dict):
                logger.warning("Skipping task record #%d: not an object", i)
                continue
            try:
                task = Task.from_dict(raw)
            except TaskRecordError as e:
                logger.warning("Skipping task record #%d: %s", i, e)
                continue
            out[task.id] = task
        return out

    def _commit(self, tasks: dict[str, Task]) -> None:
        """Write `tasks` to disk, then adopt it; on failure memory keeps matching the file."""
        payload = {"tasks": [t.to_dict() for t in tasks.values()]}
        tmp = self._path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        finally:
            tmp.unlink(missing_ok=True)
        self._tasks = tasks
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)

    # ---- public API ----

    def list_tasks(self) -> list[Task]:
        with self._lock:
            return list(self._tasks.values())

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            return self._tasks.get(task_id)

    def count_tasks(self) -> int:
        with self._lock:
            return len(self._tasks)

    def add_task(self, task: Task) -> Task:
        """Store a new task; a blank id gets a generated one."""
        if not task.id:
            task = replace(task, id=uuid.uuid4().hex[:12])
        with self._lock:
            if task.id in self._tasks:
                raise KeyError(f"task already exists: {task.id}")
            self._commit({**self._tasks, task.id: task})
        logger.info("Task added id=%s kind=%s", task.id, task.kind.value)
        return task

    def update_task(self, task: Task) -> None:
        with self._lock:
            if task.id not in self._tasks:
                raise KeyError(f"unknown task: {task.id}")
            self._commit({**self._tasks, task.id: task})
        logger.debug("Task updated id=%s", task.id)

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            if task_id not in self._tasks:
                return False
            self._commit({k: t for k, t in self._tasks.items() if k != task_id})
        logger.info("Task deleted id=%s", task_id)
        return True
