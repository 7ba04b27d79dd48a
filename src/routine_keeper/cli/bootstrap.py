# src/routine_keeper/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the task store, the reminder scheduler thread and the reminder sink into AppState.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from ..config import get_settings
from ..core.ports import TaskRepo
from ..core.state import AppState
from ..tasks.scheduler_runner import start_scheduler_in_background
from ..tasks.task_scheduler import reminder_text
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


class ConsoleReminderSink:
    """Prints fired reminders; runs on the scheduler thread."""

    def __init__(
        self,
        task_store: TaskRepo,
        *,
        default_advance_minutes: int = 10,
        write: Callable[[str], None] = print,
    ) -> None:
        self._task_store = task_store
        self._default_advance_minutes = default_advance_minutes
        self._write = write

    def on_reminder_due(self, task_id: str, occurrence_date: date) -> None:
        task = self._task_store.get_task(task_id)
        if task is None:
            logger.debug("Reminder for unknown task_id=%s ignored", task_id)
            return
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self._write(f"[{ts}] [REMINDER] {reminder_text(task, self._default_advance_minutes)}")
        logger.info("Reminder delivered task_id=%s occurrence=%s", task_id, occurrence_date)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, start_scheduler: bool = True) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(settings.tasks_path)
    state = AppState(settings=settings, task_store=task_store)

    if start_scheduler:
        sink = ConsoleReminderSink(
            task_store, default_advance_minutes=settings.default_advance_minutes
        )
        state.scheduler = start_scheduler_in_background(
            sink,
            clock=state.clock,
            reminders_enabled=settings.reminders_enabled,
            default_advance_minutes=settings.default_advance_minutes,
            search_budget=settings.search_budget,
        )
        state.resync_reminders()

    return state
