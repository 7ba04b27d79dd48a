# src/routine_keeper/core/state.py

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..tasks.scheduler_runner import SchedulerBackgroundRunner
    from .ports import TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    task_store: TaskRepo
    scheduler: SchedulerBackgroundRunner | None = None

    clock: Callable[[], datetime] = datetime.now
    lock: threading.Lock = field(default_factory=threading.Lock)

    def today(self):
        return self.clock().date()

    def resync_reminders(self) -> None:
        """Push the current task snapshot into the scheduler (no-op without one)."""
        if self.scheduler is not None:
            self.scheduler.resync(self.task_store.list_tasks())
