# src/routine_keeper/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The scheduler depends on Protocols instead of concrete implementations.
An asyncio event loop already satisfies TimerFacility, and tests swap in
manual timers and a fixed clock.
"""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any, Protocol

from ..tasks.task_models import Task

Clock = Callable[[], datetime]
# Returns the current naive local datetime (datetime.now is the default).


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerFacility(Protocol):
    """Shaped like asyncio.AbstractEventLoop.call_later."""

    def call_later(self, delay: float, callback: Callable[..., object], *args: Any) -> TimerHandle: ...


class ReminderSink(Protocol):
    """
    Receives fired reminders.

    Called on the scheduler's event-loop thread; presenting the reminder
    (console line, desktop popup, chat message) is the sink's business.
    """

    def on_reminder_due(self, task_id: str, occurrence_date: date) -> None: ...


class TaskRepo(Protocol):
    def list_tasks(self) -> list[Task]: ...

    def get_task(self, task_id: str) -> Task | None: ...

    def count_tasks(self) -> int: ...

    def add_task(self, task: Task) -> Task: ...

    def update_task(self, task: Task) -> None: ...

    def delete_task(self, task_id: str) -> bool: ...
