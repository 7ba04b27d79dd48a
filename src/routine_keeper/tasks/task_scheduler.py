# src/routine_keeper/tasks/task_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

Holds at most one live timer per task:
- resync(tasks) drops every pending timer and re-arms each eligible task,
- when a timer fires, the task is re-read from the latest synced set, the reminder
  is emitted unless that occurrence is already completed, and the next occurrence
  is armed straight away (timer -> handler -> new timer, no polling).

Presenting the reminder belongs to the sink, not the scheduler.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from ..core.ports import Clock, ReminderSink, TimerFacility, TimerHandle
from ..recurrence.rules import DEFAULT_SEARCH_BUDGET, next_occurrence_after
from .completion import is_completed_on
from .task_models import AdvanceUnit, NotificationSettings, Task, TaskKind

logger = logging.getLogger(__name__)

DEFAULT_ADVANCE_MINUTES = 10


class ReminderState(str, Enum):
    DISABLED = "disabled"
    ARMED = "armed"
    FIRED = "fired"
    EXHAUSTED = "exhausted"


@dataclass(slots=True, frozen=True)
class ReminderSlot:
    """One computed reminder: which occurrence, and when to fire for it."""

    task_id: str
    occurrence_date: date
    occurrence_at: datetime
    fire_at: datetime


@dataclass(slots=True)
class PendingReminder:
    slot: ReminderSlot
    handle: TimerHandle


def advance_offset(
    notification: NotificationSettings | None,
    default_minutes: int = DEFAULT_ADVANCE_MINUTES,
) -> timedelta:
    amount = notification.advance_amount if notification is not None else None
    if not amount or amount <= 0:
        return timedelta(minutes=default_minutes)
    if notification is not None and notification.advance_unit == AdvanceUnit.HOURS:
        return timedelta(hours=amount)
    return timedelta(minutes=amount)


def reminder_text(task: Task, default_minutes: int = DEFAULT_ADVANCE_MINUTES) -> str:
    """Short human text for a fired reminder, e.g. "In 10 minutes: Gym"."""
    notification = task.notification
    amount = notification.advance_amount if notification is not None else None
    if not amount or amount <= 0:
        amount, unit = default_minutes, AdvanceUnit.MINUTES
    else:
        unit = notification.advance_unit if notification is not None else AdvanceUnit.MINUTES

    noun = "hour" if unit == AdvanceUnit.HOURS else "minute"
    if amount != 1:
        noun += "s"
    return f"In {amount} {noun}: {task.title}"


def is_reminder_eligible(task: Task) -> bool:
    notification = task.notification
    if notification is None or not notification.enabled:
        return False
    if task.time_of_day is None:
        return False
    if task.kind == TaskKind.ONE_TIME:
        return task.due_date is not None and not task.is_completed
    return task.pattern is not None


def next_reminder(
    task: Task,
    now: datetime,
    *,
    after: datetime | None = None,
    default_advance_minutes: int = DEFAULT_ADVANCE_MINUTES,
    search_budget: int = DEFAULT_SEARCH_BUDGET,
) -> ReminderSlot | None:
    """
    Next reminder for an eligible task, or None.

    The occurrence must be strictly after `after` (when given) and its fire instant
    strictly after `now`. Searching from now + offset gives exactly that second
    condition, so past fire instants are skipped without a retry loop.
    """
    if not is_reminder_eligible(task) or task.time_of_day is None:
        return None

    offset = advance_offset(task.notification, default_advance_minutes)
    reference = now + offset
    if after is not None and after > reference:
        reference = after

    if task.kind == TaskKind.ONE_TIME:
        if task.due_date is None:
            return None
        occurrence_at: datetime | None = datetime.combine(task.due_date, task.time_of_day)
        if occurrence_at is not None and occurrence_at <= reference:
            occurrence_at = None
    else:
        if task.pattern is None:
            return None
        occurrence_at = next_occurrence_after(
            task.pattern, reference, task.time_of_day, budget=search_budget
        )

    if occurrence_at is None:
        return None

    return ReminderSlot(
        task_id=task.id,
        occurrence_date=occurrence_at.date(),
        occurrence_at=occurrence_at,
        fire_at=occurrence_at - offset,
    )


class ReminderScheduler:
    """
    Owns the task -> pending reminder map.

    resync/cancel_for/cancel_all are the only mutators and are safe to call from
    inside the sink while a reminder is being delivered.
    """

    def __init__(
        self,
        timers: TimerFacility,
        sink: ReminderSink,
        *,
        clock: Clock = datetime.now,
        reminders_enabled: bool = True,
        default_advance_minutes: int = DEFAULT_ADVANCE_MINUTES,
        search_budget: int = DEFAULT_SEARCH_BUDGET,
    ) -> None:
        self._timers = timers
        self._sink = sink
        self._clock = clock
        self._reminders_enabled = bool(reminders_enabled)
        self._default_advance_minutes = int(default_advance_minutes)
        self._search_budget = int(search_budget)

        self._tasks: dict[str, Task] = {}
        self._pending: dict[str, PendingReminder] = {}
        self._states: dict[str, ReminderState] = {}
        # Last occurrence delivered per task; never armed again.
        self._last_fired: dict[str, datetime] = {}

    # ---- public API ----

    @property
    def reminders_enabled(self) -> bool:
        return self._reminders_enabled

    @reminders_enabled.setter
    def reminders_enabled(self, value: bool) -> None:
        value = bool(value)
        if value == self._reminders_enabled:
            return
        self._reminders_enabled = value
        logger.info("Reminders %s", "enabled" if value else "disabled")
        self.resync(list(self._tasks.values()))

    def resync(self, tasks: list[Task]) -> None:
        """Replace the task set: cancel every pending timer, then re-arm from scratch."""
        self._cancel_pending()
        self._tasks = {t.id: t for t in tasks}
        self._states = {}
        self._last_fired = {k: v for k, v in self._last_fired.items() if k in self._tasks}

        if not self._reminders_enabled:
            for task_id in self._tasks:
                self._states[task_id] = ReminderState.DISABLED
            logger.debug("Reminders disabled; resync tracked %d tasks, armed none", len(self._tasks))
            return

        for task in self._tasks.values():
            self._arm(task, after=None, initial=True)

        logger.info("Reminders resynced tasks=%d armed=%d", len(self._tasks), len(self._pending))

    def cancel_for(self, task_id: str) -> None:
        """Drop one task's timer; it stays quiet until the next resync."""
        self._cancel_one(task_id)
        self._tasks.pop(task_id, None)
        self._states[task_id] = ReminderState.DISABLED
        logger.debug("Reminder cancelled task_id=%s", task_id)

    def cancel_all(self) -> None:
        self._cancel_pending()
        self._tasks = {}
        self._states = {}
        self._last_fired = {}
        logger.debug("All reminders cancelled")

    def state_of(self, task_id: str) -> ReminderState:
        return self._states.get(task_id, ReminderState.DISABLED)

    def pending(self) -> list[ReminderSlot]:
        """Snapshot of armed reminders ordered by fire time."""
        return sorted((p.slot for p in self._pending.values()), key=lambda s: (s.fire_at, s.task_id))

    # ---- internals ----

    def _cancel_one(self, task_id: str) -> None:
        pending = self._pending.pop(task_id, None)
        if pending is not None:
            pending.handle.cancel()

    def _cancel_pending(self) -> None:
        for pending in self._pending.values():
            pending.handle.cancel()
        self._pending.clear()

    def _arm(self, task: Task, *, after: datetime | None, initial: bool) -> bool:
        if not is_reminder_eligible(task):
            self._states[task.id] = ReminderState.DISABLED
            return False

        last = self._last_fired.get(task.id)
        if last is not None and (after is None or last > after):
            after = last

        now = self._clock()
        slot = next_reminder(
            task,
            now,
            after=after,
            default_advance_minutes=self._default_advance_minutes,
            search_budget=self._search_budget,
        )
        if slot is None:
            self._states[task.id] = ReminderState.DISABLED if initial else ReminderState.EXHAUSTED
            logger.debug("No upcoming reminder task_id=%s", task.id)
            return False

        delay = max(0.0, (slot.fire_at - now).total_seconds())
        handle = self._timers.call_later(delay, self._on_timer, task.id, slot)
        self._pending[task.id] = PendingReminder(slot=slot, handle=handle)
        self._states[task.id] = ReminderState.ARMED
        logger.debug(
            "Reminder armed task_id=%s occurrence=%s fire_at=%s",
            task.id,
            slot.occurrence_at.isoformat(),
            slot.fire_at.isoformat(),
        )
        return True

    def _on_timer(self, task_id: str, slot: ReminderSlot) -> None:
        pending = self._pending.get(task_id)
        if pending is None or pending.slot is not slot:
            # Cancelled or replaced after the timer was already queued.
            return

        del self._pending[task_id]
        self._states[task_id] = ReminderState.FIRED
        self._last_fired[task_id] = slot.occurrence_at

        task = self._tasks.get(task_id)
        if task is None:
            self._states[task_id] = ReminderState.DISABLED
            return

        if is_completed_on(task, slot.occurrence_date):
            logger.info(
                "Task %s already completed for %s; reminder skipped", task_id, slot.occurrence_date
            )
        else:
            try:
                self._sink.on_reminder_due(task_id, slot.occurrence_date)
            except Exception:
                logger.exception("Reminder sink failed task_id=%s", task_id)

        # The sink may have resynced or cancelled; only continue our own chain.
        if self._states.get(task_id) != ReminderState.FIRED or task_id in self._pending:
            return
        current = self._tasks.get(task_id)
        if current is None or not self._reminders_enabled:
            self._states[task_id] = ReminderState.DISABLED
            return

        self._arm(current, after=slot.occurrence_at, initial=False)
