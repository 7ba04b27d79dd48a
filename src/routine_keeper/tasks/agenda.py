# src/routine_keeper/tasks/agenda.py

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, time

from ..recurrence.rules import is_scheduled_on
from .completion import is_completed_on
from .task_models import Task, TaskKind


def is_due_on(task: Task, d: date) -> bool:
    if task.kind == TaskKind.ONE_TIME:
        return task.due_date == d
    if task.pattern is None:
        return False
    return is_scheduled_on(task.pattern, d)


def _agenda_key(task: Task) -> tuple[bool, time, str]:
    # Untimed tasks first, then by time of day, then by title.
    return (task.time_of_day is not None, task.time_of_day or time.min, task.title.lower())


def tasks_due_on(tasks: Iterable[Task], d: date) -> list[Task]:
    """Everything due on d: one-time tasks dated d plus routines scheduled on d."""
    return sorted((t for t in tasks if is_due_on(t, d)), key=_agenda_key)


def completion_progress(tasks: Iterable[Task], d: date) -> tuple[int, int, int]:
    """
    (done, total, percent) for the tasks due on d.

    percent is rounded to the nearest integer and is 0 when nothing is due.
    """
    due = tasks_due_on(tasks, d)
    done = sum(1 for t in due if is_completed_on(t, d))
    total = len(due)
    percent = int(done * 100 / total + 0.5) if total else 0
    return done, total, percent
