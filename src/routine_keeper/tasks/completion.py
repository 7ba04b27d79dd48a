# src/routine_keeper/tasks/completion.py

"""
Completion state queries and pure updates.

Nothing here persists anything: callers store the returned Task themselves and
then resync the reminder scheduler.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from .task_models import Task, TaskKind


def is_completed_on(task: Task, d: date) -> bool:
    """One-time tasks have a single flag (d is ignored); routines track each date."""
    if task.kind == TaskKind.ONE_TIME:
        return task.is_completed
    return d in task.completed_dates


def toggle_completion(task: Task, d: date) -> Task:
    if task.kind == TaskKind.ONE_TIME:
        return replace(task, is_completed=not task.is_completed)

    if d in task.completed_dates:
        return replace(task, completed_dates=task.completed_dates - {d})
    return replace(task, completed_dates=task.completed_dates | {d})


def exclude_occurrence(task: Task, d: date) -> Task:
    """Remove a single occurrence from a routine without touching the rest of it."""
    if task.kind != TaskKind.ROUTINE or task.pattern is None:
        return task
    if d in task.pattern.excluded_dates:
        return task
    pattern = replace(task.pattern, excluded_dates=task.pattern.excluded_dates | {d})
    return replace(task, pattern=pattern)
