# tests/test_completion.py

from __future__ import annotations

from datetime import date

from routine_keeper.tasks.completion import exclude_occurrence, is_completed_on, toggle_completion

from .fakes import MONDAY, make_one_time, make_routine


def test_routine_completion_is_per_date() -> None:
    task = toggle_completion(make_routine(), MONDAY)

    assert is_completed_on(task, MONDAY)
    assert not is_completed_on(task, date(2024, 3, 11))

    task = toggle_completion(task, MONDAY)
    assert not is_completed_on(task, MONDAY)
    assert task.completed_dates == frozenset()


def test_one_time_completion_ignores_date() -> None:
    task = toggle_completion(make_one_time(), date(2030, 1, 1))

    assert task.is_completed
    assert is_completed_on(task, MONDAY)
    assert not toggle_completion(task, MONDAY).is_completed


def test_exclude_occurrence() -> None:
    task = exclude_occurrence(make_routine(), MONDAY)

    assert task.pattern is not None
    assert task.pattern.excluded_dates == frozenset({MONDAY})
    assert exclude_occurrence(task, MONDAY) is task


def test_exclude_occurrence_leaves_one_time_tasks_alone() -> None:
    task = make_one_time()
    assert exclude_occurrence(task, MONDAY) is task
