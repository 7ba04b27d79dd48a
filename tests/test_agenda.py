# tests/test_agenda.py

from __future__ import annotations

from datetime import date, time

from routine_keeper.tasks.agenda import completion_progress, is_due_on, tasks_due_on
from routine_keeper.tasks.completion import exclude_occurrence, toggle_completion
from routine_keeper.tasks.task_models import Weekday

from .fakes import MONDAY, make_one_time, make_routine


def test_is_due_on() -> None:
    assert is_due_on(make_routine(), MONDAY)
    assert not is_due_on(make_routine(), date(2024, 3, 5))
    assert not is_due_on(exclude_occurrence(make_routine(), MONDAY), MONDAY)
    assert is_due_on(make_one_time(), MONDAY)
    assert not is_due_on(make_one_time(), date(2024, 3, 11))


def test_tasks_due_on_sorts_untimed_first_then_by_time() -> None:
    tasks = [
        make_one_time(),  # 15:30
        make_routine("b", title="beta", at=time(7, 0)),
        make_routine("a", title="Alpha", at=time(7, 0)),
        make_routine("untimed", title="Stretch", at=None),
        make_routine("tue", weekdays=frozenset({Weekday.TUE})),
    ]

    assert [t.id for t in tasks_due_on(tasks, MONDAY)] == ["untimed", "a", "b", "dentist"]


def test_completion_progress() -> None:
    tasks = [
        toggle_completion(make_routine(), MONDAY),
        make_one_time(),
        make_routine("walk", title="Walk"),
    ]

    assert completion_progress(tasks, MONDAY) == (1, 3, 33)
    assert completion_progress(tasks, date(2024, 3, 5)) == (0, 0, 0)


def test_completion_progress_rounds_half_up() -> None:
    tasks = [toggle_completion(make_routine(), MONDAY)] + [
        make_routine(f"r{i}", title=f"R{i}") for i in range(7)
    ]
    # 1 of 8 -> 12.5%
    assert completion_progress(tasks, MONDAY) == (1, 8, 13)
