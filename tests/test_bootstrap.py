# tests/test_bootstrap.py

from __future__ import annotations

from routine_keeper.cli.bootstrap import ConsoleReminderSink, create_initial_state

from .fakes import MONDAY, make_routine


def test_console_sink_writes_reminder_text(store) -> None:
    store.add_task(make_routine(advance=15))
    lines: list[str] = []
    sink = ConsoleReminderSink(store, write=lines.append)

    sink.on_reminder_due("gym", MONDAY)
    sink.on_reminder_due("missing", MONDAY)

    assert len(lines) == 1
    assert lines[0].endswith("[REMINDER] In 15 minutes: Gym")


def test_create_initial_state_without_scheduler(settings) -> None:
    state = create_initial_state(settings=settings, start_scheduler=False)

    assert state.scheduler is None
    assert state.task_store.count_tasks() == 0
    assert settings.data_dir.exists()


def test_create_initial_state_with_scheduler(settings) -> None:
    state = create_initial_state(settings=settings)
    try:
        assert state.scheduler is not None
        assert state.scheduler.reminders_enabled() is True
    finally:
        state.scheduler.stop()
        state.scheduler.join(timeout=5.0)
