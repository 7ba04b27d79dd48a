# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from routine_keeper.core.state import AppState
from routine_keeper.tasks.task_store import TaskStore

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="routine-keeper-test",
        log_level="DEBUG",
        console_enabled=False,
        reminders_enabled=True,
        default_advance_minutes=10,
        search_budget=512,
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 4, 8, 0))


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_path)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, clock: FakeClock) -> AppState:
    """
    AppState without a scheduler thread.

    NOTE: We keep the real JSON TaskStore here because its behaviour
    is part of what the command tests exercise.
    """
    return AppState(settings=settings, task_store=store, clock=clock)
