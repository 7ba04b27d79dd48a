# tests/test_task_store.py

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import pytest

from routine_keeper.tasks.task_store import TaskStore

from .fakes import make_one_time, make_routine


def test_add_get_and_reload(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    store = TaskStore(path)
    store.add_task(make_routine())
    store.add_task(make_one_time())

    reloaded = TaskStore(path)

    assert reloaded.count_tasks() == 2
    assert reloaded.get_task("gym") == make_routine()
    assert reloaded.get_task("dentist") == make_one_time()


def test_blank_id_gets_generated(store: TaskStore) -> None:
    task = store.add_task(replace(make_one_time(), id=""))
    assert task.id
    assert store.get_task(task.id) == task


def test_duplicate_and_unknown_ids_raise(store: TaskStore) -> None:
    store.add_task(make_routine())
    with pytest.raises(KeyError):
        store.add_task(make_routine())
    with pytest.raises(KeyError):
        store.update_task(make_one_time())


def test_update_and_delete(store: TaskStore) -> None:
    store.add_task(make_routine())
    store.update_task(replace(make_routine(), title="Swim"))

    assert store.get_task("gym").title == "Swim"
    assert store.delete_task("gym") is True
    assert store.delete_task("gym") is False
    assert store.list_tasks() == []


def test_failed_write_leaves_memory_and_file_unchanged(store: TaskStore, monkeypatch) -> None:
    store.add_task(make_routine())

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("routine_keeper.tasks.task_store.os.replace", fail_replace)

    with pytest.raises(OSError):
        store.add_task(make_one_time())
    with pytest.raises(OSError):
        store.delete_task("gym")

    assert [t.id for t in store.list_tasks()] == ["gym"]
    assert not store.path.with_suffix(".tmp").exists()
    assert [t.id for t in TaskStore(store.path).list_tasks()] == ["gym"]


def test_malformed_records_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text(
        json.dumps(
            {
                "tasks": [
                    make_one_time().to_dict(),
                    {"title": "no id"},
                    "not an object",
                    {"id": "bad", "kind": "routine"},
                ]
            }
        ),
        "utf-8",
    )

    store = TaskStore(path)

    assert [t.id for t in store.list_tasks()] == ["dentist"]


def test_unreadable_file_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text("{not json", "utf-8")

    assert TaskStore(path).count_tasks() == 0


def test_file_is_written_atomically(store: TaskStore) -> None:
    store.add_task(make_routine())

    data = json.loads(store.path.read_text("utf-8"))
    assert [r["id"] for r in data["tasks"]] == ["gym"]
    assert not store.path.with_suffix(".tmp").exists()
