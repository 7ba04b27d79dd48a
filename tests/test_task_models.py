# tests/test_task_models.py

from __future__ import annotations

from datetime import date, datetime, time

import pytest

from routine_keeper.tasks.task_models import (
    AdvanceUnit,
    IntervalUnit,
    NotificationSettings,
    RecurrenceKind,
    RecurrencePattern,
    Task,
    TaskKind,
    TaskRecordError,
    Weekday,
)


def test_routine_record_loads() -> None:
    task = Task.from_dict(
        {
            "id": "gym",
            "title": "Gym",
            "kind": "routine",
            "time": "18:30",
            "pattern": {
                "kind": "biweekly",
                "start_date": "2024-01-01",
                "weekdays": ["mon", "thu"],
                "excluded_dates": ["2024-01-04"],
            },
            "completed_dates": ["2024-01-01"],
            "notification": {"enabled": True, "advance_amount": 2, "advance_unit": "hours"},
        }
    )

    assert task.kind == TaskKind.ROUTINE
    assert task.time_of_day == time(18, 30)
    assert task.pattern is not None
    assert task.pattern.kind == RecurrenceKind.BIWEEKLY
    assert task.pattern.weekdays == frozenset({Weekday.MON, Weekday.THU})
    assert task.pattern.excluded_dates == frozenset({date(2024, 1, 4)})
    assert task.completed_dates == frozenset({date(2024, 1, 1)})
    assert task.notification == NotificationSettings(True, 2, AdvanceUnit.HOURS)


def test_routine_record_survives_save_and_load() -> None:
    task = Task(
        id="rent",
        title="Pay rent",
        kind=TaskKind.ROUTINE,
        time_of_day=time(9, 0),
        description="transfer",
        pattern=RecurrencePattern(
            kind=RecurrenceKind.CUSTOM,
            start_date=date(2024, 1, 31),
            month_day=31,
            interval_count=2,
            interval_unit=IntervalUnit.MONTHS,
            end_date=date(2025, 1, 1),
        ),
        completed_dates=frozenset({date(2024, 3, 31)}),
        notification=NotificationSettings(enabled=True),
    )
    assert Task.from_dict(task.to_dict()) == task


def test_one_time_record_defaults() -> None:
    task = Task.from_dict({"id": "x", "title": "Call", "date": "2024-03-04"})

    assert task.kind == TaskKind.ONE_TIME
    assert task.due_date == date(2024, 3, 4)
    assert task.time_of_day is None
    assert task.is_completed is False
    assert task.notification is None
    assert task.to_dict() == {
        "id": "x",
        "title": "Call",
        "kind": "one_time",
        "date": "2024-03-04",
        "is_completed": False,
    }


def test_unknown_enum_values_fall_back() -> None:
    pattern = RecurrencePattern.from_dict(
        {"kind": "yearly", "start_date": "2024-01-01", "interval_unit": "fortnights"}
    )
    assert pattern.kind == RecurrenceKind.WEEKLY
    assert pattern.interval_unit == IntervalUnit.DAYS
    assert NotificationSettings.from_dict({"advance_unit": "days"}).advance_unit == AdvanceUnit.MINUTES
    assert TaskKind.from_raw("chore") == TaskKind.ONE_TIME


def test_datetime_values_are_narrowed_to_dates() -> None:
    pattern = RecurrencePattern.from_dict(
        {"start_date": datetime(2024, 1, 1, 9, 30), "excluded_dates": [datetime(2024, 1, 8, 7, 0)]}
    )

    assert type(pattern.start_date) is date
    assert pattern.start_date == date(2024, 1, 1)
    assert pattern.excluded_dates == frozenset({date(2024, 1, 8)})
    assert pattern.start_date < date(2024, 1, 2)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("false", False), ("0", False), ("no", False), ("", False), ("true", True), ("On", True), (1, True)],
)
def test_boolean_flags_accept_strings(raw, expected: bool) -> None:
    task = Task.from_dict({"id": "a", "is_completed": raw, "notification": {"enabled": raw}})

    assert task.is_completed is expected
    assert task.notification is not None
    assert task.notification.enabled is expected


def test_zero_interval_is_kept() -> None:
    pattern = RecurrencePattern.from_dict(
        {"kind": "custom", "start_date": "2024-01-01", "interval_count": 0}
    )
    assert pattern.interval_count == 0


def test_weekday_parse_accepts_names_and_numbers() -> None:
    assert Weekday.parse("Monday") == Weekday.MON
    assert Weekday.parse("sun") == Weekday.SUN
    assert Weekday.parse(2) == Weekday.WED
    with pytest.raises(ValueError):
        Weekday.parse("someday")


@pytest.mark.parametrize(
    ("record", "field_name"),
    [
        ({"title": "no id"}, "id"),
        ({"id": "a", "kind": "routine"}, "pattern"),
        ({"id": "a", "kind": "routine", "pattern": {"kind": "weekly"}}, "pattern.start_date"),
        ({"id": "a", "date": "04/03/2024"}, "date"),
        ({"id": "a", "time": "half past nine"}, "time"),
        (
            {"id": "a", "kind": "routine", "pattern": {"start_date": "2024-01-01", "weekdays": ["xyz"]}},
            "pattern.weekdays",
        ),
        (
            {"id": "a", "kind": "routine", "pattern": {"start_date": "2024-01-01", "month_day": 32}},
            "pattern.month_day",
        ),
        ({"id": "a", "completed_dates": "2024-01-01"}, "completed_dates"),
        ({"id": "a", "notification": {"advance_amount": "soon"}}, "notification.advance_amount"),
    ],
)
def test_malformed_records_raise(record, field_name: str) -> None:
    with pytest.raises(TaskRecordError) as exc_info:
        Task.from_dict(record)
    assert exc_info.value.field_name == field_name
