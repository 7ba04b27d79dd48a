# src/routine_keeper/tasks/task_models.py

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import IntEnum, StrEnum
from typing import Any


class TaskRecordError(ValueError):
    """A task record (dict/JSON) is structurally invalid."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(f"{field_name}: {message}")
        self.field_name = field_name


class Weekday(IntEnum):
    """Same numbering as date.weekday()."""

    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
    SUN = 6

    @property
    def short(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, raw: Any) -> Weekday:
        if isinstance(raw, int) and not isinstance(raw, bool):
            return cls(raw)
        s = str(raw).strip().lower()[:3]
        for wd in cls:
            if wd.short == s:
                return wd
        raise ValueError(f"unknown weekday: {raw!r}")


class TaskKind(StrEnum):
    ONE_TIME = "one_time"
    ROUTINE = "routine"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskKind:
        if not raw:
            return cls.ONE_TIME
        try:
            return cls(raw)
        except ValueError:
            return cls.ONE_TIME


class RecurrenceKind(StrEnum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"

    @classmethod
    def from_raw(cls, raw: str | None) -> RecurrenceKind:
        # Routines saved before recurrence kinds existed were all weekly.
        if not raw:
            return cls.WEEKLY
        try:
            return cls(raw)
        except ValueError:
            return cls.WEEKLY


class IntervalUnit(StrEnum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"

    @classmethod
    def from_raw(cls, raw: str | None) -> IntervalUnit:
        if not raw:
            return cls.DAYS
        try:
            return cls(raw)
        except ValueError:
            return cls.DAYS


class AdvanceUnit(StrEnum):
    MINUTES = "minutes"
    HOURS = "hours"

    @classmethod
    def from_raw(cls, raw: str | None) -> AdvanceUnit:
        if not raw:
            return cls.MINUTES
        try:
            return cls(raw)
        except ValueError:
            return cls.MINUTES


# ---- codec helpers ----


def _parse_date(raw: Any, field_name: str) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError:
        raise TaskRecordError(field_name, f"expected YYYY-MM-DD, got {raw!r}") from None


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(raw)


def _parse_optional_date(raw: Any, field_name: str) -> date | None:
    if raw is None or raw == "":
        return None
    return _parse_date(raw, field_name)


def _parse_time(raw: Any, field_name: str) -> time | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, time):
        return raw
    try:
        return time.fromisoformat(str(raw).strip())
    except ValueError:
        raise TaskRecordError(field_name, f"expected HH:MM, got {raw!r}") from None


def _parse_dates(raw: Any, field_name: str) -> frozenset[date]:
    if not raw:
        return frozenset()
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise TaskRecordError(field_name, "expected a list of dates")
    return frozenset(_parse_date(x, field_name) for x in raw)


def _dates_to_list(dates: Iterable[date]) -> list[str]:
    return [d.isoformat() for d in sorted(dates)]


@dataclass(slots=True, frozen=True)
class RecurrencePattern:
    """
    Recurrence definition attached to a routine.

    - weekdays: used by WEEKLY and BIWEEKLY
    - month_day: used by MONTHLY and CUSTOM/MONTHS (None -> start_date's day)
    - interval_count / interval_unit: CUSTOM only
    - start_date / end_date: inclusive bounds
    - excluded_dates: single occurrences removed from the routine
    """

    kind: RecurrenceKind
    start_date: date
    weekdays: frozenset[Weekday] = frozenset()
    month_day: int | None = None
    interval_count: int = 1
    interval_unit: IntervalUnit = IntervalUnit.DAYS
    end_date: date | None = None
    excluded_dates: frozenset[date] = frozenset()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> RecurrencePattern:
        if "start_date" not in raw:
            raise TaskRecordError("pattern.start_date", "missing")

        try:
            weekdays = frozenset(Weekday.parse(x) for x in raw.get("weekdays") or [])
        except ValueError as e:
            raise TaskRecordError("pattern.weekdays", str(e)) from None

        month_day = raw.get("month_day")
        if month_day is not None:
            try:
                month_day = int(month_day)
            except (TypeError, ValueError):
                raise TaskRecordError("pattern.month_day", f"expected 1..31, got {month_day!r}") from None
            if not 1 <= month_day <= 31:
                raise TaskRecordError("pattern.month_day", f"expected 1..31, got {month_day!r}")

        try:
            raw_count = raw.get("interval_count")
            interval_count = 1 if raw_count is None else int(raw_count)
        except (TypeError, ValueError):
            raise TaskRecordError("pattern.interval_count", "expected an integer") from None

        return cls(
            kind=RecurrenceKind.from_raw(raw.get("kind")),
            start_date=_parse_date(raw["start_date"], "pattern.start_date"),
            weekdays=weekdays,
            month_day=month_day,
            interval_count=interval_count,
            interval_unit=IntervalUnit.from_raw(raw.get("interval_unit")),
            end_date=_parse_optional_date(raw.get("end_date"), "pattern.end_date"),
            excluded_dates=_parse_dates(raw.get("excluded_dates"), "pattern.excluded_dates"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "kind": self.kind.value,
            "start_date": self.start_date.isoformat(),
            "weekdays": [wd.short for wd in sorted(self.weekdays)],
            "excluded_dates": _dates_to_list(self.excluded_dates),
        }
        if self.month_day is not None:
            out["month_day"] = self.month_day
        if self.kind == RecurrenceKind.CUSTOM:
            out["interval_count"] = self.interval_count
            out["interval_unit"] = self.interval_unit.value
        if self.end_date is not None:
            out["end_date"] = self.end_date.isoformat()
        return out


@dataclass(slots=True, frozen=True)
class NotificationSettings:
    enabled: bool = False
    # None or <= 0 means "use the default lead time".
    advance_amount: int | None = None
    advance_unit: AdvanceUnit = AdvanceUnit.MINUTES

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> NotificationSettings:
        amount = raw.get("advance_amount")
        if amount is not None:
            try:
                amount = int(amount)
            except (TypeError, ValueError):
                raise TaskRecordError("notification.advance_amount", "expected an integer") from None
        return cls(
            enabled=_parse_bool(raw.get("enabled", False)),
            advance_amount=amount,
            advance_unit=AdvanceUnit.from_raw(raw.get("advance_unit")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "advance_amount": self.advance_amount,
            "advance_unit": self.advance_unit.value,
        }


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    kind: TaskKind

    time_of_day: time | None = None
    description: str = ""

    # one-time
    due_date: date | None = None
    is_completed: bool = False

    # routine
    pattern: RecurrencePattern | None = None
    completed_dates: frozenset[date] = field(default_factory=frozenset)

    notification: NotificationSettings | None = None

    @property
    def is_routine(self) -> bool:
        return self.kind == TaskKind.ROUTINE

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Task:
        task_id = raw.get("id")
        if task_id is None or str(task_id).strip() == "":
            raise TaskRecordError("id", "missing")

        kind = TaskKind.from_raw(raw.get("kind"))

        pattern = None
        pattern_raw = raw.get("pattern")
        if kind == TaskKind.ROUTINE:
            if not isinstance(pattern_raw, Mapping):
                raise TaskRecordError("pattern", "routine tasks need a pattern object")
            pattern = RecurrencePattern.from_dict(pattern_raw)

        notification = None
        notification_raw = raw.get("notification")
        if isinstance(notification_raw, Mapping):
            notification = NotificationSettings.from_dict(notification_raw)

        return cls(
            id=str(task_id),
            title=str(raw.get("title") or ""),
            kind=kind,
            time_of_day=_parse_time(raw.get("time"), "time"),
            description=str(raw.get("description") or ""),
            due_date=_parse_optional_date(raw.get("date"), "date"),
            is_completed=_parse_bool(raw.get("is_completed", False)),
            pattern=pattern,
            completed_dates=_parse_dates(raw.get("completed_dates"), "completed_dates"),
            notification=notification,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "kind": self.kind.value,
        }
        if self.description:
            out["description"] = self.description
        if self.time_of_day is not None:
            out["time"] = self.time_of_day.strftime("%H:%M")
        if self.kind == TaskKind.ONE_TIME:
            out["date"] = self.due_date.isoformat() if self.due_date else None
            out["is_completed"] = self.is_completed
        else:
            out["pattern"] = self.pattern.to_dict() if self.pattern else None
            out["completed_dates"] = _dates_to_list(self.completed_dates)
        if self.notification is not None:
            out["notification"] = self.notification.to_dict()
        return out
