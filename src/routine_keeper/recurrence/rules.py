# src/routine_keeper/recurrence/rules.py

"""
Recurrence rule table.

Every cadence is described once, as a pair of functions built on the same arithmetic:
- matches(pattern, d): does d fit the cadence (bounds/exclusions are checked by the caller)
- first_on_or_after(pattern, d): earliest date >= d that fits the cadence, or None

The public API is a thin layer over that table:
- is_scheduled_on(pattern, d): bounds + exclusions + matches
- iter_occurrences(pattern, start_from): forward search driven by first_on_or_after
- next_occurrence_after(pattern, reference, time_of_day): first occurrence strictly after an instant
- occurrences_between(pattern, first, last): occurrences in an inclusive window

Unsatisfiable patterns (empty weekday set, interval <= 0) simply have no occurrences.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from ..tasks.task_models import IntervalUnit, RecurrenceKind, RecurrencePattern
from .calendar_math import (
    add_days,
    add_months,
    day_of_month,
    days_between,
    first_of_next_month,
    is_last_day_of_month,
    last_day_of_month,
    months_between,
    weekday_of,
)

logger = logging.getLogger(__name__)

# Upper bound on candidates examined by one forward search.
DEFAULT_SEARCH_BUDGET = 512


class Cadence(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    EVERY_N_DAYS = "every_n_days"
    EVERY_N_WEEKS = "every_n_weeks"
    EVERY_N_MONTHS = "every_n_months"


def cadence_of(pattern: RecurrencePattern) -> Cadence:
    if pattern.kind == RecurrenceKind.WEEKLY:
        return Cadence.WEEKLY
    if pattern.kind == RecurrenceKind.BIWEEKLY:
        return Cadence.BIWEEKLY
    if pattern.kind == RecurrenceKind.MONTHLY:
        return Cadence.MONTHLY
    if pattern.interval_unit == IntervalUnit.WEEKS:
        return Cadence.EVERY_N_WEEKS
    if pattern.interval_unit == IntervalUnit.MONTHS:
        return Cadence.EVERY_N_MONTHS
    return Cadence.EVERY_N_DAYS


# ---- shared arithmetic ----


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def _target_month_day(pattern: RecurrencePattern) -> int:
    return pattern.month_day or day_of_month(pattern.start_date)


def _month_days(year: int, month: int, target: int) -> list[int]:
    """
    Days of a month that satisfy the day-of-month rule for `target`.

    The target day itself (when the month has it) plus, for targets >= 28,
    the month's last day, so "the 31st" still lands in short months.
    """
    last = last_day_of_month(year, month)
    days = set()
    if target <= last:
        days.add(target)
    if target >= 28:
        days.add(last)
    return sorted(days)


def _matches_month_day(target: int, d: date) -> bool:
    return day_of_month(d) == target or (target >= 28 and is_last_day_of_month(d))


def _first_month_day_on_or_after(target: int, d: date) -> date:
    for day in _month_days(d.year, d.month, target):
        if day >= d.day:
            return d.replace(day=day)
    nxt = first_of_next_month(d)
    return nxt.replace(day=_month_days(nxt.year, nxt.month, target)[0])


def _week_index(pattern: RecurrencePattern, d: date) -> int:
    return days_between(pattern.start_date, d) // 7


def _first_weekday_on_or_after(weekdays: frozenset[int], d: date) -> date | None:
    if not weekdays:
        return None
    wd = weekday_of(d)
    return add_days(d, min((w - wd) % 7 for w in weekdays))


# ---- per-cadence rules ----


def _weekly_matches(p: RecurrencePattern, d: date) -> bool:
    return weekday_of(d) in p.weekdays


def _weekly_first(p: RecurrencePattern, d: date) -> date | None:
    return _first_weekday_on_or_after(p.weekdays, d)


def _biweekly_matches(p: RecurrencePattern, d: date) -> bool:
    return weekday_of(d) in p.weekdays and _week_index(p, d) % 2 == 0


def _biweekly_first(p: RecurrencePattern, d: date) -> date | None:
    if not p.weekdays:
        return None
    if _week_index(p, d) % 2 == 1:
        # Off week: jump to the first day of the next active week.
        d = add_days(p.start_date, (_week_index(p, d) + 1) * 7)
    candidate = _first_weekday_on_or_after(p.weekdays, d)
    if candidate is not None and _week_index(p, candidate) % 2 == 1:
        # Ran past the end of the active week.
        candidate = _first_weekday_on_or_after(
            p.weekdays, add_days(p.start_date, (_week_index(p, candidate) + 1) * 7)
        )
    return candidate


def _monthly_matches(p: RecurrencePattern, d: date) -> bool:
    return _matches_month_day(_target_month_day(p), d)


def _monthly_first(p: RecurrencePattern, d: date) -> date | None:
    return _first_month_day_on_or_after(_target_month_day(p), d)


def _every_n_days_matches(p: RecurrencePattern, d: date) -> bool:
    if p.interval_count <= 0:
        return False
    return days_between(p.start_date, d) % p.interval_count == 0


def _every_n_days_first(p: RecurrencePattern, d: date) -> date | None:
    n = p.interval_count
    if n <= 0:
        return None
    k = _ceil_div(days_between(p.start_date, d), n)
    return add_days(p.start_date, k * n)


def _every_n_weeks_matches(p: RecurrencePattern, d: date) -> bool:
    if p.interval_count <= 0:
        return False
    return weekday_of(d) == weekday_of(p.start_date) and _week_index(p, d) % p.interval_count == 0


def _every_n_weeks_first(p: RecurrencePattern, d: date) -> date | None:
    n = p.interval_count
    if n <= 0:
        return None
    k = _ceil_div(days_between(p.start_date, d), 7 * n)
    return add_days(p.start_date, k * 7 * n)


def _every_n_months_matches(p: RecurrencePattern, d: date) -> bool:
    if p.interval_count <= 0:
        return False
    return (
        months_between(p.start_date, d) % p.interval_count == 0
        and _matches_month_day(_target_month_day(p), d)
    )


def _every_n_months_first(p: RecurrencePattern, d: date) -> date | None:
    n = p.interval_count
    if n <= 0:
        return None
    target = _target_month_day(p)
    k = _ceil_div(months_between(p.start_date, d), n)
    # At most two steps: the active month containing d may already be past its last match.
    for _ in range(2):
        month_start = add_months(p.start_date.replace(day=1), k * n)
        probe = max(month_start, d)
        days = [x for x in _month_days(probe.year, probe.month, target) if x >= probe.day]
        if days:
            return probe.replace(day=days[0])
        k += 1
    return None


@dataclass(frozen=True, slots=True)
class Rule:
    matches: Callable[[RecurrencePattern, date], bool]
    first_on_or_after: Callable[[RecurrencePattern, date], date | None]


RULES: dict[Cadence, Rule] = {
    Cadence.WEEKLY: Rule(_weekly_matches, _weekly_first),
    Cadence.BIWEEKLY: Rule(_biweekly_matches, _biweekly_first),
    Cadence.MONTHLY: Rule(_monthly_matches, _monthly_first),
    Cadence.EVERY_N_DAYS: Rule(_every_n_days_matches, _every_n_days_first),
    Cadence.EVERY_N_WEEKS: Rule(_every_n_weeks_matches, _every_n_weeks_first),
    Cadence.EVERY_N_MONTHS: Rule(_every_n_months_matches, _every_n_months_first),
}


# ---- public API ----


def _in_bounds(pattern: RecurrencePattern, d: date) -> bool:
    if d < pattern.start_date:
        return False
    if pattern.end_date is not None and d > pattern.end_date:
        return False
    return True


def is_scheduled_on(pattern: RecurrencePattern, d: date) -> bool:
    if not _in_bounds(pattern, d) or d in pattern.excluded_dates:
        return False
    return RULES[cadence_of(pattern)].matches(pattern, d)


def iter_occurrences(
    pattern: RecurrencePattern,
    start_from: date,
    *,
    budget: int = DEFAULT_SEARCH_BUDGET,
) -> Iterator[date]:
    """
    Yield occurrence dates on/after start_from, in order.

    Stops at end_date, when the cadence has no further candidate, or after `budget`
    consecutive candidates were rejected (excluded dates). Open-ended patterns never
    stop on their own; callers bound the iteration.
    """
    rule = RULES[cadence_of(pattern)]
    cursor = max(start_from, pattern.start_date)
    misses = 0

    while misses < budget:
        candidate = rule.first_on_or_after(pattern, cursor)
        if candidate is None:
            return
        if pattern.end_date is not None and candidate > pattern.end_date:
            return
        if candidate not in pattern.excluded_dates and rule.matches(pattern, candidate):
            misses = 0
            yield candidate
        else:
            misses += 1
        cursor = add_days(candidate, 1)

    logger.debug("Search budget exhausted pattern=%s start_from=%s", pattern.kind.value, start_from)


def next_occurrence_after(
    pattern: RecurrencePattern,
    reference: datetime,
    time_of_day: time | None = None,
    *,
    budget: int = DEFAULT_SEARCH_BUDGET,
) -> datetime | None:
    """
    First occurrence (date combined with time_of_day) strictly after `reference`.

    Untimed occurrences count as midnight. Returns None when the pattern has ended,
    can never match, or the search budget runs out.
    """
    at = time_of_day or time.min
    first_day = reference.date()
    if datetime.combine(first_day, at) <= reference:
        first_day += timedelta(days=1)

    for d in iter_occurrences(pattern, first_day, budget=budget):
        return datetime.combine(d, at)
    return None


def occurrences_between(
    pattern: RecurrencePattern,
    first: date,
    last: date,
    *,
    budget: int = DEFAULT_SEARCH_BUDGET,
) -> list[date]:
    out: list[date] = []
    for d in iter_occurrences(pattern, first, budget=budget):
        if d > last:
            break
        out.append(d)
    return out
