# src/routine_keeper/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable
from datetime import date, time, timedelta
from typing import cast

from ..core.state import AppState
from ..recurrence.rules import next_occurrence_after
from ..tasks.agenda import completion_progress, tasks_due_on
from ..tasks.completion import exclude_occurrence, is_completed_on, toggle_completion
from ..tasks.task_models import (
    IntervalUnit,
    NotificationSettings,
    RecurrenceKind,
    RecurrencePattern,
    Task,
    TaskKind,
    Weekday,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /today, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def parse_day(state: AppState, raw: str | None) -> date | None:
    """today / tomorrow / yesterday / YYYY-MM-DD; None if unparseable."""
    today = state.today()
    if raw is None:
        return today
    s = raw.strip().lower()
    if s == "today":
        return today
    if s == "tomorrow":
        return today + timedelta(days=1)
    if s == "yesterday":
        return today - timedelta(days=1)
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def format_task_line(task: Task, d: date) -> str:
    mark = "x" if is_completed_on(task, d) else " "
    at = task.time_of_day.strftime("%H:%M") if task.time_of_day else "--:--"
    return f"[{mark}] {at} {task.title} (id={task.id})"


def _find_task(state: AppState, task_id: str) -> Task | None:
    return state.task_store.get_task(task_id)


_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_EVERY_RE = re.compile(r"^(\d+)([dwm])$")
_EVERY_UNITS = {"d": IntervalUnit.DAYS, "w": IntervalUnit.WEEKS, "m": IntervalUnit.MONTHS}


def parse_clock(raw: str) -> time | None:
    """HH:MM (24h); None if it is not a clock time."""
    m = _CLOCK_RE.match(raw.strip())
    if not m:
        return None
    try:
        return time(int(m.group(1)), int(m.group(2)))
    except ValueError:
        return None


def parse_pattern(kind: str, spec: str, start: date) -> RecurrencePattern | None:
    """
    weekly|biweekly <mon,thu>, monthly <day>, every <N>d|w|m.
    The routine starts on `start`; None if the arguments don't parse.
    """
    if kind in ("weekly", "biweekly"):
        try:
            weekdays = frozenset(Weekday.parse(x) for x in spec.split(",") if x)
        except ValueError:
            return None
        if not weekdays:
            return None
        return RecurrencePattern(kind=RecurrenceKind(kind), start_date=start, weekdays=weekdays)

    if kind == "monthly":
        if not spec.isdigit() or not 1 <= int(spec) <= 31:
            return None
        return RecurrencePattern(kind=RecurrenceKind.MONTHLY, start_date=start, month_day=int(spec))

    if kind == "every":
        m = _EVERY_RE.match(spec.lower())
        if not m or int(m.group(1)) <= 0:
            return None
        return RecurrencePattern(
            kind=RecurrenceKind.CUSTOM,
            start_date=start,
            interval_count=int(m.group(1)),
            interval_unit=_EVERY_UNITS[m.group(2)],
        )

    return None


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    total = state.task_store.count_tasks()
    routines = sum(1 for t in state.task_store.list_tasks() if t.kind == TaskKind.ROUTINE)
    if state.scheduler is None:
        reminders = "UNAVAILABLE"
        armed = 0
    else:
        reminders = "ON" if state.scheduler.reminders_enabled() else "OFF"
        armed = len(state.scheduler.pending())
    return (
        "Status:\n"
        f"  Tasks: {total} ({routines} routines)\n"
        f"  Reminders: {reminders} ({armed} armed)\n"
        f"  Store: {getattr(state.settings, 'tasks_path', '?')}"
    )


_ADD_USAGE = (
    "Usage: /add once <YYYY-MM-DD> [HH:MM] <title>\n"
    "       /add weekly|biweekly <mon,thu> [HH:MM] <title>\n"
    "       /add monthly <day> [HH:MM] <title>\n"
    "       /add every <N>d|w|m [HH:MM] <title>"
)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    Create a task. Routines start today; a task with a time gets reminders
    with the default lead time.
    """
    if len(args) < 3:
        return _ADD_USAGE

    kind, spec, rest = args[0].lower(), args[1], args[2:]
    at = parse_clock(rest[0])
    if at is not None:
        rest = rest[1:]
    title = " ".join(rest).strip()
    if not title:
        return _ADD_USAGE

    notification = NotificationSettings(enabled=at is not None)
    if kind == "once":
        d = parse_day(state, spec)
        if d is None:
            return _ADD_USAGE
        task = Task(
            id="",
            title=title,
            kind=TaskKind.ONE_TIME,
            time_of_day=at,
            due_date=d,
            notification=notification,
        )
    else:
        pattern = parse_pattern(kind, spec, state.today())
        if pattern is None:
            return _ADD_USAGE
        task = Task(
            id="",
            title=title,
            kind=TaskKind.ROUTINE,
            time_of_day=at,
            pattern=pattern,
            notification=notification,
        )

    task = state.task_store.add_task(task)
    state.resync_reminders()
    return f"Added {task.title} (id={task.id})."


def cmd_today(state: AppState, args: list[str]) -> str:
    """
    /today             -> agenda for today
    /today 2024-03-04  -> agenda for a given date
    """
    d = parse_day(state, args[0] if args else None)
    if d is None:
        return "Usage: /today [YYYY-MM-DD|today|tomorrow]"

    tasks = state.task_store.list_tasks()
    due = tasks_due_on(tasks, d)
    if not due:
        return f"Nothing due on {d.isoformat()}."

    done, total, percent = completion_progress(tasks, d)
    lines = [f"Due on {d.isoformat()} ({done}/{total}, {percent}%):"]
    lines.extend(f"  {format_task_line(t, d)}" for t in due)
    return "\n".join(lines)


def cmd_next(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /next <task_id>"
    task = _find_task(state, args[0])
    if task is None:
        return f"Unknown task: {args[0]}"

    now = state.clock()
    if task.kind == TaskKind.ONE_TIME:
        if task.due_date is None:
            return f"{task.title}: no date set."
        return f"{task.title}: {task.due_date.isoformat()} (one-time)"

    if task.pattern is None:
        return f"{task.title}: no recurrence pattern."
    nxt = next_occurrence_after(task.pattern, now, task.time_of_day)
    if nxt is None:
        return f"{task.title}: no upcoming occurrence."
    shown = nxt.strftime("%Y-%m-%d %H:%M") if task.time_of_day else nxt.date().isoformat()
    return f"{task.title}: next on {shown}"


def cmd_done(state: AppState, args: list[str]) -> str:
    """
    /done <id>          -> toggle completion for today
    /done <id> <date>   -> toggle completion for a given date (routines)
    """
    if not args:
        return "Usage: /done <task_id> [YYYY-MM-DD]"
    task = _find_task(state, args[0])
    if task is None:
        return f"Unknown task: {args[0]}"
    d = parse_day(state, args[1] if len(args) > 1 else None)
    if d is None:
        return "Usage: /done <task_id> [YYYY-MM-DD]"

    updated = toggle_completion(task, d)
    logger.debug("Completion toggled task_id=%s date=%s", task.id, d.isoformat())
    state.task_store.update_task(updated)
    state.resync_reminders()

    status = "done" if is_completed_on(updated, d) else "not done"
    if task.kind == TaskKind.ONE_TIME:
        return f"{task.title}: marked {status}."
    return f"{task.title}: marked {status} for {d.isoformat()}."


def cmd_skip(state: AppState, args: list[str]) -> str:
    """/skip <id> <date> -> remove one occurrence of a routine."""
    if len(args) < 2:
        return "Usage: /skip <task_id> <YYYY-MM-DD>"
    task = _find_task(state, args[0])
    if task is None:
        return f"Unknown task: {args[0]}"
    if task.kind != TaskKind.ROUTINE:
        return f"{task.title} is not a routine; use /delete instead."
    d = parse_day(state, args[1])
    if d is None:
        return "Usage: /skip <task_id> <YYYY-MM-DD>"

    state.task_store.update_task(exclude_occurrence(task, d))
    state.resync_reminders()
    return f"{task.title}: occurrence on {d.isoformat()} removed."


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <task_id>"
    task_id = args[0]
    if state.scheduler is not None:
        state.scheduler.cancel_for(task_id)
    if not state.task_store.delete_task(task_id):
        return f"Unknown task: {task_id}"
    state.resync_reminders()
    return f"Task {task_id} deleted."


def cmd_pending(state: AppState, args: list[str]) -> str:
    if state.scheduler is None:
        return "Reminder scheduler is not running."
    slots = state.scheduler.pending()
    if not slots:
        return "No reminders armed."
    lines = ["Armed reminders:"]
    for slot in slots:
        task = _find_task(state, slot.task_id)
        title = task.title if task else slot.task_id
        lines.append(
            f"  {slot.fire_at.strftime('%Y-%m-%d %H:%M')} -> {title} "
            f"(occurrence {slot.occurrence_at.strftime('%Y-%m-%d %H:%M')})"
        )
    return "\n".join(lines)


def cmd_reminders(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /reminders      -> show status
    /reminders on   -> arm reminders for all tasks
    /reminders off  -> cancel every pending reminder
    """
    if state.scheduler is None:
        return "Reminder scheduler is not running."

    enabled = state.scheduler.reminders_enabled()
    if not args:
        return f"Reminders are currently {'ON' if enabled else 'OFF'}. Use /reminders on or /reminders off."

    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        if enabled:
            return "Reminders are already ON."
        if emit:
            emit("[REMINDERS] Re-arming reminders...")
        state.scheduler.set_reminders_enabled(True)
        state.resync_reminders()
        return f"Reminders enabled ({len(state.scheduler.pending())} armed)."

    if arg in ("off", "0", "false", "no"):
        if not enabled:
            return "Reminders are already OFF."
        state.scheduler.set_reminders_enabled(False)
        return "Reminders disabled."

    return "Usage: /reminders on or /reminders off."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show task count, reminder state and store path.")
registry.register(
    "today", cmd_today, help_text="Agenda for a date: /today [YYYY-MM-DD].", aliases=["agenda"]
)
registry.register(
    "add", cmd_add, help_text="Create a task: /add once|weekly|biweekly|monthly|every ... (see /add)."
)
registry.register("next", cmd_next, help_text="Next occurrence of a task: /next <id>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id> [YYYY-MM-DD].")
registry.register("skip", cmd_skip, help_text="Remove one routine occurrence: /skip <id> <YYYY-MM-DD>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.")
registry.register("pending", cmd_pending, help_text="List armed reminders.")
registry.register("reminders", cmd_reminders, help_text="Enable/disable reminders: /reminders on | off.")
