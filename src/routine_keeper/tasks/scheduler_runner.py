# src/routine_keeper/tasks/scheduler_runner.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from ..core.ports import Clock, ReminderSink
from .task_models import Task
from .task_scheduler import ReminderScheduler, ReminderSlot, ReminderState

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class SchedulerBackgroundRunner:
    """
    Handle to a ReminderScheduler living on its own event loop thread.

    Every call is marshalled onto that loop, so the scheduler's timer map is
    only ever touched by one thread.
    """

    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event
    scheduler: ReminderScheduler

    def call(self, fn: Callable[..., T], *args: Any, timeout: float = 5.0) -> T:
        async def _run() -> T:
            return fn(*args)

        fut = asyncio.run_coroutine_threadsafe(_run(), self.loop)
        return fut.result(timeout=timeout)

    def resync(self, tasks: Iterable[Task]) -> None:
        self.call(self.scheduler.resync, list(tasks))

    def cancel_for(self, task_id: str) -> None:
        self.call(self.scheduler.cancel_for, task_id)

    def pending(self) -> list[ReminderSlot]:
        return self.call(self.scheduler.pending)

    def state_of(self, task_id: str) -> ReminderState:
        return self.call(self.scheduler.state_of, task_id)

    def set_reminders_enabled(self, enabled: bool) -> None:
        def _apply() -> None:
            self.scheduler.reminders_enabled = enabled

        self.call(_apply)

    def reminders_enabled(self) -> bool:
        return self.call(lambda: self.scheduler.reminders_enabled)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal scheduler stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_scheduler_in_background(
    sink: ReminderSink,
    *,
    clock: Clock = datetime.now,
    reminders_enabled: bool = True,
    default_advance_minutes: int = 10,
    search_budget: int = 512,
) -> SchedulerBackgroundRunner | None:
    """
    Start the reminder scheduler on a background thread with its own event loop.

    The console REPL blocks on input(), so timers need a loop of their own.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()
        scheduler = ReminderScheduler(
            loop,
            sink,
            clock=clock,
            reminders_enabled=reminders_enabled,
            default_advance_minutes=default_advance_minutes,
            search_budget=search_budget,
        )

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        holder["scheduler"] = scheduler
        ready.set()

        try:
            loop.run_until_complete(stop_event.wait())
        finally:
            with contextlib.suppress(Exception):
                scheduler.cancel_all()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="reminder-scheduler", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")
    scheduler = holder.get("scheduler")

    if (
        not isinstance(loop, asyncio.AbstractEventLoop)
        or not isinstance(stop_event, asyncio.Event)
        or not isinstance(scheduler, ReminderScheduler)
    ):
        logger.error("Scheduler thread did not initialize properly.")
        return None

    logger.info("Reminder scheduler thread started.")
    return SchedulerBackgroundRunner(thread=t, loop=loop, stop_event=stop_event, scheduler=scheduler)
