"""
routine-keeper: recurring tasks, per-date completion and advance reminders.

Entry points most callers need:
- recurrence.rules: is_scheduled_on / next_occurrence_after
- tasks.completion: is_completed_on / toggle_completion
- tasks.task_scheduler: ReminderScheduler
"""

__version__ = "0.1.0"
