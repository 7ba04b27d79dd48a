"""
Task subsystem.

Components:
- task_models.py: data structures (Task, RecurrencePattern, NotificationSettings) and the record codec
- completion.py: per-date completion queries and pure updates
- agenda.py: "what is due on D" and daily progress
- task_store.py: JSON-file storage used by the CLI
- task_scheduler.py: reminder scheduler (one timer per task, re-armed after each firing)
- scheduler_runner.py: runs the scheduler on a background event loop thread
"""
