"""
Recurrence subsystem.

Components:
- calendar_math.py: naive calendar-date helpers (weekday, month clamping, differences)
- rules.py: the per-cadence rule table plus the membership predicate and forward search built on it
"""
