# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "ROUTINE_APP_NAME": "App display name (default: routine-keeper).",
    "ROUTINE_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connectors
    "ROUTINE_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    # Reminders
    "ROUTINE_REMINDERS_ENABLED": "Arm reminder timers at startup (true/false, default: true).",
    "ROUTINE_DEFAULT_ADVANCE_MINUTES": "Lead time when a task sets none (default: 10).",
    "ROUTINE_SEARCH_BUDGET": "Max candidate dates examined per next-occurrence search (default: 512).",
    # Paths
    "ROUTINE_DATA_DIR": "Local data dir for logs and the task file (default: .local/routine).",
    "ROUTINE_TASKS_PATH": "Task JSON file (default: <data_dir>/tasks.json).",
}
