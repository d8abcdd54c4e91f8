"""
Database table name constants

Always import from here instead of hardcoding strings.
"""

TASKS_TABLE = "tasks"

# Schema Version Tracking
SCHEMA_VERSION_TABLE = "schema_version"

# Seconds a connection waits on a locked database before failing
BUSY_TIMEOUT_SECONDS = 30.0
