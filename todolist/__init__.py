"""todolist-backend - minimal task list service with metrics and health"""

__version__ = "1.0.2"

SERVICE_NAME = "todolist-backend"
