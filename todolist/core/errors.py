"""Error taxonomy for the task list service.

Every error the service raises on purpose derives from ``TodoListError`` and
carries the HTTP status and machine-readable code used by the error envelope
(see ``todolist.webui.api.error_envelope``).

- ValidationError   -> 400 (bad or missing input, rejected before the store)
- MethodNotAllowed  -> 405 (wrong verb for a route)
- PersistenceError  -> 500 (store unreachable or query failure)
- StartupFatal      -> process aborts before any listener opens
"""

from typing import Any, Dict, Optional


class TodoListError(Exception):
    """Base class for service errors"""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(TodoListError):
    status_code = 400
    error_code = "VALIDATION_ERROR"


class MethodNotAllowed(TodoListError):
    status_code = 405
    error_code = "METHOD_NOT_ALLOWED"


class PersistenceError(TodoListError):
    status_code = 500
    error_code = "PERSISTENCE_ERROR"


class StartupFatal(TodoListError):
    """Store unreachable at boot, or schema migration failed"""

    error_code = "STARTUP_FATAL"
