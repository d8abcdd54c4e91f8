"""
API Error Envelope - unified error response format

Every error response has the shape:
{
    "ok": false,
    "error_code": "VALIDATION_ERROR",
    "message": "Title is required",
    "details": {...},
    "timestamp": "2024-01-31T12:34:56Z"
}
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from todolist.core.errors import MethodNotAllowed, PersistenceError, TodoListError
from todolist.webui.api.time_format import iso_z

logger = logging.getLogger(__name__)

# Map HTTP status codes raised by routing to error codes
_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: MethodNotAllowed.error_code,
    500: "INTERNAL_ERROR",
}


def format_error(error_code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "ok": False,
        "error_code": error_code,
        "message": message,
        "details": details or {},
        "timestamp": iso_z(),
    }


def register_error_handlers(app: FastAPI) -> None:
    """
    Register global error handlers for consistent error responses

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(TodoListError)
    async def todolist_error_handler(request: Request, exc: TodoListError):
        if isinstance(exc, PersistenceError):
            logger.error(f"Persistence failure on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=format_error(exc.error_code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        formatted_errors = [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        logger.info(f"Validation error on {request.method} {request.url.path}: {formatted_errors}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=format_error("VALIDATION_ERROR", "Request validation failed", {"errors": formatted_errors}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        error_code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail or "An error occurred")
        return JSONResponse(
            status_code=exc.status_code,
            content=format_error(error_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=format_error("INTERNAL_ERROR", "Internal server error"),
        )
