"""Tasks API router.

GET  /api/tasks   - list all tasks (ordered by id)
POST /api/add     - create a task from field ``title``
POST /api/done    - complete the task given by field ``id``
POST /api/delete  - delete the task given by field ``id``

Fields are read from the form body first, then from the query string.

Input is validated here, before the store is called. Handlers are plain
``def`` so FastAPI serves each request on its threadpool.
"""

from __future__ import annotations

import re
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, Response, status
from fastapi.responses import JSONResponse

from todolist.core.errors import ValidationError
from todolist.store.task_store import TaskStore

router = APIRouter(prefix="/api", tags=["tasks"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def get_store(request: Request) -> TaskStore:
    return request.app.state.store


def form_value(request: Request, body_value: Optional[str], name: str) -> str:
    """Form field from the body, else from the query string, else ''."""
    if body_value is not None:
        return body_value
    return request.query_params.get(name, "")


def parse_task_id(raw: str) -> int:
    """Parse a decimal signed 64-bit task id.

    Raises:
        ValidationError: not an integer, or out of range
    """
    if not _INT_RE.match(raw or ""):
        raise ValidationError("Invalid task ID", {"id": raw})
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValidationError("Invalid task ID", {"id": raw})
    return value


@router.get("/tasks")
def list_tasks(store: TaskStore = Depends(get_store)) -> JSONResponse:
    tasks = store.list_all()
    return JSONResponse(content=[t.to_wire() for t in tasks], headers=NO_CACHE_HEADERS)


@router.post("/add", status_code=status.HTTP_201_CREATED)
def add_task(
    request: Request,
    title: Optional[str] = Form(default=None),
    store: TaskStore = Depends(get_store),
) -> JSONResponse:
    title = form_value(request, title, "title")
    if title == "":
        raise ValidationError("Title is required")
    task = store.add(title)
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=task.to_wire())


@router.post("/done")
def complete_task(
    request: Request,
    task_id: Optional[str] = Form(default=None, alias="id"),
    store: TaskStore = Depends(get_store),
) -> Response:
    store.complete(parse_task_id(form_value(request, task_id, "id")))
    return Response(status_code=status.HTTP_200_OK)


@router.post("/delete")
def delete_task(
    request: Request,
    task_id: Optional[str] = Form(default=None, alias="id"),
    store: TaskStore = Depends(get_store),
) -> Response:
    store.delete(parse_task_id(form_value(request, task_id, "id")))
    return Response(status_code=status.HTTP_200_OK)
