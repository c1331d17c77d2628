"""JSON HTTP router over the task session."""

import logging
from typing import Any

from fastapi import APIRouter, Body, FastAPI, Request, status
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from taskpulse.core.errors import (
    PersistenceError,
    TaskImportError,
    TaskNotFoundError,
    TaskPulseError,
    TaskValidationError,
    classify_error_with_response,
)
from taskpulse.domain.task import Task
from taskpulse.domain.view import SortDirection, SortKey
from taskpulse.services.session import TaskSession


logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])

ERROR_STATUS: dict[type[TaskPulseError], int] = {
    TaskValidationError: 422,
    TaskNotFoundError: 404,
    PersistenceError: 502,
    TaskImportError: 400,
}


class ReorderRequest(BaseModel):
    """Move one visible task to another visible position."""

    from_index: int = Field(..., description="Current index in the visible list")
    to_index: int = Field(..., description="Target index in the visible list")


class SortRequest(BaseModel):
    """New sort settings for the visible list."""

    key: SortKey
    direction: SortDirection = SortDirection.ASC


def get_session(request: Request) -> TaskSession:
    """Return the session created at application startup."""
    return request.app.state.session


def _documents(tasks: list[Task]) -> list[dict[str, Any]]:
    return [task.to_document() for task in tasks]


async def handle_task_error(_request: Request, exc: Exception) -> JSONResponse:
    """Render a task error as a structured ErrorResponse."""
    status_code = next((code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 500)
    response = classify_error_with_response(exc)
    logger.warning("task_request_failed", extra={"code": response.code, "error": str(exc)})
    return JSONResponse(content=response.model_dump(mode="json"), status_code=status_code)


def register_error_handlers(app: FastAPI) -> None:
    """Map task errors to HTTP status codes on the application."""
    app.add_exception_handler(TaskPulseError, handle_task_error)


@router.get("/tasks")
async def list_tasks(request: Request) -> JSONResponse:
    """Visible tasks under the active filters and sort."""
    session = get_session(request)
    return JSONResponse(content=_documents(session.store.visible_tasks()))


@router.post("/tasks")
async def add_task(request: Request, data: dict[str, Any] = Body(...)) -> JSONResponse:  # noqa: B008
    """Create a task."""
    task = await get_session(request).store.add(data)
    return JSONResponse(content=task.to_document(), status_code=status.HTTP_201_CREATED)


@router.get("/tasks/export")
async def export_tasks(request: Request) -> Response:
    """Serialized collection as a JSON array."""
    return Response(content=get_session(request).store.export(), media_type="application/json")


@router.post("/tasks/import")
async def import_tasks(request: Request, payload: Any = Body(...)) -> JSONResponse:  # noqa: ANN401, B008
    """Replace the collection with an exported one."""
    tasks = await get_session(request).store.import_tasks(payload)
    return JSONResponse(content={"imported": len(tasks)})


@router.post("/tasks/reorder")
async def reorder_tasks(request: Request, move: ReorderRequest) -> JSONResponse:
    """Move a task within the visible list."""
    session = get_session(request)
    await session.store.reorder(move.from_index, move.to_index)
    return JSONResponse(content=_documents(session.store.visible_tasks()))


@router.patch("/tasks/{task_id}")
async def edit_task(request: Request, task_id: str, patch: dict[str, Any] = Body(...)) -> JSONResponse:  # noqa: B008
    """Apply a partial field patch."""
    task = await get_session(request).store.edit(task_id, patch)
    return JSONResponse(content=task.to_document())


@router.delete("/tasks/{task_id}")
async def delete_task(request: Request, task_id: str) -> Response:
    """Delete a task."""
    await get_session(request).store.delete(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/tasks/{task_id}/toggle")
async def toggle_task(request: Request, task_id: str) -> JSONResponse:
    """Flip a task's completion state."""
    task = await get_session(request).store.toggle_complete(task_id)
    return JSONResponse(content=task.to_document())


@router.put("/view/filter")
async def set_filter(request: Request, filters: dict[str, Any] = Body(...)) -> JSONResponse:  # noqa: B008
    """Replace the active filters."""
    store = get_session(request).store
    store.set_filter(filters)
    return JSONResponse(content=_documents(store.visible_tasks()))


@router.put("/view/sort")
async def set_sort(request: Request, sort: SortRequest) -> JSONResponse:
    """Replace the active sort."""
    store = get_session(request).store
    store.set_sort(sort.key, sort.direction)
    return JSONResponse(content=_documents(store.visible_tasks()))


@router.get("/insights")
async def insights(request: Request) -> JSONResponse:
    """Productivity pattern, advice and completion breakdown."""
    session = get_session(request)
    pattern = session.pattern
    return JSONResponse(
        content={
            "pattern": pattern.model_dump(mode="json") if pattern else None,
            "recommendations": session.recommendations(),
            "optimal_order": [task.id for task in session.optimal_order()],
            "breakdown": session.breakdown().model_dump(mode="json"),
        }
    )


@router.get("/stats")
async def stats(request: Request) -> JSONResponse:
    """Summary statistics over the collection."""
    task_stats = get_session(request).store.stats()
    return JSONResponse(content=task_stats.model_dump(mode="json", by_alias=True))
