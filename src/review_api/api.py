"""
Review API routes.

Every route issues exactly one store query. Any failure, whether a store error
(including "no rows") or anything unexpected, is answered with 500 and
``{"error": message}``. Not-found is deliberately not distinguished.
"""

from datetime import datetime, timezone
import logging
import time
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from .dependencies import get_store
from .enums import (
    ISSUE_DELETED_MESSAGE,
    TASK_WITH_VIDEO_COLUMNS,
    ServiceEndpoint,
    Table,
    TaskStatus,
)
from .responses import OrjsonResponse
from .schemas import ErrorResponse, IssueCreate, IssueUpdate, MessageResponse
from .store import StoreClient, StoreError
from .telemetry import error_counter, latency_histogram, request_counter


logger = logging.getLogger(__name__)

router = APIRouter()

Store = Annotated[StoreClient, Depends(get_store)]


def _first(rows: list[dict[str, Any]] | None) -> dict[str, Any] | None:
    """First returned row, or None when the filter matched nothing."""
    return rows[0] if rows else None


def _record_success(operation: str, start: float) -> None:
    latency_histogram.labels(operation=operation).observe(time.perf_counter() - start)
    request_counter.labels(operation=operation, status="success").inc()


def _failure(operation: str, exc: Exception, start: float) -> OrjsonResponse:
    """Record a failed operation and render it as the uniform 500 body."""
    latency_histogram.labels(operation=operation).observe(time.perf_counter() - start)
    request_counter.labels(operation=operation, status="error").inc()

    if isinstance(exc, StoreError):
        error_counter.labels(operation=operation, error_type="store").inc()
        logger.warning("%s failed: %s", operation, exc.message)
        message = exc.message
    else:
        error_counter.labels(operation=operation, error_type="unexpected").inc()
        logger.exception("%s failed unexpectedly", operation)
        message = str(exc) or type(exc).__name__

    return OrjsonResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=message).model_dump(),
    )


@router.get(ServiceEndpoint.VIDEOS.value)
async def list_videos(store: Store) -> Any:
    """All videos, newest first."""
    start = time.perf_counter()
    try:
        videos = await (
            store.table(Table.VIDEOS).select().order("created_at", ascending=False).execute()
        )
    except Exception as e:
        return _failure("list_videos", e, start)

    _record_success("list_videos", start)
    return videos


@router.get(ServiceEndpoint.VIDEO.value)
async def get_video(video_id: str, store: Store) -> Any:
    """One video by id. A missing id is a store error like any other."""
    start = time.perf_counter()
    try:
        video = await store.table(Table.VIDEOS).select().eq("id", video_id).single().execute()
    except Exception as e:
        return _failure("get_video", e, start)

    _record_success("get_video", start)
    return video


@router.post(ServiceEndpoint.VIDEO_ISSUES.value, status_code=status.HTTP_201_CREATED)
async def create_issue(video_id: str, store: Store, body: IssueCreate | None = None) -> Any:
    """
    Add an issue to a video.

    Only the fields present in the body are written; the store fills the rest
    with its column defaults (e.g. resolved=false).
    """
    start = time.perf_counter()
    row = {"video_id": video_id, **(body.store_payload() if body else {})}
    try:
        rows = await store.table(Table.ISSUES).insert([row]).select().execute()
        issue = _first(rows)
    except Exception as e:
        return _failure("create_issue", e, start)

    _record_success("create_issue", start)
    return issue


@router.get(ServiceEndpoint.VIDEO_ISSUES.value)
async def list_issues(video_id: str, store: Store) -> Any:
    """Issues of one video in playback order."""
    start = time.perf_counter()
    try:
        issues = await (
            store.table(Table.ISSUES)
            .select()
            .eq("video_id", video_id)
            .order("timestamp", ascending=True)
            .execute()
        )
    except Exception as e:
        return _failure("list_issues", e, start)

    _record_success("list_issues", start)
    return issues


@router.put(ServiceEndpoint.ISSUE.value)
async def update_issue(issue_id: str, store: Store, body: IssueUpdate | None = None) -> Any:
    start = time.perf_counter()
    values = body.store_payload() if body else {}
    try:
        rows = await store.table(Table.ISSUES).update(values).eq("id", issue_id).select().execute()
        issue = _first(rows)
    except Exception as e:
        return _failure("update_issue", e, start)

    _record_success("update_issue", start)
    return issue


@router.delete(ServiceEndpoint.ISSUE.value)
async def delete_issue(issue_id: str, store: Store) -> Any:
    start = time.perf_counter()
    try:
        await store.table(Table.ISSUES).delete().eq("id", issue_id).execute()
    except Exception as e:
        return _failure("delete_issue", e, start)

    _record_success("delete_issue", start)
    return MessageResponse(message=ISSUE_DELETED_MESSAGE)


@router.put(ServiceEndpoint.TASK_COMPLETE.value)
async def complete_task(task_id: str, store: Store) -> Any:
    """Mark a task completed as of now, whatever its current status."""
    start = time.perf_counter()
    values = {
        "status": TaskStatus.COMPLETED.value,
        "completed_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        rows = await store.table(Table.TASKS).update(values).eq("id", task_id).select().execute()
        task = _first(rows)
    except Exception as e:
        return _failure("complete_task", e, start)

    _record_success("complete_task", start)
    return task


@router.get(ServiceEndpoint.TASKS.value)
async def list_tasks(store: Store) -> Any:
    """All tasks, newest first, each with its video embedded under "video"."""
    start = time.perf_counter()
    try:
        tasks = await (
            store.table(Table.TASKS)
            .select(TASK_WITH_VIDEO_COLUMNS)
            .order("created_at", ascending=False)
            .execute()
        )
    except Exception as e:
        return _failure("list_tasks", e, start)

    _record_success("list_tasks", start)
    return tasks
