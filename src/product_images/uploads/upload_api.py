"""HTTP routes for upload operations."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from ..drafts.draft_registry import DraftRegistry
from ..media_service.upload_mode import UploadModeController
from .upload_errors import (
    DraftNotFoundError,
    TaskNotFoundError,
    TaskStateError,
    TooManyFilesError,
)
from .upload_models import FailureReason, ImageFile
from .upload_schemas import (
    BatchReportSchema,
    TaskListSchema,
    UploadStatsSchema,
    UploadTaskSchema,
)
from .upload_service import UploadOrchestrator

router = APIRouter(prefix="/api/drafts", tags=["uploads"])
logger = logging.getLogger(__name__)


def get_draft_registry(request: Request) -> DraftRegistry:
    """Fetch draft registry from application state."""
    try:
        return request.app.state.draft_registry  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("DraftRegistry is not configured") from exc


def get_mode_controller(request: Request) -> UploadModeController:
    try:
        return request.app.state.mode_controller  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("UploadModeController is not configured") from exc


def _error(status_code: int, reason: FailureReason, details: str | None = None) -> HTTPException:
    detail: dict[str, object] = {"status": "error", "failure_reason": reason.value}
    if details:
        detail["details"] = details
    return HTTPException(status_code=status_code, detail=detail)


def find_draft_or_404(registry: DraftRegistry, draft_id: str) -> UploadOrchestrator:
    try:
        return registry.find(draft_id)
    except DraftNotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, FailureReason.DRAFT_NOT_FOUND) from exc


async def _read_upload(upload: UploadFile) -> ImageFile:
    try:
        data = await upload.read()
    finally:
        await upload.close()
    return ImageFile(
        filename=upload.filename or "upload",
        content_type=upload.content_type or "application/octet-stream",
        data=data,
    )


@router.post("/{draft_id}/uploads", response_model=BatchReportSchema)
async def submit_uploads(
    draft_id: str,
    files: list[UploadFile] = File(...),
    registry: DraftRegistry = Depends(get_draft_registry),
    controller: UploadModeController = Depends(get_mode_controller),
) -> BatchReportSchema:
    """Validate the selected files and upload the accepted ones concurrently."""
    orchestrator = registry.get(draft_id)
    images = [await _read_upload(upload) for upload in files]

    try:
        report = await orchestrator.submit(images)
    except TooManyFilesError as exc:
        logger.warning(
            "uploads.api.too_many_files",
            extra={"draft_id": draft_id, "requested_total": exc.requested_total},
        )
        raise _error(status.HTTP_409_CONFLICT, FailureReason.TOO_MANY_FILES, str(exc)) from exc

    return BatchReportSchema.from_report(report, mock_mode=controller.mock_mode)


@router.get("/{draft_id}/uploads/tasks", response_model=TaskListSchema)
def list_tasks(
    draft_id: str,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> TaskListSchema:
    try:
        orchestrator = registry.find(draft_id)
    except DraftNotFoundError:
        return TaskListSchema(
            tasks=[], stats=UploadStatsSchema(total=0, completed=0, failed=0), uploading=False
        )
    return TaskListSchema(
        tasks=[UploadTaskSchema.from_task(task) for task in orchestrator.tasks],
        stats=UploadStatsSchema.from_stats(orchestrator.stats),
        uploading=orchestrator.is_uploading,
    )


@router.post("/{draft_id}/uploads/tasks/{task_id}/retry", response_model=UploadTaskSchema)
async def retry_task(
    draft_id: str,
    task_id: str,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> UploadTaskSchema:
    orchestrator = find_draft_or_404(registry, draft_id)
    try:
        task = await orchestrator.retry(task_id)
    except TaskNotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, FailureReason.TASK_NOT_FOUND) from exc
    except TaskStateError as exc:
        raise _error(status.HTTP_409_CONFLICT, FailureReason.INVALID_TASK_STATE, str(exc)) from exc
    return UploadTaskSchema.from_task(task)


@router.delete("/{draft_id}/uploads/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def dismiss_task(
    draft_id: str,
    task_id: str,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> None:
    orchestrator = find_draft_or_404(registry, draft_id)
    try:
        orchestrator.dismiss(task_id)
    except TaskNotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, FailureReason.TASK_NOT_FOUND) from exc


@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
def discard_draft(
    draft_id: str,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> None:
    registry.discard(draft_id)
