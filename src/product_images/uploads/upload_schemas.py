"""Pydantic schemas for upload responses."""

from __future__ import annotations

from pydantic import BaseModel

from .upload_models import BatchReport, DerivedUrlSet, UploadedAsset, UploadStats, UploadTask


class UploadErrorSchema(BaseModel):
    status: str
    failure_reason: str
    details: str | None = None


class DerivedUrlsSchema(BaseModel):
    thumbnail: str
    small: str
    medium: str
    large: str
    original: str

    @classmethod
    def from_urls(cls, urls: DerivedUrlSet) -> "DerivedUrlsSchema":
        return cls(**urls.as_dict())


class UploadTaskSchema(BaseModel):
    id: str
    filename: str
    content_type: str
    size_bytes: int
    status: str
    progress: float
    attempts: int
    retryable: bool
    error: str | None = None
    public_id: str | None = None
    url: str | None = None

    @classmethod
    def from_task(cls, task: UploadTask) -> "UploadTaskSchema":
        descriptor = task.descriptor
        return cls(
            id=task.id,
            filename=task.source.filename,
            content_type=task.source.content_type,
            size_bytes=task.source.size_bytes,
            status=task.status.value,
            progress=round(task.progress, 1),
            attempts=task.attempts,
            retryable=task.retryable,
            error=task.error,
            public_id=descriptor.remote_id if descriptor else None,
            url=descriptor.secure_url if descriptor else None,
        )


class UploadedAssetSchema(BaseModel):
    url: str
    public_id: str
    optimized_urls: DerivedUrlsSchema

    @classmethod
    def from_asset(cls, asset: UploadedAsset) -> "UploadedAssetSchema":
        return cls(
            url=asset.url,
            public_id=asset.remote_id,
            optimized_urls=DerivedUrlsSchema.from_urls(asset.derived_urls),
        )


class RejectionSchema(BaseModel):
    filename: str
    reason: str


class UploadStatsSchema(BaseModel):
    total: int
    completed: int
    failed: int

    @classmethod
    def from_stats(cls, stats: UploadStats) -> "UploadStatsSchema":
        return cls(total=stats.total, completed=stats.completed, failed=stats.failed)


class BatchReportSchema(BaseModel):
    tasks: list[UploadTaskSchema]
    rejections: list[RejectionSchema]
    uploaded: list[UploadedAssetSchema]
    stats: UploadStatsSchema
    mock_mode: bool

    @classmethod
    def from_report(cls, report: BatchReport, *, mock_mode: bool) -> "BatchReportSchema":
        return cls(
            tasks=[UploadTaskSchema.from_task(task) for task in report.tasks],
            rejections=[
                RejectionSchema(filename=item.filename, reason=item.reason)
                for item in report.rejections
            ],
            uploaded=[UploadedAssetSchema.from_asset(asset) for asset in report.uploaded],
            stats=UploadStatsSchema.from_stats(report.stats),
            mock_mode=mock_mode,
        )


class TaskListSchema(BaseModel):
    tasks: list[UploadTaskSchema]
    stats: UploadStatsSchema
    uploading: bool
