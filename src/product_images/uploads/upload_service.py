"""Upload orchestration for one product draft.

The orchestrator owns every :class:`UploadTask` it creates. Tasks of a batch
are started in selection order and run concurrently on the event loop; they
may finish in any order, so results are always attributed by task id. All
mutations of tasks and of the gallery happen between awaits, which keeps the
single-threaded loop free of interleaved updates without any locking.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncContextManager

from ..adapters.adapters_base import UploadAdapter
from ..config import DEFAULT_FOLDER, DEFAULT_TAGS
from ..gallery.gallery_models import GalleryItem
from ..gallery.gallery_service import Gallery
from ..media_service.media_urls import UrlDeriver
from .upload_errors import (
    GalleryFullError,
    TaskNotFoundError,
    TaskStateError,
    TooManyFilesError,
)
from .upload_models import (
    DEFAULT_EAGER_TRANSFORMATIONS,
    AssetDescriptor,
    BatchReport,
    EagerTransformation,
    ImageFile,
    Rejection,
    TaskStatus,
    UploadedAsset,
    UploadOptions,
    UploadStats,
    UploadTask,
)
from .validation import ImageValidator

logger = logging.getLogger(__name__)

UploadListener = Callable[[list[UploadedAsset]], None]

_OUTSTANDING = frozenset({TaskStatus.PENDING, TaskStatus.UPLOADING, TaskStatus.FAILED})
_MAX_PROGRESS_STEP = 20.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_task_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class UploadOrchestrator:
    """Validate, launch and track uploads; feed successes into the gallery."""

    validator: ImageValidator
    gallery: Gallery
    adapter_provider: Callable[[], UploadAdapter]
    deriver: UrlDeriver
    folder: str = DEFAULT_FOLDER
    tags: tuple[str, ...] = DEFAULT_TAGS
    eager: tuple[EagerTransformation, ...] = DEFAULT_EAGER_TRANSFORMATIONS
    progress_interval_seconds: float = 0.2
    max_concurrent_uploads: int | None = None
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], datetime] = _utcnow
    id_factory: Callable[[], str] = _new_task_id
    release_asset: Callable[[AssetDescriptor], object] | None = None
    log: logging.Logger = field(default_factory=lambda: logger)
    _tasks: dict[str, UploadTask] = field(default_factory=dict)
    _options: dict[str, UploadOptions] = field(default_factory=dict)
    _batches: dict[str, UploadStats] = field(default_factory=dict)
    _running: dict[str, asyncio.Task] = field(default_factory=dict)
    _listeners: list[UploadListener] = field(default_factory=list)
    _semaphore: asyncio.Semaphore | None = None

    def __post_init__(self) -> None:
        if self.max_concurrent_uploads is not None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent_uploads)

    @property
    def max_files(self) -> int:
        return self.gallery.max_files

    @property
    def tasks(self) -> list[UploadTask]:
        return list(self._tasks.values())

    @property
    def stats(self) -> UploadStats:
        """Counters over every task the orchestrator still tracks."""
        statuses = [task.status for task in self._tasks.values()]
        return UploadStats(
            total=len(statuses),
            completed=statuses.count(TaskStatus.SUCCEEDED),
            failed=statuses.count(TaskStatus.FAILED),
        )

    @property
    def outstanding_count(self) -> int:
        return sum(1 for task in self._tasks.values() if task.status in _OUTSTANDING)

    @property
    def is_uploading(self) -> bool:
        return bool(self._running)

    def get_task(self, task_id: str) -> UploadTask:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise TaskNotFoundError(f"upload task '{task_id}' not found") from None

    def add_listener(self, listener: UploadListener) -> None:
        """Register a callback receiving the successful uploads of each batch."""
        self._listeners.append(listener)

    def build_options(self, file: ImageFile) -> UploadOptions:
        return UploadOptions(
            folder=self.folder,
            tags=tuple(self.tags),
            context={
                "alt": f"Product image {file.filename}",
                "caption": f"Uploaded {self.clock().isoformat()}",
            },
            eager=tuple(self.eager),
        )

    async def submit(self, files: Sequence[ImageFile]) -> BatchReport:
        """Validate ``files`` and upload the accepted ones concurrently."""
        requested_total = len(self.gallery) + self.outstanding_count + len(files)
        if requested_total > self.max_files:
            self.log.warning(
                "uploads.batch.too_many_files",
                extra={"requested_total": requested_total, "max_files": self.max_files},
            )
            raise TooManyFilesError(self.max_files, requested_total)

        report = BatchReport()
        accepted: list[UploadTask] = []
        for file in files:
            outcome = self.validator.validate(file)
            if not outcome.accepted:
                report.rejections.append(
                    Rejection(filename=file.filename, reason=outcome.reason or "Invalid file")
                )
                continue
            task = UploadTask(id=self.id_factory(), source=file)
            self._tasks[task.id] = task
            self._options[task.id] = self.build_options(file)
            accepted.append(task)

        batch_stats = UploadStats(total=len(accepted))
        for task in accepted:
            self._batches[task.id] = batch_stats
        report.stats = batch_stats
        report.tasks = accepted

        if not accepted:
            return report

        adapter = self.adapter_provider()
        self.log.info(
            "uploads.batch.started",
            extra={
                "accepted": len(accepted),
                "rejected": len(report.rejections),
                "adapter": adapter.kind.value,
            },
        )
        runners = [self._spawn(task, adapter, batch_stats) for task in accepted]
        # cancelled (dismissed) runners come back as CancelledError and are skipped
        results = await asyncio.gather(*runners, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                raise result

        report.uploaded = [result for result in results if isinstance(result, UploadedAsset)]
        self.log.info(
            "uploads.batch.finished",
            extra={
                "total": batch_stats.total,
                "completed": batch_stats.completed,
                "failed": batch_stats.failed,
            },
        )
        self._notify(report.uploaded)
        return report

    async def retry(self, task_id: str) -> UploadTask:
        """Re-run the upload of a failed task with its original options."""
        task = self.get_task(task_id)
        if not task.retryable or task_id in self._running:
            raise TaskStateError(f"task {task_id} is {task.status} and cannot be retried")

        batch_stats = self._batches[task_id]
        if batch_stats.failed > 0:
            batch_stats.failed -= 1
        adapter = self.adapter_provider()
        self.log.info(
            "uploads.task.retry",
            extra={"task_id": task_id, "attempt": task.attempts + 1, "adapter": adapter.kind.value},
        )
        (result,) = await asyncio.gather(
            self._spawn(task, adapter, batch_stats), return_exceptions=True
        )
        if isinstance(result, Exception):
            raise result
        if isinstance(result, UploadedAsset):
            self._notify([result])
        return task

    def dismiss(self, task_id: str) -> UploadTask:
        """Forget a task; an in-flight upload is cancelled and its result ignored."""
        task = self._tasks.pop(task_id, None)
        if task is None:
            raise TaskNotFoundError(f"upload task '{task_id}' not found")
        self._options.pop(task_id, None)
        self._batches.pop(task_id, None)
        running = self._running.pop(task_id, None)
        if running is not None and not running.done():
            running.cancel()
            self.log.info("uploads.task.cancelled", extra={"task_id": task_id})
        return task

    def remove_image(self, index: int) -> GalleryItem:
        """Drop a gallery item and release the asset behind it."""
        item = self.gallery.remove(index)
        if not self.gallery.contains_asset(item.remote_id):
            self._release(item.descriptor)
        return item

    def replace_gallery(self, gallery: Gallery) -> None:
        if self.is_uploading:
            raise TaskStateError("cannot replace the gallery while uploads are running")
        previous, self.gallery = self.gallery, gallery
        for item in previous.items:
            if not gallery.contains_asset(item.remote_id):
                self._release(item.descriptor)

    def close(self) -> None:
        """Cancel outstanding uploads and release every gallery asset."""
        for task in self.tasks:
            self.dismiss(task.id)
        for item in self.gallery.items:
            self._release(item.descriptor)
        self.gallery = Gallery(max_files=self.gallery.max_files)

    def _release(self, descriptor: AssetDescriptor) -> None:
        if self.release_asset is not None:
            self.release_asset(descriptor)

    def _spawn(
        self, task: UploadTask, adapter: UploadAdapter, batch_stats: UploadStats
    ) -> asyncio.Task:
        runner = asyncio.create_task(
            self._run(task, adapter, self._options[task.id], batch_stats)
        )
        self._running[task.id] = runner
        runner.add_done_callback(lambda _: self._forget_runner(task.id, runner))
        return runner

    def _forget_runner(self, task_id: str, runner: asyncio.Task) -> None:
        if self._running.get(task_id) is runner:
            del self._running[task_id]

    def _limit(self) -> AsyncContextManager[object]:
        if self._semaphore is None:
            return contextlib.nullcontext()
        return self._semaphore

    async def _run(
        self,
        task: UploadTask,
        adapter: UploadAdapter,
        options: UploadOptions,
        batch_stats: UploadStats,
    ) -> UploadedAsset | None:
        async with self._limit():
            task.start()
            ticker = asyncio.create_task(self._tick_progress(task))
            descriptor = None
            error = ""
            try:
                descriptor = await adapter.upload(task.source, options)
            except Exception as exc:
                error = str(exc) or "Upload failed"
            finally:
                ticker.cancel()

        if task.id not in self._tasks:
            self.log.info("uploads.task.discarded", extra={"task_id": task.id})
            if descriptor is not None:
                self._release(descriptor)
            return None

        if descriptor is None:
            return self._mark_failed(task, error, batch_stats)

        derived = self.deriver.derive_asset(descriptor)
        try:
            self.gallery.append(
                GalleryItem(descriptor=descriptor, derived_urls=derived, task_id=task.id)
            )
        except GalleryFullError as exc:
            self._release(descriptor)
            return self._mark_failed(task, str(exc), batch_stats)

        task.succeed(descriptor, derived)
        batch_stats.completed += 1
        self.log.info(
            "uploads.task.succeeded",
            extra={"task_id": task.id, "public_id": descriptor.remote_id},
        )
        return UploadedAsset(
            url=descriptor.secure_url,
            remote_id=descriptor.remote_id,
            derived_urls=derived,
        )

    def _mark_failed(self, task: UploadTask, error: str, batch_stats: UploadStats) -> None:
        task.fail(error)
        batch_stats.failed += 1
        self.log.warning(
            "uploads.task.failed",
            extra={"task_id": task.id, "error": error, "attempts": task.attempts},
        )
        return None

    async def _tick_progress(self, task: UploadTask) -> None:
        while True:
            await asyncio.sleep(self.progress_interval_seconds)
            task.advance(task.progress + self.rng.random() * _MAX_PROGRESS_STEP)

    def _notify(self, uploaded: list[UploadedAsset]) -> None:
        if not uploaded:
            return
        for listener in self._listeners:
            listener(list(uploaded))
