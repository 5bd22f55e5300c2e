"""Data structures for the upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Mapping, Union

from .upload_errors import TaskStateError

PROGRESS_CAP_WHILE_UPLOADING = 90.0


class TaskStatus(StrEnum):
    """Lifecycle statuses for upload tasks."""

    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AdapterKind(StrEnum):
    """Tag identifying which adapter variant produced a descriptor."""

    REAL = "real"
    MOCK = "mock"


class FailureReason(StrEnum):
    """Failure reasons reported by the HTTP API."""

    INVALID_REQUEST = "invalid_request"
    DRAFT_NOT_FOUND = "draft_not_found"
    TOO_MANY_FILES = "too_many_files"
    TASK_NOT_FOUND = "task_not_found"
    INVALID_TASK_STATE = "invalid_task_state"
    GALLERY_INDEX_OUT_OF_RANGE = "gallery_index_out_of_range"
    GALLERY_FULL = "gallery_full"
    CONFIGURATION_ERROR = "configuration_error"
    PROVIDER_ERROR = "provider_error"


@dataclass(frozen=True, slots=True)
class ImageFile:
    """A user-selected file, fully read into memory."""

    filename: str
    content_type: str
    data: bytes = field(repr=False)
    byte_count: int | None = None

    @property
    def size_bytes(self) -> int:
        if self.byte_count is not None:
            return self.byte_count
        return len(self.data)

    def without_data(self) -> "ImageFile":
        """Return a copy that keeps the metadata but drops the payload."""
        return replace(self, data=b"", byte_count=self.size_bytes)


@dataclass(frozen=True, slots=True)
class EagerTransformation:
    """Transformation the media service should render right after upload."""

    width: int | None = None
    height: int | None = None
    crop: str | None = None
    quality: str | int | None = None
    format: str | None = None

    def descriptor(self) -> str:
        parts: list[str] = []
        if self.width:
            parts.append(f"w_{self.width}")
        if self.height:
            parts.append(f"h_{self.height}")
        if self.crop:
            parts.append(f"c_{self.crop}")
        if self.quality:
            parts.append(f"q_{self.quality}")
        if self.format:
            parts.append(f"f_{self.format}")
        return ",".join(parts)


DEFAULT_EAGER_TRANSFORMATIONS: tuple[EagerTransformation, ...] = (
    EagerTransformation(width=150, height=150, crop="thumb", quality="auto", format="webp"),
    EagerTransformation(width=400, height=400, crop="fill", quality="auto", format="webp"),
    EagerTransformation(width=800, height=800, crop="fill", quality="auto", format="webp"),
    EagerTransformation(width=1200, height=1200, crop="fill", quality="auto", format="webp"),
)


def _escape_context(value: str) -> str:
    # "|" and "=" delimit context entries on the wire
    return value.replace("|", "\\|").replace("=", "\\=")


@dataclass(frozen=True, slots=True)
class UploadOptions:
    """Per-upload parameters forwarded to the adapter."""

    folder: str = ""
    tags: tuple[str, ...] = ()
    context: Mapping[str, str] = field(default_factory=dict)
    eager: tuple[EagerTransformation, ...] = ()
    public_id: str | None = None

    def tags_field(self) -> str:
        return ",".join(self.tags)

    def context_field(self) -> str:
        return "|".join(
            f"{key}={_escape_context(value)}" for key, value in self.context.items()
        )

    def eager_field(self) -> str:
        return "|".join(item.descriptor() for item in self.eager)


@dataclass(frozen=True, slots=True)
class AssetDescriptor:
    """Immutable record of an asset stored by the media service."""

    remote_id: str
    secure_url: str
    width: int
    height: int
    byte_size: int
    format: str
    url: str = ""
    resource_type: str = "image"
    version: int | None = None
    folder: str | None = None
    adapter_kind: AdapterKind = AdapterKind.REAL

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "AssetDescriptor":
        """Build a descriptor from an upload API response body."""
        secure_url = str(payload["secure_url"])
        version = payload.get("version")
        return cls(
            remote_id=str(payload["public_id"]),
            secure_url=secure_url,
            width=int(payload.get("width") or 0),
            height=int(payload.get("height") or 0),
            byte_size=int(payload.get("bytes") or 0),
            format=str(payload.get("format") or ""),
            url=str(payload.get("url") or secure_url),
            resource_type=str(payload.get("resource_type") or "image"),
            version=int(version) if version is not None else None,
            folder=payload.get("folder"),
        )


@dataclass(frozen=True, slots=True)
class DerivedUrlSet:
    """Responsive delivery URLs computed from a remote id."""

    thumbnail: str
    small: str
    medium: str
    large: str
    original: str

    def as_dict(self) -> dict[str, str]:
        return {
            "thumbnail": self.thumbnail,
            "small": self.small,
            "medium": self.medium,
            "large": self.large,
            "original": self.original,
        }


@dataclass(frozen=True, slots=True)
class Pending:
    status = TaskStatus.PENDING


@dataclass(frozen=True, slots=True)
class Uploading:
    status = TaskStatus.UPLOADING


@dataclass(frozen=True, slots=True)
class Succeeded:
    descriptor: AssetDescriptor
    derived_urls: DerivedUrlSet
    status = TaskStatus.SUCCEEDED


@dataclass(frozen=True, slots=True)
class Failed:
    error: str
    status = TaskStatus.FAILED


TaskState = Union[Pending, Uploading, Succeeded, Failed]


@dataclass(slots=True)
class UploadTask:
    """Tracks one file from selection to a terminal state."""

    id: str
    source: ImageFile
    state: TaskState = field(default_factory=Pending)
    progress: float = 0.0
    attempts: int = 0

    @property
    def status(self) -> TaskStatus:
        return self.state.status

    @property
    def error(self) -> str | None:
        return self.state.error if isinstance(self.state, Failed) else None

    @property
    def descriptor(self) -> AssetDescriptor | None:
        return self.state.descriptor if isinstance(self.state, Succeeded) else None

    @property
    def retryable(self) -> bool:
        return isinstance(self.state, Failed)

    def start(self) -> None:
        if not isinstance(self.state, (Pending, Failed)):
            raise TaskStateError(f"task {self.id} cannot start from {self.status}")
        self.state = Uploading()
        self.progress = 0.0
        self.attempts += 1

    def advance(self, value: float) -> None:
        """Raise progress towards ``value`` without ever moving backwards."""
        if not isinstance(self.state, Uploading):
            return
        capped = min(value, PROGRESS_CAP_WHILE_UPLOADING)
        if capped > self.progress:
            self.progress = capped

    def succeed(self, descriptor: AssetDescriptor, derived_urls: DerivedUrlSet) -> None:
        if not isinstance(self.state, Uploading):
            raise TaskStateError(f"task {self.id} cannot succeed from {self.status}")
        self.state = Succeeded(descriptor=descriptor, derived_urls=derived_urls)
        self.progress = 100.0
        # a succeeded task is never uploaded again
        self.source = self.source.without_data()

    def fail(self, error: str) -> None:
        if not isinstance(self.state, Uploading):
            raise TaskStateError(f"task {self.id} cannot fail from {self.status}")
        self.state = Failed(error=error)
        self.progress = 100.0


@dataclass(slots=True)
class UploadStats:
    total: int = 0
    completed: int = 0
    failed: int = 0


@dataclass(frozen=True, slots=True)
class Rejection:
    """Per-file validation failure reported back to the caller."""

    filename: str
    reason: str


@dataclass(frozen=True, slots=True)
class UploadedAsset:
    """What the product form receives for each successful upload."""

    url: str
    remote_id: str
    derived_urls: DerivedUrlSet


@dataclass(slots=True)
class BatchReport:
    """Outcome of one ``submit`` call."""

    tasks: list[UploadTask] = field(default_factory=list)
    rejections: list[Rejection] = field(default_factory=list)
    uploaded: list[UploadedAsset] = field(default_factory=list)
    stats: UploadStats = field(default_factory=UploadStats)

    @property
    def failed_tasks(self) -> list[UploadTask]:
        return [task for task in self.tasks if task.status is TaskStatus.FAILED]
