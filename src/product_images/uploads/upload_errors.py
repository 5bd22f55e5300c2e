"""Domain-specific exceptions for the upload pipeline."""


class UploadPipelineError(Exception):
    """Base class for upload pipeline errors."""


class ValidationRejectedError(UploadPipelineError):
    """Raised when a file fails validation; never retryable."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(reason)
        self.filename = filename
        self.reason = reason


class UnsupportedMediaError(ValidationRejectedError):
    """Raised when the MIME type is not accepted."""


class FileTooLargeError(ValidationRejectedError):
    """Raised when a file exceeds the configured size cap."""


class TooManyFilesError(UploadPipelineError):
    """Raised when a batch would push the gallery past its capacity."""

    def __init__(self, max_files: int, requested_total: int) -> None:
        super().__init__(f"Maximum {max_files} files allowed")
        self.max_files = max_files
        self.requested_total = requested_total


class AdapterUploadError(UploadPipelineError):
    """Raised when the media service (or its transport) rejects an upload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(UploadPipelineError):
    """Raised when the media-service configuration prevents an operation."""


class TaskNotFoundError(UploadPipelineError, KeyError):
    """Raised when an upload task id is unknown."""


class TaskStateError(UploadPipelineError):
    """Raised when a task operation is invalid for its current state."""


class GalleryIndexError(UploadPipelineError, IndexError):
    """Raised when a gallery index is out of range."""


class GalleryFullError(UploadPipelineError):
    """Raised when appending to a gallery that reached its capacity."""


class DraftNotFoundError(UploadPipelineError, KeyError):
    """Raised when a product draft id is unknown."""
