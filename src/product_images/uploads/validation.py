"""Upload validation utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import UploadLimits
from .upload_errors import FileTooLargeError, UnsupportedMediaError, ValidationRejectedError
from .upload_models import ImageFile

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    accepted: bool
    reason: str | None = None


@dataclass(slots=True)
class ImageValidator:
    """Validate selected files against configured limits."""

    limits: UploadLimits

    def check(self, file: ImageFile) -> None:
        """Raise a :class:`ValidationRejectedError` subclass for invalid files."""
        if file.content_type not in set(self.limits.accepted_content_types):
            logger.warning(
                "uploads.validation.unsupported_media",
                extra={"file_name": file.filename, "content_type": file.content_type},
            )
            raise UnsupportedMediaError(
                file.filename,
                f"File type {file.content_type} is not supported. "
                f"Please use {_describe_types(self.limits.accepted_content_types)}.",
            )

        cap = self.limits.max_file_size_bytes
        if file.size_bytes > cap:
            logger.warning(
                "uploads.validation.file_too_large",
                extra={"file_name": file.filename, "size_bytes": file.size_bytes, "limit_bytes": cap},
            )
            raise FileTooLargeError(
                file.filename,
                f"File size must be less than {_format_mb(cap)}MB. "
                f"Current size: {file.size_bytes / _MB:.2f}MB",
            )

    def validate(self, file: ImageFile) -> ValidationOutcome:
        try:
            self.check(file)
        except ValidationRejectedError as exc:
            return ValidationOutcome(accepted=False, reason=exc.reason)
        return ValidationOutcome(accepted=True)


_TYPE_LABELS = {
    "image/jpeg": "JPG",
    "image/png": "PNG",
    "image/webp": "WebP",
    "image/gif": "GIF",
}


def _describe_types(content_types) -> str:
    labels = [_TYPE_LABELS.get(value, value) for value in content_types]
    if len(labels) <= 1:
        return "".join(labels)
    if len(labels) == 2:
        return f"{labels[0]} or {labels[1]}"
    return ", ".join(labels[:-1]) + f", or {labels[-1]}"


def _format_mb(size_bytes: int) -> str:
    value = size_bytes / _MB
    return f"{value:g}"
