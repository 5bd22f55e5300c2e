"""Application configuration builder.

Media-service credentials and pipeline limits are read from the environment
exactly once, here. Everything downstream receives the resulting
:class:`AppConfig` (or pieces of it) through constructors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ACCEPTED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
DEFAULT_FOLDER = "misk-blooming/products"
DEFAULT_TAGS = ("product", "misk-blooming")


class CloudinarySettings(BaseSettings):
    """Credentials of the remote media account."""

    model_config = SettingsConfigDict(env_prefix="CLOUDINARY_")

    cloud_name: str = Field(
        default="",
        description="Account (cloud) name receiving uploads and serving derived URLs.",
    )
    upload_preset: str = Field(
        default="",
        description="Unsigned upload preset used by the upload adapter.",
    )
    api_key: str = Field(
        default="",
        description="Optional API key; only its presence is reported to clients.",
    )
    api_secret: str = Field(
        default="",
        description="API secret; used solely by the server-side asset remover.",
    )
    api_base_url: str = Field(
        default="https://api.cloudinary.com",
        description="Base URL of the upload API.",
    )
    delivery_base_url: str = Field(
        default="https://res.cloudinary.com",
        description="Base URL of the delivery (transformation) CDN.",
    )


class PipelineSettings(BaseSettings):
    """Limits and behaviour of the upload pipeline."""

    model_config = SettingsConfigDict(env_prefix="PRODUCT_IMAGES_")

    max_files: int = Field(default=10, ge=1, description="Gallery capacity per product.")
    max_file_size_mb: int = Field(default=10, ge=1, description="Per-file size cap in MB.")
    accepted_content_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ACCEPTED_CONTENT_TYPES),
        description="MIME types accepted by the validator.",
    )
    folder: str = Field(default=DEFAULT_FOLDER, description="Target folder for uploads.")
    tags: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TAGS),
        description="Tags attached to every uploaded asset.",
    )
    force_mock_mode: bool = Field(
        default=False,
        description="Start in mock mode regardless of the configuration probe.",
    )
    mock_delay_min_seconds: float = Field(default=1.0, ge=0.0)
    mock_delay_max_seconds: float = Field(default=3.0, ge=0.0)
    progress_interval_seconds: float = Field(
        default=0.2,
        gt=0.0,
        description="Interval between synthetic progress updates.",
    )
    max_concurrent_uploads: int | None = Field(
        default=None,
        ge=1,
        description="Optional ceiling on simultaneously running adapter calls.",
    )
    request_timeout_seconds: float = Field(default=30.0, ge=0.1)
    public_base_url: str = Field(
        default="",
        description="Prefix for mock-asset URLs (empty keeps them host-relative).",
    )


@dataclass(slots=True)
class UploadLimits:
    accepted_content_types: Sequence[str] = DEFAULT_ACCEPTED_CONTENT_TYPES
    max_file_size_bytes: int = 10 * 1024 * 1024
    max_files: int = 10


@dataclass(slots=True)
class AppConfig:
    cloudinary: CloudinarySettings
    pipeline: PipelineSettings
    upload_limits: UploadLimits = field(default_factory=UploadLimits)


def build_upload_limits(pipeline: PipelineSettings) -> UploadLimits:
    return UploadLimits(
        accepted_content_types=tuple(pipeline.accepted_content_types),
        max_file_size_bytes=pipeline.max_file_size_mb * 1024 * 1024,
        max_files=pipeline.max_files,
    )


def load_config(
    *,
    cloudinary: CloudinarySettings | None = None,
    pipeline: PipelineSettings | None = None,
) -> AppConfig:
    """Load configuration from environment, allowing explicit overrides."""
    cloud = cloudinary or CloudinarySettings()
    pipe = pipeline or PipelineSettings()
    return AppConfig(
        cloudinary=cloud,
        pipeline=pipe,
        upload_limits=build_upload_limits(pipe),
    )


__all__ = [
    "AppConfig",
    "CloudinarySettings",
    "PipelineSettings",
    "UploadLimits",
    "build_upload_limits",
    "load_config",
]
