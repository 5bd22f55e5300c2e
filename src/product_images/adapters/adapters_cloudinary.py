"""Cloudinary unsigned-upload adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..uploads.upload_errors import AdapterUploadError, ConfigurationError
from ..uploads.upload_models import AssetDescriptor, ImageFile, UploadOptions
from .adapters_base import AdapterKind, UploadAdapter

logger = logging.getLogger(__name__)


def upload_endpoint(api_base_url: str, cloud_name: str) -> str:
    return f"{api_base_url.rstrip('/')}/v1_1/{cloud_name}/image/upload"


def build_form_fields(upload_preset: str, options: UploadOptions) -> dict[str, str]:
    """Return the multipart text fields accompanying the file part."""
    fields = {"upload_preset": upload_preset}
    if options.folder:
        fields["folder"] = options.folder
    if options.public_id:
        fields["public_id"] = options.public_id
    if options.tags:
        fields["tags"] = options.tags_field()
    if options.context:
        fields["context"] = options.context_field()
    if options.eager:
        fields["eager"] = options.eager_field()
    return fields


@dataclass(slots=True)
class CloudinaryUploadAdapter(UploadAdapter):
    """Upload files with an unsigned preset over multipart HTTP."""

    cloud_name: str
    upload_preset: str
    api_base_url: str = "https://api.cloudinary.com"
    timeout_seconds: float = 30.0
    log: logging.Logger = field(default_factory=lambda: logger)

    kind = AdapterKind.REAL

    @property
    def endpoint(self) -> str:
        return upload_endpoint(self.api_base_url, self.cloud_name)

    async def upload(self, file: ImageFile, options: UploadOptions) -> AssetDescriptor:
        if not self.cloud_name or not self.upload_preset:
            raise ConfigurationError(
                "Cloudinary configuration error: cloud name and upload preset are required"
            )

        data = build_form_fields(self.upload_preset, options)
        files = {"file": (file.filename, file.data, file.content_type)}

        self.log.info(
            "cloudinary.upload.start",
            extra={
                "cloud_name": self.cloud_name,
                "upload_preset": self.upload_preset,
                "folder": options.folder,
                "file_name": file.filename,
                "size_bytes": file.size_bytes,
                "content_type": file.content_type,
            },
        )

        try:
            response = await self._post(data=data, files=files)
        except httpx.HTTPError as exc:
            self.log.error("cloudinary.upload.transport_error", extra={"error": str(exc)})
            raise AdapterUploadError(f"Upload failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            message = self._error_message(response, folder=options.folder)
            self.log.error(
                "cloudinary.upload.rejected status=%s detail=%s",
                response.status_code,
                message,
                extra={"status_code": response.status_code, "file_name": file.filename},
            )
            raise AdapterUploadError(message, status_code=response.status_code)

        try:
            body = response.json()
            descriptor = AssetDescriptor.from_response(body)
        except (ValueError, KeyError, TypeError) as exc:
            raise AdapterUploadError("Upload response could not be parsed") from exc

        self.log.info(
            "cloudinary.upload.success",
            extra={
                "public_id": descriptor.remote_id,
                "width": descriptor.width,
                "height": descriptor.height,
                "format": descriptor.format,
                "bytes": descriptor.byte_size,
            },
        )
        return descriptor

    async def _post(self, *, data: dict[str, str], files: dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(self.endpoint, data=data, files=files)

    def _error_message(self, response: httpx.Response, *, folder: str) -> str:
        fallback = f"Upload failed with status {response.status_code}"
        try:
            payload = response.json()
        except ValueError:
            return f"Upload failed: {response.text[:200]}"
        detail = _extract_error(payload)
        if not detail:
            return fallback
        return explain_upload_error(
            detail,
            cloud_name=self.cloud_name,
            upload_preset=self.upload_preset,
            folder=folder,
        )


def _extract_error(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    error = payload.get("error")
    if isinstance(error, dict):
        return str(error.get("message") or "").strip()
    if isinstance(error, str):
        return error.strip()
    return ""


def explain_upload_error(detail: str, *, cloud_name: str, upload_preset: str, folder: str = "") -> str:
    """Rewrite known media-service errors into actionable messages."""
    if "Invalid upload preset" in detail:
        return (
            f'Invalid upload preset "{upload_preset}". Please create an unsigned '
            "upload preset in your Cloudinary dashboard."
        )
    if "Upload preset must be whitelisted" in detail or "signed" in detail:
        return (
            f'Upload preset "{upload_preset}" is configured for signed uploads. You need '
            "to create an unsigned upload preset for client-side uploads."
        )
    if "Cloud name" in detail:
        return (
            f'Invalid cloud name "{cloud_name}". Please check your '
            "CLOUDINARY_CLOUD_NAME environment variable."
        )
    if "API key" in detail:
        return (
            f'API key error. Your upload preset "{upload_preset}" requires signed '
            "uploads. Please create an unsigned upload preset."
        )
    if "folder" in detail:
        return (
            f'Folder "{folder}" is not allowed by your upload preset. Please configure '
            "allowed folders in your Cloudinary dashboard or remove the folder parameter."
        )
    return detail
