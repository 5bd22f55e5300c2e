"""Media-service configuration probe.

The probe answers two questions for the dashboard banner:

* statically, whether the credentials visible to the uploader are complete
  and plausible (:func:`probe`);
* on demand, whether the preset really accepts unsigned uploads
  (:meth:`ConfigurationProbe.run_live_test`), since a signed-only preset
  looks perfectly fine until the first upload is rejected.

Both results carry human-readable diagnostics rather than bare booleans, so
the remediation shown to the operator can differ between "nothing is
configured" and "the preset has the wrong signing mode".
"""

from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Callable

import httpx

from ..config import CloudinarySettings
from ..uploads.upload_models import UploadOptions
from ..adapters.adapters_cloudinary import build_form_fields, upload_endpoint

logger = logging.getLogger(__name__)

DEFAULT_PRESET_NAME = "ml_default"
SIGNED_PRESET_NAMES = frozenset({"portfolio", "signed", "default"})
SUGGESTED_PRESET_NAME = "misk_blooming_unsigned"

# 1x1 transparent PNG
_PROBE_IMAGE = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class ServiceStatus(StrEnum):
    USABLE = "usable"
    DEGRADED = "degraded"
    MISCONFIGURED = "misconfigured"


class LiveTestFailure(StrEnum):
    NOT_CONFIGURED = "not_configured"
    PRESET_NOT_FOUND = "preset_not_found"
    PRESET_SIGNED_ONLY = "preset_signed_only"
    API_KEY_REQUIRED = "api_key_required"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True, slots=True)
class ServiceConfiguration:
    """Read-only snapshot of the media-service settings."""

    account_name: str
    upload_preset_name: str
    has_api_key: bool
    has_api_secret: bool
    status: ServiceStatus
    diagnostics: tuple[str, ...] = ()

    @property
    def is_usable(self) -> bool:
        return self.status is not ServiceStatus.MISCONFIGURED


@dataclass(frozen=True, slots=True)
class LiveTestResult:
    success: bool
    error: str | None = None
    failure: LiveTestFailure | None = None
    details: dict[str, Any] = field(default_factory=dict)
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class RemediationGuide:
    steps: tuple[str, ...]
    current_issue: str
    example_env_vars: dict[str, str]
    troubleshooting: tuple[str, ...]


def probe(settings: CloudinarySettings) -> ServiceConfiguration:
    """Classify the configured credentials without any network traffic."""
    cloud_name = settings.cloud_name.strip()
    preset = settings.upload_preset.strip()
    missing: list[str] = []
    warnings: list[str] = []

    if not cloud_name:
        missing.append("CLOUDINARY_CLOUD_NAME is not configured")

    if not preset:
        missing.append("CLOUDINARY_UPLOAD_PRESET is not configured")
    elif preset == DEFAULT_PRESET_NAME:
        warnings.append(
            f"Using default upload preset '{DEFAULT_PRESET_NAME}' - please create a custom unsigned preset"
        )
    elif preset in SIGNED_PRESET_NAMES:
        warnings.append(
            f"Upload preset '{preset}' appears to be a signed preset - please create an unsigned preset"
        )

    if settings.api_secret:
        warnings.append(
            "CLOUDINARY_API_SECRET is visible to the uploader; keep it on the server that signs deletions only"
        )

    if missing:
        status = ServiceStatus.MISCONFIGURED
    elif warnings:
        status = ServiceStatus.DEGRADED
    else:
        status = ServiceStatus.USABLE

    configuration = ServiceConfiguration(
        account_name=cloud_name,
        upload_preset_name=preset,
        has_api_key=bool(settings.api_key),
        has_api_secret=bool(settings.api_secret),
        status=status,
        diagnostics=tuple(missing + warnings),
    )
    logger.info(
        "media_service.probe.completed",
        extra={
            "status": configuration.status.value,
            "has_cloud_name": bool(cloud_name),
            "has_upload_preset": bool(preset),
            "has_api_key": configuration.has_api_key,
            "has_api_secret": configuration.has_api_secret,
        },
    )
    return configuration


_SIGNED_ONLY_FAILURES = frozenset(
    {LiveTestFailure.PRESET_SIGNED_ONLY, LiveTestFailure.API_KEY_REQUIRED}
)


def remediation_guide(
    configuration: ServiceConfiguration,
    live_test: LiveTestResult | None = None,
) -> RemediationGuide:
    """Return the checklist an operator follows to fix the preset.

    A failed ``live_test`` refines the diagnosis beyond what the static
    configuration shows.
    """
    preset = configuration.upload_preset_name
    failure = live_test.failure if live_test is not None and not live_test.success else None
    if preset in SIGNED_PRESET_NAMES or failure in _SIGNED_ONLY_FAILURES:
        current_issue = (
            f'Your current preset "{preset}" is configured for signed uploads, but you '
            "need an unsigned preset for client-side uploads."
        )
    elif failure is LiveTestFailure.PRESET_NOT_FOUND:
        current_issue = (
            f'The upload preset "{preset}" does not exist in your Cloudinary account. '
            "Create it as an unsigned preset or correct CLOUDINARY_UPLOAD_PRESET."
        )
    elif not configuration.account_name or not preset:
        current_issue = "Cloud name and an unsigned upload preset must both be configured."
    else:
        current_issue = "You need to create an unsigned upload preset for client-side uploads."

    return RemediationGuide(
        steps=(
            "Go to your Cloudinary Dashboard (https://cloudinary.com/console)",
            "Navigate to Settings → Upload",
            "Scroll down to 'Upload presets'",
            "Click 'Add upload preset'",
            "Set 'Signing Mode' to 'Unsigned'",
            f"Set 'Upload preset name' (e.g., '{SUGGESTED_PRESET_NAME}')",
            "Configure allowed formats: jpg, png, webp, gif",
            "Set max file size: 10MB",
            "Enable 'Use filename or externally defined Public ID'",
            "In 'Folder' section, allow 'misk-blooming' folder",
            "Save the preset",
            "Update your environment variable with the new preset name",
        ),
        current_issue=current_issue,
        example_env_vars={
            "CLOUDINARY_CLOUD_NAME": configuration.account_name or "your-cloud-name",
            "CLOUDINARY_UPLOAD_PRESET": SUGGESTED_PRESET_NAME,
        },
        troubleshooting=(
            "Make sure 'Signing Mode' is set to 'Unsigned' (not 'Server-side upload')",
            "Verify that the preset name matches exactly in your environment variable",
            "Check that allowed file formats include jpg, png, webp, gif",
            "Ensure max file size is set appropriately (10MB recommended)",
            "Test the preset using the configuration test endpoint",
        ),
    )


@dataclass(slots=True)
class ConfigurationProbe:
    """Holds the probed configuration and runs live preset tests."""

    settings: CloudinarySettings
    timeout_seconds: float = 30.0
    clock: Callable[[], float] = time.time
    configuration: ServiceConfiguration = field(init=False)
    last_live_test: LiveTestResult | None = field(default=None, init=False)
    log: logging.Logger = field(default_factory=lambda: logger)

    def __post_init__(self) -> None:
        self.configuration = probe(self.settings)

    async def run_live_test(self) -> LiveTestResult:
        """Upload a 1x1 PNG with the preset to prove it accepts unsigned uploads."""
        result = await self._live_test()
        self.last_live_test = result
        if result.success:
            self.log.info("media_service.live_test.success", extra=result.details)
        else:
            self.log.warning(
                "media_service.live_test.failed",
                extra={"failure": result.failure and result.failure.value, "error": result.error},
            )
        return result

    async def _live_test(self) -> LiveTestResult:
        cloud_name = self.configuration.account_name
        preset = self.configuration.upload_preset_name
        if not cloud_name:
            return LiveTestResult(
                success=False,
                error="Cloud name not configured",
                failure=LiveTestFailure.NOT_CONFIGURED,
            )
        if not preset:
            return LiveTestResult(
                success=False,
                error="Upload preset not configured",
                failure=LiveTestFailure.NOT_CONFIGURED,
            )

        options = UploadOptions(folder="test", public_id=f"config_test_{int(self.clock() * 1000)}")
        data = build_form_fields(preset, options)
        files = {"file": ("test.png", _PROBE_IMAGE, "image/png")}
        url = upload_endpoint(self.settings.api_base_url, cloud_name)

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, data=data, files=files)
        except httpx.HTTPError as exc:
            return LiveTestResult(
                success=False,
                error=str(exc) or "Unknown error during configuration test",
                failure=LiveTestFailure.NETWORK_ERROR,
            )

        if 200 <= response.status_code < 300:
            try:
                body = response.json()
            except ValueError:
                body = {}
            return LiveTestResult(
                success=True,
                details={
                    "public_id": body.get("public_id"),
                    "url": body.get("secure_url"),
                    "preset": preset,
                },
            )

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        error = error_data.get("error") if isinstance(error_data, dict) else None
        message = ""
        if isinstance(error, dict):
            message = str(error.get("message") or "")
        if not message:
            message = f"HTTP {response.status_code}: {response.reason_phrase}"

        failure, explained = _classify_live_test_error(message, preset)
        return LiveTestResult(
            success=False,
            error=explained,
            failure=failure,
            details={
                "status": response.status_code,
                "preset": preset,
                "cloud_name": cloud_name,
                "error_data": error_data,
            },
        )


def _classify_live_test_error(message: str, preset: str) -> tuple[LiveTestFailure, str]:
    if "Invalid upload preset" in message:
        return (
            LiveTestFailure.PRESET_NOT_FOUND,
            f'Upload preset "{preset}" does not exist. Please create it in your Cloudinary dashboard.',
        )
    if "Upload preset must be whitelisted" in message or "signed" in message:
        return (
            LiveTestFailure.PRESET_SIGNED_ONLY,
            f'Upload preset "{preset}" requires signed uploads. Please create an unsigned upload preset.',
        )
    if "API key" in message:
        return (
            LiveTestFailure.API_KEY_REQUIRED,
            f'Upload preset "{preset}" requires an API key for signed uploads. '
            "Please create an unsigned upload preset instead.",
        )
    return LiveTestFailure.HTTP_ERROR, message
