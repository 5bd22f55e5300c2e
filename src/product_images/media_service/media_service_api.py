"""HTTP routes exposing media-service configuration and mock mode."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from ..adapters.adapters_mock import MockAssetStore
from ..uploads.upload_api import get_mode_controller
from ..uploads.upload_errors import AdapterUploadError, ConfigurationError
from ..uploads.upload_models import FailureReason
from .asset_remover import CloudinaryAssetRemover
from .config_probe import LiveTestResult, remediation_guide
from .upload_mode import UploadModeController

router = APIRouter(prefix="/api/media-service", tags=["media-service"])
logger = logging.getLogger(__name__)


class LiveTestSchema(BaseModel):
    success: bool
    error: str | None = None
    failure: str | None = None
    details: dict[str, Any] = {}
    checked_at: datetime

    @classmethod
    def from_result(cls, result: LiveTestResult) -> "LiveTestSchema":
        return cls(
            success=result.success,
            error=result.error,
            failure=result.failure.value if result.failure else None,
            details=result.details,
            checked_at=result.checked_at,
        )


class RemediationSchema(BaseModel):
    steps: list[str]
    current_issue: str
    example_env_vars: dict[str, str]
    troubleshooting: list[str]


class ServiceStatusSchema(BaseModel):
    cloud_name: str
    upload_preset: str
    has_api_key: bool
    has_api_secret: bool
    status: str
    is_usable: bool
    diagnostics: list[str]
    mode: str
    mock_forced: bool
    last_live_test: LiveTestSchema | None = None
    remediation: RemediationSchema | None = None


class MockModeRequest(BaseModel):
    enabled: bool


def get_asset_remover(request: Request) -> CloudinaryAssetRemover:
    try:
        return request.app.state.asset_remover  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("CloudinaryAssetRemover is not configured") from exc


def _status_payload(controller: UploadModeController) -> ServiceStatusSchema:
    configuration = controller.probe.configuration
    last = controller.probe.last_live_test
    needs_help = bool(configuration.diagnostics) or (last is not None and not last.success)
    remediation = None
    if needs_help:
        guide = remediation_guide(configuration, last)
        remediation = RemediationSchema(
            steps=list(guide.steps),
            current_issue=guide.current_issue,
            example_env_vars=guide.example_env_vars,
            troubleshooting=list(guide.troubleshooting),
        )
    return ServiceStatusSchema(
        cloud_name=configuration.account_name or "Not set",
        upload_preset=configuration.upload_preset_name or "Not set",
        has_api_key=configuration.has_api_key,
        has_api_secret=configuration.has_api_secret,
        status=configuration.status.value,
        is_usable=configuration.is_usable,
        diagnostics=list(configuration.diagnostics),
        mode=controller.active_kind.value,
        mock_forced=controller.force_mock,
        last_live_test=LiveTestSchema.from_result(last) if last else None,
        remediation=remediation,
    )


@router.get("/status", response_model=ServiceStatusSchema)
def read_status(
    controller: UploadModeController = Depends(get_mode_controller),
) -> ServiceStatusSchema:
    """Configuration banner: probe result, active mode and remediation."""
    return _status_payload(controller)


@router.post("/test", response_model=LiveTestSchema)
async def run_live_test(
    controller: UploadModeController = Depends(get_mode_controller),
) -> LiveTestSchema:
    result = await controller.probe.run_live_test()
    return LiveTestSchema.from_result(result)


@router.put("/mock-mode", response_model=ServiceStatusSchema)
def update_mock_mode(
    payload: MockModeRequest,
    controller: UploadModeController = Depends(get_mode_controller),
) -> ServiceStatusSchema:
    if payload.enabled:
        controller.enable_mock_mode()
    else:
        try:
            controller.disable_mock_mode()
        except ConfigurationError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "status": "error",
                    "failure_reason": FailureReason.CONFIGURATION_ERROR.value,
                    "details": str(exc),
                },
            ) from exc
    return _status_payload(controller)


@router.delete("/assets/{remote_id:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset(
    remote_id: str,
    remover: CloudinaryAssetRemover = Depends(get_asset_remover),
) -> None:
    """Destroy a stored asset using the server-held API secret."""
    try:
        deleted = await remover.destroy(remote_id)
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": "error",
                "failure_reason": FailureReason.CONFIGURATION_ERROR.value,
                "details": str(exc),
            },
        ) from exc
    except AdapterUploadError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "status": "error",
                "failure_reason": FailureReason.PROVIDER_ERROR.value,
                "details": str(exc),
            },
        ) from exc
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="asset not found")


def build_mock_assets_router(store: MockAssetStore) -> APIRouter:
    router = APIRouter(prefix="/mock-assets", tags=["mock-assets"])

    @router.get("/{token}")
    def get_mock_asset(token: str) -> Response:
        try:
            file = store.get(token)
        except KeyError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="asset not found") from None
        return Response(content=file.data, media_type=file.content_type)

    return router
