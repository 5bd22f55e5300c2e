"""Dependency wiring helpers."""

from __future__ import annotations

from fastapi import FastAPI

from .adapters.adapters_cloudinary import CloudinaryUploadAdapter
from .adapters.adapters_mock import MockAssetStore, MockUploadAdapter
from .config import AppConfig
from .drafts.draft_registry import DraftRegistry
from .gallery.gallery_api import router as gallery_router
from .gallery.gallery_service import Gallery
from .media_service.asset_remover import CloudinaryAssetRemover
from .media_service.config_probe import ConfigurationProbe
from .media_service.media_service_api import build_mock_assets_router
from .media_service.media_service_api import router as media_service_router
from .media_service.media_urls import UrlDeriver
from .media_service.upload_mode import UploadModeController
from .uploads.upload_api import router as upload_router
from .uploads.upload_service import UploadOrchestrator
from .uploads.validation import ImageValidator


def build_mode_controller(config: AppConfig, store: MockAssetStore) -> UploadModeController:
    cloud = config.cloudinary
    pipeline = config.pipeline
    probe = ConfigurationProbe(settings=cloud, timeout_seconds=pipeline.request_timeout_seconds)
    return UploadModeController(
        probe=probe,
        real_adapter=CloudinaryUploadAdapter(
            cloud_name=probe.configuration.account_name,
            upload_preset=probe.configuration.upload_preset_name,
            api_base_url=cloud.api_base_url,
            timeout_seconds=pipeline.request_timeout_seconds,
        ),
        mock_adapter=MockUploadAdapter(
            store=store,
            delay_min_seconds=pipeline.mock_delay_min_seconds,
            delay_max_seconds=pipeline.mock_delay_max_seconds,
            public_base_url=pipeline.public_base_url,
        ),
        force_mock=pipeline.force_mock_mode,
    )


def build_draft_registry(
    config: AppConfig, controller: UploadModeController, store: MockAssetStore
) -> DraftRegistry:
    pipeline = config.pipeline
    validator = ImageValidator(config.upload_limits)
    deriver = UrlDeriver(
        cloud_name=controller.probe.configuration.account_name,
        delivery_base_url=config.cloudinary.delivery_base_url,
    )

    def orchestrator_factory(gallery: Gallery) -> UploadOrchestrator:
        return UploadOrchestrator(
            validator=validator,
            gallery=gallery,
            adapter_provider=controller.select_adapter,
            deriver=deriver,
            folder=pipeline.folder,
            tags=tuple(pipeline.tags),
            progress_interval_seconds=pipeline.progress_interval_seconds,
            max_concurrent_uploads=pipeline.max_concurrent_uploads,
            release_asset=store.release_descriptor,
        )

    return DraftRegistry(
        orchestrator_factory=orchestrator_factory,
        max_files=config.upload_limits.max_files,
    )


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers and attach services."""
    mock_store = MockAssetStore()
    controller = build_mode_controller(config, mock_store)

    app.state.config = config
    app.state.mock_store = mock_store
    app.state.mode_controller = controller
    app.state.draft_registry = build_draft_registry(config, controller, mock_store)
    app.state.asset_remover = CloudinaryAssetRemover(
        settings=config.cloudinary,
        timeout_seconds=config.pipeline.request_timeout_seconds,
    )

    app.include_router(upload_router)
    app.include_router(gallery_router)
    app.include_router(media_service_router)
    app.include_router(build_mock_assets_router(mock_store))
