"""The same batch through the real and the mock adapter yields the same shape."""

import random

import pytest

from src.product_images.adapters.adapters_base import AdapterKind
from src.product_images.adapters.adapters_cloudinary import CloudinaryUploadAdapter
from src.product_images.adapters.adapters_mock import MockUploadAdapter
from src.product_images.config import UploadLimits
from src.product_images.gallery.gallery_service import Gallery
from src.product_images.media_service.media_urls import UrlDeriver
from src.product_images.uploads.upload_models import TaskStatus
from src.product_images.uploads.upload_service import UploadOrchestrator
from src.product_images.uploads.validation import ImageValidator
from tests.helpers.adapters import make_image
from tests.helpers.http_stubs import (
    DummyAsyncClient,
    DummyHTTPResponse,
    canonical_upload_response,
    install_client,
)


def orchestrator_for(adapter) -> UploadOrchestrator:
    return UploadOrchestrator(
        validator=ImageValidator(UploadLimits()),
        gallery=Gallery(max_files=10),
        adapter_provider=lambda: adapter,
        deriver=UrlDeriver(cloud_name="demo"),
        progress_interval_seconds=0.01,
    )


async def run_batch(adapter):
    orchestrator = orchestrator_for(adapter)
    report = await orchestrator.submit(
        [make_image("a.png"), make_image("b.webp", content_type="image/webp"), make_image("c.pdf", content_type="application/pdf")]
    )
    return orchestrator, report


@pytest.mark.integration
@pytest.mark.asyncio
async def test_real_and_mock_batches_have_identical_shape(monkeypatch) -> None:
    install_client(
        monkeypatch,
        DummyAsyncClient(
            [
                DummyHTTPResponse(200, canonical_upload_response("misk-blooming/products/a")),
                DummyHTTPResponse(200, canonical_upload_response("misk-blooming/products/b")),
            ]
        ),
    )
    real = CloudinaryUploadAdapter(cloud_name="demo", upload_preset="shop_unsigned")
    mock = MockUploadAdapter(delay_min_seconds=0.0, delay_max_seconds=0.0, rng=random.Random(1))

    real_orchestrator, real_report = await run_batch(real)
    mock_orchestrator, mock_report = await run_batch(mock)

    for orchestrator, report in ((real_orchestrator, real_report), (mock_orchestrator, mock_report)):
        assert [r.filename for r in report.rejections] == ["c.pdf"]
        assert [task.status for task in report.tasks] == [TaskStatus.SUCCEEDED] * 2
        assert len(orchestrator.gallery) == 2
        assert orchestrator.gallery.primary_index == 0
        for asset in report.uploaded:
            assert asset.remote_id.startswith("misk-blooming/products/")
            assert set(asset.derived_urls.as_dict()) == {
                "thumbnail",
                "small",
                "medium",
                "large",
                "original",
            }

    for asset in real_report.uploaded:
        assert asset.derived_urls.thumbnail.endswith(f"c_thumb,g_auto/{asset.remote_id}")
    for asset in mock_report.uploaded:
        assert set(asset.derived_urls.as_dict().values()) == {asset.url}
    assert {item.descriptor.adapter_kind for item in real_orchestrator.gallery.items} == {AdapterKind.REAL}
    assert {item.descriptor.adapter_kind for item in mock_orchestrator.gallery.items} == {AdapterKind.MOCK}
