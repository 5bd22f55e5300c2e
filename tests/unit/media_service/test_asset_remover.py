import hashlib

import httpx
import pytest

from src.product_images.config import CloudinarySettings
from src.product_images.media_service.asset_remover import CloudinaryAssetRemover, sign_parameters
from src.product_images.uploads.upload_errors import AdapterUploadError, ConfigurationError
from tests.helpers.http_stubs import DummyAsyncClient, DummyHTTPResponse, install_client


def build_remover(**overrides) -> CloudinaryAssetRemover:
    values = {"cloud_name": "demo", "api_key": "key", "api_secret": "secret"}
    values.update(overrides)
    return CloudinaryAssetRemover(settings=CloudinarySettings(**values), clock=lambda: 1700000000.5)


def test_signature_covers_sorted_parameters() -> None:
    expected = hashlib.sha1(b"public_id=shop/a&timestamp=1700000000secret").hexdigest()

    assert sign_parameters({"timestamp": "1700000000", "public_id": "shop/a"}, "secret") == expected


@pytest.mark.asyncio
async def test_destroy_posts_signed_form(monkeypatch) -> None:
    client = DummyAsyncClient([DummyHTTPResponse(200, {"result": "ok"})])
    install_client(monkeypatch, client)

    assert await build_remover().destroy("shop/a") is True

    call = client.calls[0]
    assert call["url"] == "https://api.cloudinary.com/v1_1/demo/image/destroy"
    form = call["data"]
    assert form["public_id"] == "shop/a"
    assert form["timestamp"] == "1700000000"
    assert form["api_key"] == "key"
    assert form["signature"] == sign_parameters(
        {"public_id": "shop/a", "timestamp": "1700000000"}, "secret"
    )
    assert "secret" not in form.values()


@pytest.mark.asyncio
async def test_destroy_reports_unknown_asset(monkeypatch) -> None:
    install_client(monkeypatch, DummyAsyncClient([DummyHTTPResponse(200, {"result": "not found"})]))

    assert await build_remover().destroy("shop/missing") is False


@pytest.mark.asyncio
async def test_destroy_errors(monkeypatch) -> None:
    install_client(
        monkeypatch,
        DummyAsyncClient([DummyHTTPResponse(401, {}), httpx.ReadTimeout("slow")]),
    )
    remover = build_remover()

    with pytest.raises(AdapterUploadError) as rejected:
        await remover.destroy("shop/a")
    with pytest.raises(AdapterUploadError):
        await remover.destroy("shop/a")

    assert rejected.value.status_code == 401


@pytest.mark.asyncio
async def test_destroy_requires_credentials() -> None:
    remover = build_remover(api_secret="")

    assert remover.available is False
    with pytest.raises(ConfigurationError):
        await remover.destroy("shop/a")
