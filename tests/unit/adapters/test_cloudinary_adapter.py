import httpx
import pytest

from src.product_images.adapters.adapters_cloudinary import (
    CloudinaryUploadAdapter,
    build_form_fields,
    explain_upload_error,
)
from src.product_images.uploads.upload_errors import AdapterUploadError, ConfigurationError
from src.product_images.uploads.upload_models import (
    DEFAULT_EAGER_TRANSFORMATIONS,
    UploadOptions,
)
from tests.helpers.adapters import make_image
from tests.helpers.http_stubs import (
    DummyAsyncClient,
    DummyHTTPResponse,
    canonical_upload_response,
    install_client,
)


def build_adapter(**overrides) -> CloudinaryUploadAdapter:
    values = {"cloud_name": "demo", "upload_preset": "shop_unsigned"}
    values.update(overrides)
    return CloudinaryUploadAdapter(**values)


OPTIONS = UploadOptions(
    folder="misk-blooming/products",
    tags=("product", "misk-blooming"),
    context={"alt": "Product image rose.png"},
    eager=DEFAULT_EAGER_TRANSFORMATIONS,
)


def test_form_fields_omit_empty_options() -> None:
    assert build_form_fields("p", UploadOptions()) == {"upload_preset": "p"}


@pytest.mark.asyncio
async def test_upload_posts_multipart_and_parses_descriptor(monkeypatch) -> None:
    client = DummyAsyncClient([DummyHTTPResponse(200, canonical_upload_response())])
    install_client(monkeypatch, client)

    descriptor = await build_adapter().upload(make_image("rose.png"), OPTIONS)

    assert descriptor.remote_id == "misk-blooming/products/rose"
    assert descriptor.width == 1024
    call = client.calls[0]
    assert call["url"] == "https://api.cloudinary.com/v1_1/demo/image/upload"
    assert call["data"]["upload_preset"] == "shop_unsigned"
    assert call["data"]["folder"] == "misk-blooming/products"
    assert call["data"]["tags"] == "product,misk-blooming"
    assert call["data"]["context"] == "alt=Product image rose.png"
    assert call["data"]["eager"].count("|") == 3
    name, data, content_type = call["files"]["file"]
    assert (name, content_type) == ("rose.png", "image/png")
    assert data.startswith(b"\x89PNG")


@pytest.mark.asyncio
async def test_missing_configuration_fails_without_request(monkeypatch) -> None:
    client = DummyAsyncClient([])
    install_client(monkeypatch, client)

    with pytest.raises(ConfigurationError):
        await build_adapter(upload_preset="").upload(make_image(), OPTIONS)

    assert client.calls == []


@pytest.mark.asyncio
async def test_rejection_is_explained(monkeypatch) -> None:
    response = DummyHTTPResponse(400, {"error": {"message": "Invalid upload preset"}})
    install_client(monkeypatch, DummyAsyncClient([response]))

    with pytest.raises(AdapterUploadError) as excinfo:
        await build_adapter().upload(make_image(), OPTIONS)

    assert excinfo.value.status_code == 400
    assert str(excinfo.value).startswith('Invalid upload preset "shop_unsigned"')


@pytest.mark.asyncio
async def test_rejection_without_detail_uses_status(monkeypatch) -> None:
    install_client(monkeypatch, DummyAsyncClient([DummyHTTPResponse(500, {})]))

    with pytest.raises(AdapterUploadError) as excinfo:
        await build_adapter().upload(make_image(), OPTIONS)

    assert str(excinfo.value) == "Upload failed with status 500"


@pytest.mark.asyncio
async def test_transport_error_is_wrapped(monkeypatch) -> None:
    install_client(monkeypatch, DummyAsyncClient([httpx.ConnectError("refused")]))

    with pytest.raises(AdapterUploadError) as excinfo:
        await build_adapter().upload(make_image(), OPTIONS)

    assert str(excinfo.value) == "Upload failed: refused"
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_unparseable_success_body(monkeypatch) -> None:
    install_client(monkeypatch, DummyAsyncClient([DummyHTTPResponse(200, {"secure_url": "x"})]))

    with pytest.raises(AdapterUploadError):
        await build_adapter().upload(make_image(), OPTIONS)


@pytest.mark.parametrize(
    ("detail", "fragment"),
    [
        ("Upload preset must be whitelisted for unsigned uploads", "signed uploads"),
        ("Cloud name is invalid", 'Invalid cloud name "demo"'),
        ("Must supply API key", "API key error"),
        ("folder is not allowed", 'Folder "shop"'),
        ("Resource is too large", "Resource is too large"),
    ],
)
def test_explain_upload_error(detail: str, fragment: str) -> None:
    message = explain_upload_error(detail, cloud_name="demo", upload_preset="p", folder="shop")

    assert fragment in message
