from tests.helpers.apps import build_client
from tests.helpers.http_stubs import (
    DummyAsyncClient,
    DummyHTTPResponse,
    canonical_upload_response,
    install_client,
)


def test_status_reports_misconfiguration_and_mock_mode() -> None:
    client = build_client()

    body = client.get("/api/media-service/status").json()

    assert body["status"] == "misconfigured"
    assert body["is_usable"] is False
    assert body["cloud_name"] == "Not set"
    assert body["mode"] == "mock"
    assert body["remediation"]["example_env_vars"]["CLOUDINARY_UPLOAD_PRESET"] == (
        "misk_blooming_unsigned"
    )


def test_status_never_exposes_secret() -> None:
    client = build_client(
        cloud_name="demo", upload_preset="shop_unsigned", api_key="k", api_secret="top-secret"
    )

    response = client.get("/api/media-service/status")

    assert response.json()["has_api_secret"] is True
    assert "top-secret" not in response.text


def test_mock_mode_toggle_requires_live_test(monkeypatch) -> None:
    client = build_client(cloud_name="demo", upload_preset="shop_unsigned")

    enabled = client.put("/api/media-service/mock-mode", json={"enabled": True})
    assert enabled.json()["mode"] == "mock"
    assert enabled.json()["mock_forced"] is True

    refused = client.put("/api/media-service/mock-mode", json={"enabled": False})
    assert refused.status_code == 409
    assert refused.json()["detail"]["failure_reason"] == "configuration_error"

    install_client(
        monkeypatch, DummyAsyncClient([DummyHTTPResponse(200, canonical_upload_response("test/c"))])
    )
    live = client.post("/api/media-service/test")
    assert live.json()["success"] is True

    disabled = client.put("/api/media-service/mock-mode", json={"enabled": False})
    assert disabled.status_code == 200
    assert disabled.json()["mode"] == "real"
    assert disabled.json()["last_live_test"]["success"] is True


def test_failed_live_test_is_reported_with_remediation(monkeypatch) -> None:
    client = build_client(cloud_name="demo", upload_preset="shop_unsigned")
    install_client(
        monkeypatch,
        DummyAsyncClient([DummyHTTPResponse(400, {"error": {"message": "Invalid upload preset"}})]),
    )

    live = client.post("/api/media-service/test").json()
    status = client.get("/api/media-service/status").json()

    assert live["failure"] == "preset_not_found"
    assert status["last_live_test"]["success"] is False
    assert status["remediation"] is not None
    assert "does not exist" in status["remediation"]["current_issue"]


def test_delete_asset(monkeypatch) -> None:
    client = build_client(cloud_name="demo", api_key="k", api_secret="s")
    install_client(
        monkeypatch,
        DummyAsyncClient(
            [
                DummyHTTPResponse(200, {"result": "ok"}),
                DummyHTTPResponse(200, {"result": "not found"}),
                DummyHTTPResponse(500, {}),
            ]
        ),
    )

    assert client.delete("/api/media-service/assets/shop/rose").status_code == 204
    assert client.delete("/api/media-service/assets/shop/gone").status_code == 404
    failed = client.delete("/api/media-service/assets/shop/rose")
    assert failed.status_code == 502
    assert failed.json()["detail"]["failure_reason"] == "provider_error"


def test_delete_without_credentials_is_unavailable() -> None:
    client = build_client(cloud_name="demo")

    response = client.delete("/api/media-service/assets/shop/rose")

    assert response.status_code == 503


def test_unknown_mock_asset_is_not_found() -> None:
    client = build_client()

    assert client.get("/mock-assets/nope").status_code == 404
