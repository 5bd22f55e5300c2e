from __future__ import annotations

import pytest

_ENV_KEYS = (
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_UPLOAD_PRESET",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
    "PRODUCT_IMAGES_FORCE_MOCK_MODE",
    "PRODUCT_IMAGES_MAX_FILES",
)


@pytest.fixture(autouse=True)
def clean_media_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
