"""Mock upload adapter used when the media service is unavailable."""

from __future__ import annotations

import asyncio
import logging
import random
import secrets
import string
import time
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import urljoin

from ..uploads.upload_models import AdapterKind, AssetDescriptor, ImageFile, UploadOptions
from .adapters_base import UploadAdapter

logger = logging.getLogger(__name__)

MOCK_WIDTH = 800
MOCK_HEIGHT = 600
_ID_ALPHABET = string.ascii_lowercase + string.digits


def build_mock_asset_url(base_url: str, token: str) -> str:
    path = f"mock-assets/{token}"
    if not base_url:
        return f"/{path}"
    return urljoin(base_url.rstrip("/") + "/", path)


@dataclass(slots=True)
class MockAssetStore:
    """In-memory stand-in for the remote storage in mock mode.

    Bytes are served by token and released by remote id once the asset
    leaves its gallery.
    """

    _files: dict[str, ImageFile] = field(default_factory=dict)
    _tokens: dict[str, str] = field(default_factory=dict)

    def put(self, file: ImageFile, remote_id: str) -> str:
        previous = self._tokens.get(remote_id)
        if previous is not None:
            self._files.pop(previous, None)
        token = secrets.token_urlsafe(12)
        self._files[token] = file
        self._tokens[remote_id] = token
        return token

    def get(self, token: str) -> ImageFile:
        return self._files[token]

    def release(self, remote_id: str) -> bool:
        token = self._tokens.pop(remote_id, None)
        if token is None:
            return False
        self._files.pop(token, None)
        logger.info("mock.asset.released", extra={"public_id": remote_id, "token": token})
        return True

    def release_descriptor(self, descriptor: AssetDescriptor) -> bool:
        """Release the bytes behind ``descriptor``; real assets are left alone."""
        if descriptor.adapter_kind is not AdapterKind.MOCK:
            return False
        return self.release(descriptor.remote_id)

    def __len__(self) -> int:
        return len(self._files)


@dataclass(slots=True)
class MockUploadAdapter(UploadAdapter):
    """Synthesize descriptors locally after an artificial delay."""

    store: MockAssetStore = field(default_factory=MockAssetStore)
    delay_min_seconds: float = 1.0
    delay_max_seconds: float = 3.0
    public_base_url: str = ""
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], float] = time.time
    log: logging.Logger = field(default_factory=lambda: logger)

    kind = AdapterKind.MOCK

    async def upload(self, file: ImageFile, options: UploadOptions) -> AssetDescriptor:
        await asyncio.sleep(self._delay())

        millis = int(self.clock() * 1000)
        suffix = "".join(self.rng.choice(_ID_ALPHABET) for _ in range(9))
        name = options.public_id or f"mock_{millis}_{suffix}"
        remote_id = f"{options.folder or 'test'}/{name}"

        token = self.store.put(file, remote_id)
        local_url = build_mock_asset_url(self.public_base_url, token)
        subtype = file.content_type.partition("/")[2]

        descriptor = AssetDescriptor(
            remote_id=remote_id,
            secure_url=local_url,
            url=local_url,
            width=MOCK_WIDTH,
            height=MOCK_HEIGHT,
            byte_size=file.size_bytes,
            format=subtype or "jpg",
            resource_type="image",
            version=millis,
            folder=options.folder or None,
            adapter_kind=self.kind,
        )
        self.log.info(
            "mock.upload.success",
            extra={"public_id": remote_id, "file_name": file.filename, "token": token},
        )
        return descriptor

    def _delay(self) -> float:
        low = max(0.0, self.delay_min_seconds)
        high = max(low, self.delay_max_seconds)
        if high == low:
            return low
        return self.rng.uniform(low, high)
