"""Signed asset deletion, executed only inside the server process."""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

import httpx

from ..config import CloudinarySettings
from ..uploads.upload_errors import AdapterUploadError, ConfigurationError

logger = logging.getLogger(__name__)


def sign_parameters(params: dict[str, str], api_secret: str) -> str:
    """Return the SHA-1 request signature over sorted ``key=value`` pairs."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


@dataclass(slots=True)
class CloudinaryAssetRemover:
    """Destroy stored assets with a signed request."""

    settings: CloudinarySettings
    timeout_seconds: float = 30.0
    clock: Callable[[], float] = time.time
    log: logging.Logger = field(default_factory=lambda: logger)

    @property
    def available(self) -> bool:
        s = self.settings
        return bool(s.cloud_name and s.api_key and s.api_secret)

    async def destroy(self, remote_id: str) -> bool:
        """Delete ``remote_id``; ``False`` when the service does not know it."""
        if not self.available:
            raise ConfigurationError(
                "Asset deletion requires CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET"
            )

        timestamp = str(int(self.clock()))
        signed = {"public_id": remote_id, "timestamp": timestamp}
        form = {
            **signed,
            "api_key": self.settings.api_key,
            "signature": sign_parameters(signed, self.settings.api_secret),
        }
        url = (
            f"{self.settings.api_base_url.rstrip('/')}/v1_1/"
            f"{self.settings.cloud_name}/image/destroy"
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, data=form)
        except httpx.HTTPError as exc:
            raise AdapterUploadError(f"Delete failed: {exc}") from exc

        if response.status_code != 200:
            raise AdapterUploadError(
                f"Delete failed with status {response.status_code}",
                status_code=response.status_code,
            )

        result = response.json().get("result")
        self.log.info(
            "media_service.asset.destroyed",
            extra={"public_id": remote_id, "result": result},
        )
        return result == "ok"
