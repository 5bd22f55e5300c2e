from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from src.product_images.adapters.adapters_base import AdapterKind, UploadAdapter
from src.product_images.uploads.upload_errors import AdapterUploadError
from src.product_images.uploads.upload_models import AssetDescriptor, ImageFile, UploadOptions

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06"
    b"\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00"
    b"\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


def make_image(name: str = "rose.png", *, content_type: str = "image/png", size: int | None = None) -> ImageFile:
    data = PNG_BYTES if size is None else b"\x00" * size
    return ImageFile(filename=name, content_type=content_type, data=data)


@dataclass
class ScriptedAdapter(UploadAdapter):
    """Adapter double: fails for listed file names, optional per-file delays."""

    fail_on: set[str] = field(default_factory=set)
    delays: dict[str, float] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    error_message: str = "Upload failed with status 500"

    kind = AdapterKind.REAL

    async def upload(self, file: ImageFile, options: UploadOptions) -> AssetDescriptor:
        self.calls.append(file.filename)
        gate = self.gates.get(file.filename)
        if gate is not None:
            await gate.wait()
        await asyncio.sleep(self.delays.get(file.filename, 0))
        if file.filename in self.fail_on:
            raise AdapterUploadError(self.error_message, status_code=500)
        stem = file.filename.rsplit(".", 1)[0]
        remote_id = f"{options.folder}/{stem}"
        return AssetDescriptor(
            remote_id=remote_id,
            secure_url=f"https://res.cloudinary.com/demo/image/upload/{remote_id}.png",
            width=100,
            height=100,
            byte_size=file.size_bytes,
            format="png",
        )
