"""Abstract upload adapter definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from ..uploads.upload_models import AdapterKind, AssetDescriptor, ImageFile, UploadOptions


class UploadAdapter(ABC):
    """Base interface for upload adapters.

    Every descriptor an adapter returns carries the adapter's ``kind`` in
    :attr:`AssetDescriptor.adapter_kind`.
    """

    kind: ClassVar[AdapterKind]

    @abstractmethod
    async def upload(self, file: ImageFile, options: UploadOptions) -> AssetDescriptor:
        """Store ``file`` remotely (or pretend to) and describe the stored asset.

        Implementations raise :class:`AdapterUploadError` with a user-facing
        message when the upload cannot be completed.
        """


__all__ = ["AdapterKind", "UploadAdapter"]
