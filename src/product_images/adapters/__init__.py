"""Upload adapters: the real media-service client and its local mock."""

from .adapters_base import AdapterKind, UploadAdapter
from .adapters_cloudinary import CloudinaryUploadAdapter
from .adapters_mock import MockAssetStore, MockUploadAdapter

__all__ = [
    "AdapterKind",
    "UploadAdapter",
    "CloudinaryUploadAdapter",
    "MockAssetStore",
    "MockUploadAdapter",
]
