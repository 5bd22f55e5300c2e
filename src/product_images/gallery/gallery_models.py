"""Data structures for the product gallery."""

from __future__ import annotations

from dataclasses import dataclass

from ..uploads.upload_models import AssetDescriptor, DerivedUrlSet


@dataclass(frozen=True, slots=True)
class GalleryItem:
    descriptor: AssetDescriptor
    derived_urls: DerivedUrlSet
    task_id: str | None = None

    @property
    def remote_id(self) -> str:
        return self.descriptor.remote_id

    @property
    def url(self) -> str:
        return self.descriptor.secure_url


@dataclass(frozen=True, slots=True)
class GalleryState:
    """Ordered gallery items plus the index of the primary image."""

    items: tuple[GalleryItem, ...] = ()
    primary_index: int = 0

    def __len__(self) -> int:
        return len(self.items)

    @property
    def primary(self) -> GalleryItem | None:
        if not self.items:
            return None
        return self.items[self.primary_index]
