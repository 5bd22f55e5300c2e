"""Ordered product gallery with a single primary image."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..uploads.upload_errors import GalleryFullError, GalleryIndexError
from .gallery_models import GalleryItem, GalleryState

logger = logging.getLogger(__name__)


def _check_index(state: GalleryState, index: int, *, name: str = "index") -> None:
    if not 0 <= index < len(state.items):
        raise GalleryIndexError(
            f"{name} {index} out of range for gallery of {len(state.items)} items"
        )


def append_item(state: GalleryState, item: GalleryItem, *, max_files: int) -> GalleryState:
    if len(state.items) >= max_files:
        raise GalleryFullError(f"Maximum {max_files} files allowed")
    primary = 0 if not state.items else state.primary_index
    return GalleryState(items=state.items + (item,), primary_index=primary)


def remove_item(state: GalleryState, index: int) -> GalleryState:
    _check_index(state, index)
    items = state.items[:index] + state.items[index + 1 :]
    primary = state.primary_index
    if index == primary:
        primary = 0
    elif index < primary:
        primary -= 1
    if not items:
        primary = 0
    return GalleryState(items=items, primary_index=primary)


def move_item(state: GalleryState, from_index: int, to_index: int) -> GalleryState:
    _check_index(state, from_index, name="from_index")
    _check_index(state, to_index, name="to_index")
    if from_index == to_index:
        return state

    items = list(state.items)
    moved = items.pop(from_index)
    items.insert(to_index, moved)

    primary = state.primary_index
    if primary == from_index:
        primary = to_index
    elif from_index < primary <= to_index:
        primary -= 1
    elif to_index <= primary < from_index:
        primary += 1
    return GalleryState(items=tuple(items), primary_index=primary)


def set_primary_item(state: GalleryState, index: int) -> GalleryState:
    _check_index(state, index)
    return GalleryState(items=state.items, primary_index=index)


@dataclass(slots=True)
class Gallery:
    """Holds the current :class:`GalleryState` of one product."""

    max_files: int = 10
    state: GalleryState = field(default_factory=GalleryState)
    log: logging.Logger = field(default_factory=lambda: logger)

    @classmethod
    def from_existing(
        cls,
        items: Iterable[GalleryItem],
        *,
        primary_index: int = 0,
        max_files: int = 10,
    ) -> "Gallery":
        """Seed a gallery with images the product already has."""
        gallery = cls(max_files=max_files)
        for item in items:
            gallery.append(item)
        if gallery.state.items:
            gallery.set_primary(primary_index)
        return gallery

    @property
    def items(self) -> tuple[GalleryItem, ...]:
        return self.state.items

    @property
    def primary_index(self) -> int:
        return self.state.primary_index

    def __len__(self) -> int:
        return len(self.state.items)

    def contains_task(self, task_id: str) -> bool:
        return any(item.task_id == task_id for item in self.state.items)

    def append(self, item: GalleryItem) -> GalleryState:
        self.state = append_item(self.state, item, max_files=self.max_files)
        self.log.info(
            "gallery.item.appended",
            extra={"public_id": item.remote_id, "task_id": item.task_id, "count": len(self)},
        )
        return self.state

    def remove(self, index: int) -> GalleryItem:
        """Remove the item at ``index`` and return it."""
        before = self.state
        self.state = remove_item(before, index)
        self.log.info(
            "gallery.item.removed",
            extra={"index": index, "primary_index": self.primary_index, "count": len(self)},
        )
        return before.items[index]

    def contains_asset(self, remote_id: str) -> bool:
        return any(item.remote_id == remote_id for item in self.state.items)

    def move(self, from_index: int, to_index: int) -> GalleryState:
        self.state = move_item(self.state, from_index, to_index)
        return self.state

    def set_primary(self, index: int) -> GalleryState:
        self.state = set_primary_item(self.state, index)
        return self.state

    def snapshot(self) -> dict[str, Any]:
        """Payload handed to the product form."""
        return {
            "images": [
                {
                    "url": item.url,
                    "public_id": item.remote_id,
                    "optimized_urls": item.derived_urls.as_dict(),
                }
                for item in self.state.items
            ],
            "featured_index": self.state.primary_index,
        }
