"""In-memory registry of product drafts being edited."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ..gallery.gallery_models import GalleryItem
from ..gallery.gallery_service import Gallery
from ..uploads.upload_errors import DraftNotFoundError
from ..uploads.upload_service import UploadOrchestrator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DraftRegistry:
    """One orchestrator (and gallery) per product draft id."""

    orchestrator_factory: Callable[[Gallery], UploadOrchestrator]
    max_files: int = 10
    _drafts: dict[str, UploadOrchestrator] = field(default_factory=dict)

    def get(self, draft_id: str) -> UploadOrchestrator:
        """Return the draft, creating it on first use."""
        orchestrator = self._drafts.get(draft_id)
        if orchestrator is None:
            orchestrator = self.orchestrator_factory(Gallery(max_files=self.max_files))
            self._drafts[draft_id] = orchestrator
            logger.info("drafts.created", extra={"draft_id": draft_id})
        return orchestrator

    def find(self, draft_id: str) -> UploadOrchestrator:
        """Return an existing draft without creating one."""
        try:
            return self._drafts[draft_id]
        except KeyError:
            raise DraftNotFoundError(f"draft '{draft_id}' not found") from None

    def seed(
        self,
        draft_id: str,
        items: Iterable[GalleryItem],
        *,
        primary_index: int = 0,
    ) -> UploadOrchestrator:
        """Start a draft from the images a product already has."""
        gallery = Gallery.from_existing(items, primary_index=primary_index, max_files=self.max_files)
        orchestrator = self.get(draft_id)
        orchestrator.replace_gallery(gallery)
        return orchestrator

    def discard(self, draft_id: str) -> bool:
        """Drop a draft, cancelling uploads still in flight."""
        orchestrator = self._drafts.pop(draft_id, None)
        if orchestrator is None:
            return False
        orchestrator.close()
        logger.info("drafts.discarded", extra={"draft_id": draft_id})
        return True

    def __contains__(self, draft_id: object) -> bool:
        return draft_id in self._drafts

    def __len__(self) -> int:
        return len(self._drafts)
