"""HTTP routes for gallery manipulation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..drafts.draft_registry import DraftRegistry
from ..uploads.upload_api import find_draft_or_404, get_draft_registry
from ..uploads.upload_errors import (
    DraftNotFoundError,
    GalleryFullError,
    GalleryIndexError,
    TaskStateError,
)
from ..uploads.upload_models import AssetDescriptor, FailureReason
from ..uploads.upload_schemas import DerivedUrlsSchema
from .gallery_models import GalleryItem
from .gallery_service import Gallery

router = APIRouter(prefix="/api/drafts", tags=["gallery"])


class GalleryImageSchema(BaseModel):
    url: str
    public_id: str
    optimized_urls: DerivedUrlsSchema


class GallerySchema(BaseModel):
    images: list[GalleryImageSchema]
    featured_index: int

    @classmethod
    def from_gallery(cls, gallery: Gallery) -> "GallerySchema":
        return cls.model_validate(gallery.snapshot())


class MoveRequest(BaseModel):
    from_index: int = Field(..., ge=0)
    to_index: int = Field(..., ge=0)


class PrimaryRequest(BaseModel):
    index: int = Field(..., ge=0)


class ExistingImage(BaseModel):
    url: str = Field(..., min_length=1)
    public_id: str = Field(..., min_length=1)


class SeedRequest(BaseModel):
    images: list[ExistingImage] = Field(default_factory=list)
    featured_index: int = Field(default=0, ge=0)


def _gallery_error(exc: Exception) -> HTTPException:
    if isinstance(exc, GalleryFullError):
        reason, code = FailureReason.GALLERY_FULL, status.HTTP_409_CONFLICT
    elif isinstance(exc, TaskStateError):
        reason, code = FailureReason.INVALID_TASK_STATE, status.HTTP_409_CONFLICT
    else:
        reason, code = FailureReason.GALLERY_INDEX_OUT_OF_RANGE, status.HTTP_400_BAD_REQUEST
    return HTTPException(
        status_code=code,
        detail={"status": "error", "failure_reason": reason.value, "details": str(exc)},
    )


@router.get("/{draft_id}/gallery", response_model=GallerySchema)
def read_gallery(
    draft_id: str,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> GallerySchema:
    try:
        orchestrator = registry.find(draft_id)
    except DraftNotFoundError:
        return GallerySchema(images=[], featured_index=0)
    return GallerySchema.from_gallery(orchestrator.gallery)


@router.put("/{draft_id}/gallery", response_model=GallerySchema)
def seed_gallery(
    draft_id: str,
    payload: SeedRequest,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> GallerySchema:
    """Load the images a product already has into the draft gallery."""
    orchestrator = registry.get(draft_id)
    items = [
        GalleryItem(
            descriptor=AssetDescriptor(
                remote_id=image.public_id,
                secure_url=image.url,
                url=image.url,
                width=0,
                height=0,
                byte_size=0,
                format="",
            ),
            derived_urls=orchestrator.deriver.derive(image.public_id),
        )
        for image in payload.images
    ]
    try:
        orchestrator = registry.seed(draft_id, items, primary_index=payload.featured_index)
    except (GalleryFullError, GalleryIndexError, TaskStateError) as exc:
        raise _gallery_error(exc) from exc
    return GallerySchema.from_gallery(orchestrator.gallery)


@router.delete("/{draft_id}/gallery/items/{index}", response_model=GallerySchema)
def remove_image(
    draft_id: str,
    index: int,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> GallerySchema:
    orchestrator = find_draft_or_404(registry, draft_id)
    try:
        orchestrator.remove_image(index)
    except GalleryIndexError as exc:
        raise _gallery_error(exc) from exc
    return GallerySchema.from_gallery(orchestrator.gallery)


@router.post("/{draft_id}/gallery/move", response_model=GallerySchema)
def move_image(
    draft_id: str,
    payload: MoveRequest,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> GallerySchema:
    gallery = find_draft_or_404(registry, draft_id).gallery
    try:
        gallery.move(payload.from_index, payload.to_index)
    except GalleryIndexError as exc:
        raise _gallery_error(exc) from exc
    return GallerySchema.from_gallery(gallery)


@router.post("/{draft_id}/gallery/primary", response_model=GallerySchema)
def set_primary_image(
    draft_id: str,
    payload: PrimaryRequest,
    registry: DraftRegistry = Depends(get_draft_registry),
) -> GallerySchema:
    gallery = find_draft_or_404(registry, draft_id).gallery
    try:
        gallery.set_primary(payload.index)
    except GalleryIndexError as exc:
        raise _gallery_error(exc) from exc
    return GallerySchema.from_gallery(gallery)
