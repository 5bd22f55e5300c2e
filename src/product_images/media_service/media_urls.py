"""Helpers for building delivery (transformation) URLs."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from ..uploads.upload_models import AdapterKind, AssetDescriptor, DerivedUrlSet

DEFAULT_DELIVERY_BASE_URL = "https://res.cloudinary.com"

# name -> (width, height, crop)
RESPONSIVE_SIZES: dict[str, tuple[int, int, str]] = {
    "thumbnail": (150, 150, "thumb"),
    "small": (400, 400, "fill"),
    "medium": (800, 800, "fill"),
    "large": (1200, 1200, "fill"),
}
_ORIGINAL_PLACEHOLDER = (1200, 1200)


def placeholder_url(width: int, height: int) -> str:
    return f"/placeholder.svg?height={height}&width={width}"


def build_transformation_url(
    cloud_name: str,
    public_id: str,
    *,
    width: int | None = None,
    height: int | None = None,
    quality: str | int = "auto",
    format: str = "auto",
    crop: str | None = "fill",
    gravity: str | None = "auto",
    blur: int | None = None,
    sharpen: int | None = None,
    delivery_base_url: str = DEFAULT_DELIVERY_BASE_URL,
) -> str:
    """Compose a delivery URL applying the given transformations."""
    if not cloud_name or not public_id:
        return placeholder_url(400, 400)

    transformations = [f"q_{quality}", f"f_{format}"]

    if width or height:
        size: list[str] = []
        if width:
            size.append(f"w_{width}")
        if height:
            size.append(f"h_{height}")
        if crop:
            size.append(f"c_{crop}")
        if gravity and crop != "scale":
            size.append(f"g_{gravity}")
        transformations.append(",".join(size))

    if blur:
        transformations.append(f"e_blur:{blur}")
    if sharpen:
        transformations.append(f"e_sharpen:{sharpen}")

    base = delivery_base_url.rstrip("/")
    return f"{base}/{cloud_name}/image/upload/{','.join(transformations)}/{public_id}"


@lru_cache(maxsize=1024)
def _derive(delivery_base_url: str, cloud_name: str, remote_id: str) -> DerivedUrlSet:
    if not remote_id or not cloud_name:
        return DerivedUrlSet(
            **{name: placeholder_url(w, h) for name, (w, h, _) in RESPONSIVE_SIZES.items()},
            original=placeholder_url(*_ORIGINAL_PLACEHOLDER),
        )

    urls = {
        name: build_transformation_url(
            cloud_name,
            remote_id,
            width=width,
            height=height,
            crop=crop,
            delivery_base_url=delivery_base_url,
        )
        for name, (width, height, crop) in RESPONSIVE_SIZES.items()
    }
    urls["original"] = build_transformation_url(
        cloud_name, remote_id, delivery_base_url=delivery_base_url
    )
    return DerivedUrlSet(**urls)


@dataclass(frozen=True, slots=True)
class UrlDeriver:
    """Map a remote asset id to its fixed family of responsive URLs."""

    cloud_name: str
    delivery_base_url: str = DEFAULT_DELIVERY_BASE_URL

    def derive(self, remote_id: str) -> DerivedUrlSet:
        return _derive(self.delivery_base_url, self.cloud_name, remote_id)

    def derive_asset(self, descriptor: AssetDescriptor) -> DerivedUrlSet:
        """Mock assets exist only locally, so every size points at the local copy."""
        if descriptor.adapter_kind is AdapterKind.MOCK:
            local = descriptor.secure_url
            return DerivedUrlSet(**{name: local for name in RESPONSIVE_SIZES}, original=local)
        return self.derive(descriptor.remote_id)

    def url_for(self, remote_id: str, size: str) -> str:
        """Return a single named size (``thumbnail`` .. ``original``)."""
        derived = self.derive(remote_id)
        try:
            return derived.as_dict()[size]
        except KeyError:
            raise ValueError(f"Unknown image size '{size}'") from None
