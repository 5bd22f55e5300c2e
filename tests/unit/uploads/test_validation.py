import pytest

from src.product_images.config import UploadLimits
from src.product_images.uploads.upload_errors import FileTooLargeError, UnsupportedMediaError
from src.product_images.uploads.validation import ImageValidator
from tests.helpers.adapters import make_image

MB = 1024 * 1024


def build_validator(max_mb: int = 10) -> ImageValidator:
    return ImageValidator(UploadLimits(max_file_size_bytes=max_mb * MB))


@pytest.mark.parametrize("content_type", ["image/jpeg", "image/png", "image/webp", "image/gif"])
def test_validate_accepts_supported_types(content_type: str) -> None:
    outcome = build_validator().validate(make_image("a.img", content_type=content_type))

    assert outcome.accepted is True
    assert outcome.reason is None


def test_validate_accepts_file_exactly_at_cap() -> None:
    outcome = build_validator(max_mb=1).validate(make_image("edge.png", size=MB))

    assert outcome.accepted is True


def test_validate_rejects_unsupported_type_with_reason() -> None:
    outcome = build_validator().validate(make_image("doc.pdf", content_type="application/pdf"))

    assert outcome.accepted is False
    assert outcome.reason == (
        "File type application/pdf is not supported. Please use JPG, PNG, WebP, or GIF."
    )


def test_validate_rejects_oversized_file_with_reason() -> None:
    outcome = build_validator(max_mb=1).validate(make_image("big.png", size=MB + MB // 2))

    assert outcome.accepted is False
    assert outcome.reason == "File size must be less than 1MB. Current size: 1.50MB"


def test_check_raises_typed_errors() -> None:
    validator = build_validator(max_mb=1)

    with pytest.raises(UnsupportedMediaError) as unsupported:
        validator.check(make_image("clip.mp4", content_type="video/mp4"))
    with pytest.raises(FileTooLargeError) as too_large:
        validator.check(make_image("big.png", size=2 * MB))

    assert unsupported.value.filename == "clip.mp4"
    assert too_large.value.filename == "big.png"


def test_type_is_checked_before_size() -> None:
    outcome = build_validator(max_mb=1).validate(
        make_image("huge.bmp", content_type="image/bmp", size=5 * MB)
    )

    assert "not supported" in (outcome.reason or "")


def test_custom_accepted_types_are_described() -> None:
    validator = ImageValidator(UploadLimits(accepted_content_types=("image/jpeg", "image/png")))

    outcome = validator.validate(make_image("a.gif", content_type="image/gif"))

    assert outcome.reason == "File type image/gif is not supported. Please use JPG or PNG."
