import pytest

from src.product_images.gallery.gallery_models import GalleryItem, GalleryState
from src.product_images.gallery.gallery_service import (
    Gallery,
    append_item,
    move_item,
    remove_item,
    set_primary_item,
)
from src.product_images.uploads.upload_errors import GalleryFullError, GalleryIndexError
from src.product_images.uploads.upload_models import AssetDescriptor, DerivedUrlSet

URLS = DerivedUrlSet(thumbnail="t", small="s", medium="m", large="l", original="o")


def item(name: str) -> GalleryItem:
    return GalleryItem(
        descriptor=AssetDescriptor(
            remote_id=name,
            secure_url=f"https://example.test/{name}.jpg",
            width=1,
            height=1,
            byte_size=1,
            format="jpg",
        ),
        derived_urls=URLS,
        task_id=f"task-{name}",
    )


A, B, C = item("A"), item("B"), item("C")


def names(state: GalleryState) -> list[str]:
    return [i.remote_id for i in state.items]


def abc(primary: int) -> GalleryState:
    return GalleryState(items=(A, B, C), primary_index=primary)


def test_append_first_item_becomes_primary() -> None:
    state = append_item(GalleryState(), A, max_files=10)

    assert names(state) == ["A"]
    assert state.primary_index == 0
    assert state.primary is A


def test_append_keeps_primary_and_respects_capacity() -> None:
    state = append_item(abc(2), item("D"), max_files=4)
    assert state.primary_index == 2

    with pytest.raises(GalleryFullError):
        append_item(state, item("E"), max_files=4)


@pytest.mark.parametrize(
    ("removed", "expected_items", "expected_primary"),
    [
        (0, ["B", "C"], 0),
        (2, ["A", "B"], 1),
        (1, ["A", "C"], 0),
    ],
)
def test_remove_renumbers_primary(removed, expected_items, expected_primary) -> None:
    state = remove_item(abc(1), removed)

    assert names(state) == expected_items
    assert state.primary_index == expected_primary


def test_removing_last_item_resets_primary() -> None:
    state = remove_item(GalleryState(items=(A,), primary_index=0), 0)

    assert state.items == ()
    assert state.primary_index == 0


def test_move_keeps_primary_on_same_item() -> None:
    state = move_item(abc(2), 0, 2)

    assert names(state) == ["B", "C", "A"]
    assert state.primary_index == 1
    assert state.primary is C


@pytest.mark.parametrize(
    ("primary", "src", "dst", "expected_items"),
    [
        (0, 0, 2, ["B", "C", "A"]),
        (1, 2, 0, ["C", "A", "B"]),
        (0, 1, 2, ["A", "C", "B"]),
        (2, 1, 0, ["B", "A", "C"]),
    ],
)
def test_move_primary_identity_is_preserved(primary, src, dst, expected_items) -> None:
    before = abc(primary)
    after = move_item(before, src, dst)

    assert names(after) == expected_items
    assert after.primary is before.primary


def test_move_to_same_index_is_noop() -> None:
    state = abc(1)

    assert move_item(state, 1, 1) is state


def test_out_of_range_indexes_raise() -> None:
    state = abc(0)

    with pytest.raises(GalleryIndexError):
        set_primary_item(state, 3)
    with pytest.raises(GalleryIndexError):
        set_primary_item(state, -1)
    with pytest.raises(GalleryIndexError):
        remove_item(state, 5)
    with pytest.raises(GalleryIndexError):
        move_item(state, 0, 3)


def test_gallery_holder_tracks_state_and_snapshot() -> None:
    gallery = Gallery.from_existing([A, B, C], primary_index=1, max_files=5)

    gallery.move(1, 0)
    gallery.remove(2)

    assert gallery.primary_index == 0
    assert gallery.contains_task("task-B")
    assert not gallery.contains_task("task-C")
    snapshot = gallery.snapshot()
    assert snapshot["featured_index"] == 0
    assert [image["public_id"] for image in snapshot["images"]] == ["B", "A"]
    assert snapshot["images"][0]["optimized_urls"]["thumbnail"] == "t"


def test_from_existing_rejects_invalid_primary() -> None:
    with pytest.raises(GalleryIndexError):
        Gallery.from_existing([A], primary_index=2)
