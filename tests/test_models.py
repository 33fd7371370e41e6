from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from wishcraft.models import Collection, Wishlist, WishlistItem


def test_item_rejects_blank_name() -> None:
    with pytest.raises(ValidationError):
        WishlistItem(name="   ")


def test_item_defaults() -> None:
    item = WishlistItem(name="Record player")
    assert item.link == ""
    assert item.notes == ""
    assert item.date_added.tzinfo is not None
    assert item.date_added.microsecond == 0


def test_records_are_immutable() -> None:
    item = WishlistItem(name="Lamp")
    with pytest.raises(ValidationError):
        item.name = "Other"  # type: ignore[misc]


def test_wishlist_document_uses_camel_case_keys() -> None:
    created = datetime(2025, 5, 27, 10, 15, tzinfo=timezone.utc)
    wishlist = Wishlist(
        name="Birthday",
        items=(WishlistItem(name="Kettle", link="https://example.com/k", date_added=created),),
        cover_image_data=b"\x89PNG",
        cover_image_offset_x=4.5,
        cover_image_offset_y=-2.0,
        date_created=created,
    )
    document = wishlist.to_document()
    assert list(document) == [
        "id",
        "name",
        "items",
        "coverImageData",
        "coverImageOffsetX",
        "coverImageOffsetY",
        "dateCreated",
    ]
    assert document["coverImageData"] == "iVBORw=="
    assert document["dateCreated"] == "2025-05-27T10:15:00Z"
    assert document["items"][0]["dateAdded"] == "2025-05-27T10:15:00Z"


def test_wishlist_document_omits_missing_cover_image() -> None:
    document = Wishlist(name="Plain").to_document()
    assert "coverImageData" not in document
    assert document["coverImageOffsetX"] == 0.0


def test_wishlist_parses_document() -> None:
    wishlist_id = uuid4()
    parsed = Wishlist.model_validate(
        {
            "id": str(wishlist_id).upper(),
            "name": "Books",
            "items": [
                {
                    "id": str(uuid4()),
                    "name": "Dune",
                    "link": "",
                    "notes": "hardcover",
                    "dateAdded": "2025-05-27T10:15:00Z",
                }
            ],
            "coverImageData": "iVBORw==",
            "coverImageOffsetX": 1,
            "coverImageOffsetY": 2,
            "dateCreated": "2025-05-27T10:15:00Z",
        }
    )
    assert parsed.id == wishlist_id
    assert parsed.items[0].notes == "hardcover"
    assert parsed.cover_image_data == b"\x89PNG"
    assert parsed.cover_image_offset == (1.0, 2.0)


def test_with_cover_image_clears_offset_when_removed() -> None:
    wishlist = Wishlist(name="Cover").with_cover_image(b"img", (3.0, 4.0))
    assert wishlist.cover_image_offset == (3.0, 4.0)
    cleared = wishlist.with_cover_image(None, (9.0, 9.0))
    assert cleared.cover_image_data is None
    assert cleared.cover_image_offset == (0.0, 0.0)
    assert cleared.id == wishlist.id


def test_collection_rejects_dangling_selection() -> None:
    with pytest.raises(ValidationError):
        Collection(wishlists=(Wishlist(),), selected_id=uuid4())


def test_collection_summaries_only_expose_id_and_name() -> None:
    wishlist = Wishlist(name="Secret", items=(WishlistItem(name="Gift"),), cover_image_data=b"x")
    summaries = Collection(wishlists=(wishlist,)).summaries()
    assert [summary.model_dump(mode="json") for summary in summaries] == [
        {"id": str(wishlist.id), "name": "Secret"}
    ]


@pytest.mark.parametrize("offset", [float("nan"), float("inf"), float("-inf")])
def test_cover_offset_must_be_finite(offset) -> None:
    with pytest.raises(ValidationError):
        Wishlist(name="Bad", cover_image_offset_x=offset)
    with pytest.raises(ValidationError):
        Wishlist(name="Bad").with_cover_image(b"jpeg", (0.0, offset))
