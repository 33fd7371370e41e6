"""Wishlist value types shared by the store, the durable file and the bridge."""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

DEFAULT_WISHLIST_NAME = "New Wishlist"
FIRST_WISHLIST_NAME = "My First Wishlist"


def utc_now() -> datetime:
    # Timestamps are stored with second precision, matching the durable format.
    return datetime.now(timezone.utc).replace(microsecond=0)


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class WishlistItem(BaseModel):
    """A single wished-for thing. Immutable; edits produce a new record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID = Field(default_factory=uuid4)
    name: str
    link: str = ""
    notes: str = ""
    date_added: datetime = Field(alias="dateAdded", default_factory=utc_now)

    @field_validator("name")
    @classmethod
    def _reject_blank_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("item name must not be blank")
        return value

    @field_serializer("date_added", when_used="json")
    def _serialize_date_added(self, value: datetime) -> str:
        return _format_timestamp(value)


class Wishlist(BaseModel):
    """A named, ordered collection of items with an optional cover image."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = DEFAULT_WISHLIST_NAME
    items: tuple[WishlistItem, ...] = ()
    cover_image_data: bytes | None = Field(alias="coverImageData", default=None)
    # JSON has no NaN or infinity; orjson would write them as null.
    cover_image_offset_x: float = Field(alias="coverImageOffsetX", default=0.0, allow_inf_nan=False)
    cover_image_offset_y: float = Field(alias="coverImageOffsetY", default=0.0, allow_inf_nan=False)
    date_created: datetime = Field(alias="dateCreated", default_factory=utc_now)

    @field_validator("cover_image_data", mode="before")
    @classmethod
    def _decode_cover_image(cls, value: object) -> object:
        if isinstance(value, str):
            return base64.b64decode(value, validate=True)
        return value

    @field_serializer("cover_image_data", when_used="json-unless-none")
    def _serialize_cover_image(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")

    @field_serializer("date_created", when_used="json")
    def _serialize_date_created(self, value: datetime) -> str:
        return _format_timestamp(value)

    @property
    def cover_image_offset(self) -> tuple[float, float]:
        return (self.cover_image_offset_x, self.cover_image_offset_y)

    def item(self, item_id: UUID) -> WishlistItem | None:
        return next((item for item in self.items if item.id == item_id), None)

    def with_cover_image(
        self, data: bytes | None, offset: tuple[float, float] = (0.0, 0.0)
    ) -> Wishlist:
        """Return a copy carrying a new cover image and focal-point offset.

        Removing the image (``data=None``) also resets the offset, which has no
        meaning without an image. A non-finite offset raises ``ValidationError``.
        """
        if data is None:
            offset = (0.0, 0.0)
        return self.model_validate(
            {
                **dict(self),
                "cover_image_data": data,
                "cover_image_offset_x": offset[0],
                "cover_image_offset_y": offset[1],
            }
        )

    def to_document(self) -> dict:
        """Serialize to the camelCase form used on disk."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class WishlistSummary(BaseModel):
    """The `(id, name)` listing form handed to out-of-process clients."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str


class Collection(BaseModel):
    """Immutable snapshot of the whole store.

    ``selected_id`` is either ``None`` or the id of one of ``wishlists``.
    """

    model_config = ConfigDict(frozen=True)

    wishlists: tuple[Wishlist, ...] = ()
    selected_id: UUID | None = None

    @model_validator(mode="after")
    def _check_selection(self) -> Collection:
        if self.selected_id is not None and self.index_of(self.selected_id) is None:
            raise ValueError(f"selected wishlist {self.selected_id} is not in the collection")
        return self

    def index_of(self, wishlist_id: UUID) -> int | None:
        for index, wishlist in enumerate(self.wishlists):
            if wishlist.id == wishlist_id:
                return index
        return None

    def get(self, wishlist_id: UUID) -> Wishlist | None:
        index = self.index_of(wishlist_id)
        return None if index is None else self.wishlists[index]

    @property
    def selected(self) -> Wishlist | None:
        if self.selected_id is None:
            return None
        return self.get(self.selected_id)

    def summaries(self) -> list[WishlistSummary]:
        return [WishlistSummary(id=wishlist.id, name=wishlist.name) for wishlist in self.wishlists]
