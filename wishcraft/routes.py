"""HTTP routes exposed to the WishCraft Clipper browser extension."""

from __future__ import annotations

import asyncio
import logging
from uuid import UUID

import orjson
from fastapi import APIRouter, Request, status
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, Field, ValidationError, field_validator

from .config_loader import BridgeConfig
from .dispatcher import DispatcherStoppedError, OwnerDispatcher
from .models import WishlistItem
from .store import WishlistStore

router = APIRouter()
logger = logging.getLogger(__name__)

READ_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
WRITE_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


# --------------------------------------------------------------------------- #
# Pydantic schemas
# --------------------------------------------------------------------------- #


class AddItemRequest(BaseModel):
    wishlist_id: UUID = Field(alias="wishlistId")
    name: str
    link: str | None = None
    notes: str | None = None

    @field_validator("name")
    @classmethod
    def _reject_blank_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value

    def to_item(self) -> WishlistItem:
        return WishlistItem(name=self.name, link=self.link or "", notes=self.notes or "")


def _request_state(request: Request):
    return request.app.state


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(problems)


# --------------------------------------------------------------------------- #
# Routes
# --------------------------------------------------------------------------- #


@router.get("/getWishlists")
async def get_wishlists(request: Request) -> Response:
    store: WishlistStore = _request_state(request).store
    summaries = store.list_wishlists()
    payload = orjson.dumps([summary.model_dump(mode="json") for summary in summaries])
    return Response(content=payload, media_type="application/json", headers=READ_CORS_HEADERS)


@router.options("/getWishlists")
async def get_wishlists_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=READ_CORS_HEADERS)


@router.options("/addItem")
async def add_item_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=WRITE_CORS_HEADERS)


@router.post("/addItem")
async def add_item(request: Request) -> Response:
    state = _request_state(request)
    store: WishlistStore = state.store
    dispatcher: OwnerDispatcher = state.dispatcher
    bridge_config: BridgeConfig = state.bridge_config

    raw = await request.body()
    try:
        payload = AddItemRequest.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Rejected addItem request: %s", _describe(exc))
        return PlainTextResponse(
            f"Decoding error: {_describe(exc)}", status_code=status.HTTP_400_BAD_REQUEST
        )

    item = payload.to_item()
    try:
        future = dispatcher.submit(store.add_item, payload.wishlist_id, item)
    except DispatcherStoppedError:
        return PlainTextResponse(
            "WishCraft is shutting down", status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    if bridge_config.await_writes:
        try:
            await asyncio.wait_for(
                asyncio.shield(asyncio.wrap_future(future)),
                timeout=bridge_config.write_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Item %s for wishlist %s not applied after %.1fs; answering as accepted",
                item.id,
                payload.wishlist_id,
                bridge_config.write_timeout_seconds,
            )
        except Exception:  # noqa: BLE001 - already logged on the owning thread
            return PlainTextResponse(
                "Could not add item", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

    return PlainTextResponse("Item added successfully")
