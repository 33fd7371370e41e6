from __future__ import annotations

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from wishcraft.bridge import create_bridge_app
from wishcraft.config_loader import BridgeConfig
from wishcraft.dispatcher import OwnerDispatcher
from wishcraft.persistence import WishlistRepository
from wishcraft.store import WishlistStore


@pytest.fixture
def repository(tmp_path) -> WishlistRepository:
    return WishlistRepository(tmp_path / "data" / "wishlists.json")


@pytest.fixture
def store(repository) -> WishlistStore:
    return WishlistStore.open(repository)


@pytest.fixture
def empty_store(repository) -> WishlistStore:
    return WishlistStore(repository)


@pytest.fixture
def dispatcher() -> OwnerDispatcher:
    dispatcher = OwnerDispatcher()
    yield dispatcher
    dispatcher.stop()


def _client_for(app: FastAPI) -> AsyncClient:
    transport = ASGITransport(app=app)
    async_client = AsyncClient(transport=transport, base_url="http://testserver", timeout=10.0)
    async_client.app = app  # type: ignore[attr-defined]
    return async_client


@pytest_asyncio.fixture
async def client(store, dispatcher):
    async_client = _client_for(create_bridge_app(store, dispatcher, BridgeConfig()))
    try:
        yield async_client
    finally:
        await async_client.aclose()


@pytest_asyncio.fixture
async def empty_client(empty_store, dispatcher):
    async_client = _client_for(create_bridge_app(empty_store, dispatcher, BridgeConfig()))
    try:
        yield async_client
    finally:
        await async_client.aclose()
